"""Pre-evaluation exception hierarchy."""

from __future__ import annotations


class PreEvalError(Exception):
    """Base exception for all pre-evaluation errors."""


class NotFoundError(PreEvalError):
    """A referenced affiliate or procedure modality does not exist."""

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key!r}")


class UpstreamFailure(PreEvalError):
    """A downstream request over the message bus failed or timed out."""

    def __init__(self, topic: str, message: str) -> None:
        self.topic = topic
        super().__init__(f"Request to {topic!r} failed: {message}")


class InvalidPayloadError(PreEvalError):
    """An inbound payload is missing a field or carries an unparseable value."""

    def __init__(self, field: str, value: object) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for {field!r}: {value!r}")
