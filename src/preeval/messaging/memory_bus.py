"""In-memory message bus for unit tests and local development."""

from __future__ import annotations

import inspect
from typing import Any, Callable

from preeval.core.exceptions import UpstreamFailure

Handler = Callable[[Any], Any]


class MemoryMessageBus:
    """Dict-backed IMessageBus.

    Each topic is answered by a canned response or by a handler (plain or
    async callable receiving the payload). Every request is recorded in
    ``calls`` so tests can assert on fan-out.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}
        self.calls: list[tuple[str, Any]] = []

    def set_response(self, topic: str, response: Any) -> None:
        """Answer every request on ``topic`` with ``response``."""
        self._handlers[topic] = lambda _payload: response

    def set_handler(self, topic: str, handler: Handler) -> None:
        """Answer requests on ``topic`` by calling ``handler(payload)``."""
        self._handlers[topic] = handler

    def set_failure(self, topic: str, message: str = "service unavailable") -> None:
        """Make every request on ``topic`` fail."""

        def _fail(_payload: Any) -> Any:
            raise UpstreamFailure(topic, message)

        self._handlers[topic] = _fail

    def calls_to(self, topic: str) -> list[Any]:
        return [payload for called, payload in self.calls if called == topic]

    async def request(self, topic: str, payload: Any) -> Any:
        self.calls.append((topic, payload))
        handler = self._handlers.get(topic)
        if handler is None:
            raise UpstreamFailure(topic, "no handler registered")
        try:
            result = handler(payload)
            if inspect.isawaitable(result):
                result = await result
        except UpstreamFailure:
            raise
        except Exception as exc:
            raise UpstreamFailure(topic, str(exc)) from exc
        return result
