"""Response envelopes and best-effort result types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ServiceResponse(BaseModel):
    """Envelope for operations that report absence through a status flag."""

    error: bool = False
    message: str = ""
    payload: Any = None
    service_status: bool = True

    @classmethod
    def success(cls, message: str, payload: Any) -> "ServiceResponse":
        return cls(error=False, message=message, payload=payload, service_status=True)

    @classmethod
    def failure(cls, message: str) -> "ServiceResponse":
        return cls(error=True, message=message, payload=None, service_status=False)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a best-effort step.

    ``degraded`` is set when the step fell back to a neutral default; the
    value is still usable and ``reason`` says what went wrong.
    """

    value: T
    degraded: bool = False
    reason: str = ""

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> "Outcome[T]":
        return cls(value=value, degraded=True, reason=reason)
