"""Helpers for reading downstream responses and framing bus messages."""

from __future__ import annotations

import json
from typing import Any

from preeval.core.types import JsonDict


def unwrap_data(response: Any, default: Any = None) -> Any:
    """Return the useful part of a response.

    Downstream services answer either with the payload itself or with an
    object carrying it under ``data``; both shapes are accepted.
    """
    if isinstance(response, dict) and response.get("data") is not None:
        return response["data"]
    if response is None:
        return default
    return response


def encode(message: JsonDict) -> str:
    return json.dumps(message, ensure_ascii=False, default=str)


def decode(raw: str | bytes) -> JsonDict:
    message = json.loads(raw)
    if not isinstance(message, dict):
        raise ValueError(f"Expected a JSON object, got {type(message).__name__}")
    return message
