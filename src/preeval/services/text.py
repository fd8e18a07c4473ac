"""Text normalization shared by the classification and filtering rules."""

from __future__ import annotations

import unicodedata


def normalize(text: str | None) -> str:
    """Lower-case ``text`` and strip diacritics ("Comisión" -> "comision")."""
    decomposed = unicodedata.normalize("NFD", (text or "").lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))
