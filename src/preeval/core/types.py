"""Type aliases used across the pre-evaluation gateway."""

from __future__ import annotations

from typing import Any

JsonDict = dict[str, Any]
AffiliateId = int
ModalityId = int
