"""Affiliate profile derived from the affiliate directory record."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel


class Subsector(StrEnum):
    SERVICIO = "Servicio"
    COMISION = "Comision"
    DISPONIBILIDAD = "Disponibilidad"
    JUBILADO = "Jubilado"
    JUBILADO_INVALIDEZ = "Jubilado invalidez"
    FALLECIDO = "Fallecido"
    BAJA = "Baja"
    OTRO = "Otro"


class AffiliateState(BaseModel):
    """State name and state-type name as reported by the directory."""

    model_config = {"frozen": True}

    name: str = ""
    state_type_name: str = ""


class AffiliateProfile(BaseModel):
    """Request-scoped, normalized view of an affiliate.

    ``subsector`` is derived from the state pair; ``raw_state`` and
    ``raw_pension_entity`` carry the directory's objects through untouched.
    """

    model_config = {"frozen": True}

    id: int
    affiliate_id: int
    state: AffiliateState = AffiliateState()
    subsector: Subsector = Subsector.OTRO
    category: Optional[str] = None
    pension_entity_name: Optional[str] = None
    raw_state: Optional[dict[str, Any]] = None
    raw_pension_entity: Optional[dict[str, Any]] = None
    degree_id: Optional[int] = None
    category_id: Optional[int] = None

    @property
    def state_type_name(self) -> str:
        return self.state.state_type_name

    @property
    def is_offered_nothing(self) -> bool:
        """Affiliates without a state type, or written off ("baja"), see no modalities."""
        state_type = self.state_type_name.lower()
        return not state_type or "baja" in state_type
