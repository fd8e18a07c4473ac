"""Shared test doubles: the in-memory bus plus builders for downstream rows."""

from __future__ import annotations

from typing import Any, Optional

from preeval.messaging.memory_bus import MemoryMessageBus


def affiliate_record(
    affiliate_id: int = 12345,
    state_type: str = "Activo",
    state_name: str = "Servicio",
    category: Optional[str] = "100%",
    pension_entity: Optional[str] = None,
    degree_id: Optional[int] = 4,
    category_id: Optional[int] = 9,
    last_contribution: Optional[str] = "2025-09-01",
) -> dict[str, Any]:
    """An affiliate record shaped like the directory's findOneData answer."""
    record: dict[str, Any] = {
        "id": affiliate_id,
        "affiliateState": {"name": state_name, "stateType": {"name": state_type}},
        "category": {"id": category_id, "name": category} if category is not None else None,
        "degree": {"id": degree_id} if degree_id is not None else None,
        "dateLastContribution": last_contribution,
    }
    if pension_entity is not None:
        record["pensionEntity"] = {"name": pension_entity}
    return record


def catalog_row(modality_id: int, name: str, valid: bool = True, procedure_type_id: int = 2) -> dict[str, Any]:
    return {"id": modality_id, "name": name, "isValid": valid, "procedure_type_id": procedure_type_id}


__all__ = ["MemoryMessageBus", "affiliate_record", "catalog_row"]
