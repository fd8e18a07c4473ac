"""Eligibility rules deciding which loan modalities an affiliate may apply for."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import ValidationError

from preeval.models.modality import EligibleModality, ModalityCatalogEntry
from preeval.services.text import normalize

logger = logging.getLogger(__name__)

EXCLUDED_TOKENS = ("reprogramacion", "refinanciamiento", "descuento")
RETIREMENT_FUND_CATEGORIES = ("85%", "100%")
PENSION_ENTITY_TOKENS = ("senasir", "gestora")  # checked in this order

_SORT_TOKENS = (("anticipo", 1), ("corto", 2), ("largo", 3), ("estacional", 4))
_DEFAULT_SORT_ORDER = 5


def parse_catalog(rows: Any) -> list[ModalityCatalogEntry]:
    """Build catalog entries from raw rows, skipping rows without a usable id."""
    if not isinstance(rows, list):
        return []
    entries = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        try:
            entries.append(ModalityCatalogEntry.model_validate(row))
        except ValidationError:
            logger.debug("Skipping malformed catalog row: %r", row)
    return entries


def sort_order(name: str) -> int:
    """Anticipo < Corto < Largo < Estacional < everything else."""
    normalized = normalize(name)
    for token, order in _SORT_TOKENS:
        if token in normalized:
            return order
    return _DEFAULT_SORT_ORDER


def is_excluded(normalized_name: str) -> bool:
    """Reschedulings, refinancings and discounts are never offered."""
    return any(token in normalized_name for token in EXCLUDED_TOKENS)


def is_retirement_fund(normalized_name: str) -> bool:
    return "fondo" in normalized_name and "retiro" in normalized_name


def passes_retirement_fund_gate(normalized_name: str) -> bool:
    """A "fondo de retiro" modality must name its sector before the fund."""
    if not is_retirement_fund(normalized_name):
        return True
    sector_at = normalized_name.find("sector")
    return sector_at != -1 and sector_at < normalized_name.find("fondo")


def matches_active(normalized_name: str, subsector: str, allows_retirement_fund: bool) -> bool:
    """``subsector`` is the normalized key ("servicio", "comision", "disponibilidad")."""
    if "oportuno" in normalized_name:
        return True
    if allows_retirement_fund and is_retirement_fund(normalized_name):
        return True

    def has(*tokens: str) -> bool:
        return all(token in normalized_name for token in tokens)

    if subsector == "servicio":
        return (
            has("anticipo sector activo")
            or has("corto plazo", "sector activo")
            or has("largo plazo", "sector activo")
        )
    if subsector == "comision":
        return (
            has("largo plazo", "comision")
            or has("anticipo sector activo")
            or has("corto plazo", "sector activo")
        )
    if subsector == "disponibilidad":
        return (
            has("anticipo", "disponibilidad")
            or has("corto plazo", "disponibilidad")
            or has("largo plazo", "disponibilidad")
        )
    return False


def matches_passive(normalized_name: str, pension_entity: str) -> bool:
    if "estacional" in normalized_name:
        return True

    entity = next((token for token in PENSION_ENTITY_TOKENS if token in pension_entity), None)
    if entity is None or entity not in normalized_name:
        return False
    return (
        "anticipo" in normalized_name
        or ("corto" in normalized_name and "plazo" in normalized_name)
        or ("largo" in normalized_name and "plazo" in normalized_name)
    )


def filter_eligible(
    catalog: Iterable[ModalityCatalogEntry],
    state_type: str,
    subsector: str,
    pension_entity: str,
    category: str,
) -> list[EligibleModality]:
    """Reduce the catalog to the modalities this affiliate may apply for.

    Returns them ordered by ``sort_order``; catalog order is kept for ties.
    An empty list is a normal answer.
    """
    state_type = normalize(state_type)
    if not state_type or "baja" in state_type:
        return []

    subsector_key = normalize(subsector)
    pension_key = normalize(pension_entity)
    allows_retirement_fund = category in RETIREMENT_FUND_CATEGORIES
    is_active = "activo" in state_type
    is_passive = "pasivo" in state_type

    eligible = []
    for entry in catalog:
        if not entry.is_valid:
            continue
        name = normalize(entry.name)
        if is_excluded(name) or not passes_retirement_fund_gate(name):
            continue

        if is_active:
            keep = matches_active(name, subsector_key, allows_retirement_fund)
        elif is_passive:
            keep = matches_passive(name, pension_key)
        else:
            keep = "oportuno" in name

        if keep:
            eligible.append(
                EligibleModality(entry=entry, normalized_name=name, sort_order=sort_order(entry.name))
            )

    return sorted(eligible, key=lambda modality: modality.sort_order)
