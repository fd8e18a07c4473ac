"""Affiliate profile resolution and subsector classification."""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from preeval.core.exceptions import NotFoundError, UpstreamFailure
from preeval.core.protocols import IMessageBus
from preeval.core.types import AffiliateId, JsonDict
from preeval.messaging.envelope import unwrap_data
from preeval.messaging.topics import Topics
from preeval.models.affiliate import AffiliateProfile, AffiliateState, Subsector
from preeval.models.parsing import coalesce, to_optional_int
from preeval.models.responses import Outcome
from preeval.services.text import normalize

logger = logging.getLogger(__name__)


def classify_subsector(state_type: str, state_name: str) -> Subsector:
    """Map an affiliate's (state type, state name) pair to its subsector.

    Within each state-type branch the first matching pattern wins, so
    "jubilado invalidez" is tested before plain "jubilado".
    """
    state_type = normalize(state_type)
    name = normalize(state_name)

    if state_type == "activo":
        if "servicio" in name:
            return Subsector.SERVICIO
        if "comision" in name:
            return Subsector.COMISION
        if "disponibilidad" in name:
            return Subsector.DISPONIBILIDAD
    elif state_type == "pasivo":
        if "fallecido" in name:
            return Subsector.FALLECIDO
        if "jubilado invalidez" in name:
            return Subsector.JUBILADO_INVALIDEZ
        if "jubilado" in name:
            return Subsector.JUBILADO
    elif state_type == "baja" or "baja" in name:
        return Subsector.BAJA
    return Subsector.OTRO


def _mapping(value: Any) -> JsonDict:
    return value if isinstance(value, dict) else {}


def build_profile(affiliate_id: AffiliateId, record: JsonDict) -> AffiliateProfile:
    """Derive the normalized profile from a directory record."""
    raw_state = record.get("affiliateState")
    state = _mapping(raw_state)
    state_type = _mapping(state.get("stateType")).get("name") or ""
    state_name = state.get("name") or ""
    pension_entity = record.get("pensionEntity")
    category = _mapping(record.get("category"))

    return AffiliateProfile(
        id=record["id"],
        affiliate_id=affiliate_id,
        state=AffiliateState(name=state_name, state_type_name=state_type),
        subsector=classify_subsector(state_type, state_name),
        category=category.get("name"),
        pension_entity_name=coalesce(
            _mapping(pension_entity).get("name"), record.get("pension_entity_name"),
        ),
        raw_state=raw_state if isinstance(raw_state, dict) else None,
        raw_pension_entity=pension_entity if isinstance(pension_entity, dict) else None,
        degree_id=to_optional_int(_mapping(record.get("degree")).get("id")),
        category_id=to_optional_int(category.get("id")),
    )


class AffiliateProfileResolver:
    """Fetches affiliate records from the directory and normalizes them."""

    def __init__(self, bus: IMessageBus) -> None:
        self._bus = bus

    async def fetch_record(self, affiliate_id: AffiliateId) -> JsonDict:
        """Return the raw directory record, raising NotFoundError when absent."""
        response = await self._bus.request(Topics.AFFILIATE_FIND_ONE, {"affiliateId": affiliate_id})
        record = unwrap_data(response)
        if not isinstance(record, dict) or not record.get("id"):
            logger.error("No affiliate record for affiliate %s", affiliate_id)
            raise NotFoundError("affiliate", affiliate_id)
        return record

    async def resolve_profile(self, affiliate_id: AffiliateId) -> AffiliateProfile:
        record = await self.fetch_record(affiliate_id)
        try:
            profile = build_profile(affiliate_id, record)
        except ValidationError as exc:
            raise UpstreamFailure(Topics.AFFILIATE_FIND_ONE, f"unusable affiliate record: {exc}") from exc

        if normalize(profile.state_type_name) == "activo":
            has_dates = record.get("dateLastContribution") or record.get("dateLastContributionReinstatement")
            if not has_dates:
                logger.warning(
                    "Affiliate %s is active but has no last-contribution date; continuing", affiliate_id,
                )
        return profile

    async def resolve_pension_entity_name(self, affiliate_id: AffiliateId) -> Outcome[Optional[str]]:
        """Look the pension entity up through affiliate -> person -> pension entity.

        A broken link in the chain is an ordinary ``None``; a failed request
        degrades to ``None`` as well.
        """
        try:
            person_ref = _mapping(
                await self._bus.request(Topics.PERSON_ID_BY_AFFILIATE, {"affiliateId": affiliate_id})
            )
            person_id = coalesce(person_ref.get("personId"), _mapping(person_ref.get("data")).get("personId"))
            if not person_id:
                return Outcome.ok(None)

            person = _mapping(unwrap_data(
                await self._bus.request(Topics.PERSON_FIND_ONE, {"term": str(person_id), "field": "id"})
            ))
            pension_entity_id = coalesce(person.get("pensionEntityId"), person.get("pension_entity_id"))
            if not pension_entity_id:
                return Outcome.ok(None)

            entity = _mapping(unwrap_data(
                await self._bus.request(Topics.PENSION_ENTITY_FIND_ONE, {"id": pension_entity_id})
            ))
        except UpstreamFailure as exc:
            logger.debug("Could not resolve pension entity for affiliate %s: %s", affiliate_id, exc)
            return Outcome.fallback(None, str(exc))

        if not entity.get("isActive"):
            return Outcome.ok(None)
        return Outcome.ok(coalesce(entity.get("type"), entity.get("name")))
