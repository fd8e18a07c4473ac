"""Tests for AffiliateProfileResolver against the in-memory bus."""

from __future__ import annotations

import logging

import pytest

from preeval.core.exceptions import NotFoundError, UpstreamFailure
from preeval.messaging.topics import Topics
from preeval.models.affiliate import Subsector
from preeval.services.affiliate_resolver import AffiliateProfileResolver
from tests.fakes import affiliate_record


@pytest.fixture
def resolver(bus):
    return AffiliateProfileResolver(bus)


class TestResolveProfile:
    @pytest.mark.asyncio
    async def test_resolves_known_affiliate(self, resolver, bus, directory):
        profile = await resolver.resolve_profile(12345)

        assert profile.subsector == Subsector.SERVICIO
        assert bus.calls_to(Topics.AFFILIATE_FIND_ONE) == [{"affiliateId": 12345}]

    @pytest.mark.asyncio
    async def test_accepts_data_wrapped_record(self, resolver, bus):
        bus.set_response(Topics.AFFILIATE_FIND_ONE, {"data": affiliate_record()})
        profile = await resolver.resolve_profile(12345)
        assert profile.id == 12345

    @pytest.mark.asyncio
    async def test_unknown_affiliate_raises_not_found(self, resolver, directory):
        with pytest.raises(NotFoundError):
            await resolver.resolve_profile(999)

    @pytest.mark.asyncio
    async def test_record_without_id_raises_not_found(self, resolver, bus):
        bus.set_response(Topics.AFFILIATE_FIND_ONE, {"affiliateState": {}})
        with pytest.raises(NotFoundError):
            await resolver.resolve_profile(12345)

    @pytest.mark.asyncio
    async def test_upstream_failure_propagates(self, resolver, bus):
        bus.set_failure(Topics.AFFILIATE_FIND_ONE)
        with pytest.raises(UpstreamFailure):
            await resolver.resolve_profile(12345)

    @pytest.mark.asyncio
    async def test_warns_when_active_without_contribution_dates(self, resolver, directory, caplog):
        directory[12345] = affiliate_record(last_contribution=None)
        with caplog.at_level(logging.WARNING, logger="preeval"):
            profile = await resolver.resolve_profile(12345)

        assert profile.subsector == Subsector.SERVICIO
        assert "no last-contribution date" in caplog.text


class TestResolvePensionEntity:
    def _seed_chain(self, bus, entity):
        bus.set_response(Topics.PERSON_ID_BY_AFFILIATE, {"personId": 55})
        bus.set_response(Topics.PERSON_FIND_ONE, {"data": {"id": 55, "pensionEntityId": 3}})
        bus.set_response(Topics.PENSION_ENTITY_FIND_ONE, {"data": entity})

    @pytest.mark.asyncio
    async def test_prefers_type_over_name(self, resolver, bus):
        self._seed_chain(bus, {"isActive": True, "type": "SENASIR", "name": "Servicio Nacional"})
        outcome = await resolver.resolve_pension_entity_name(12345)

        assert outcome.value == "SENASIR"
        assert not outcome.degraded
        assert bus.calls_to(Topics.PERSON_FIND_ONE) == [{"term": "55", "field": "id"}]
        assert bus.calls_to(Topics.PENSION_ENTITY_FIND_ONE) == [{"id": 3}]

    @pytest.mark.asyncio
    async def test_falls_back_to_name(self, resolver, bus):
        self._seed_chain(bus, {"isActive": True, "name": "Gestora Publica"})
        outcome = await resolver.resolve_pension_entity_name(12345)
        assert outcome.value == "Gestora Publica"

    @pytest.mark.asyncio
    async def test_inactive_entity_is_none(self, resolver, bus):
        self._seed_chain(bus, {"isActive": False, "type": "SENASIR"})
        outcome = await resolver.resolve_pension_entity_name(12345)
        assert outcome.value is None
        assert not outcome.degraded

    @pytest.mark.asyncio
    async def test_missing_person_stops_the_chain(self, resolver, bus):
        bus.set_response(Topics.PERSON_ID_BY_AFFILIATE, {})
        outcome = await resolver.resolve_pension_entity_name(12345)

        assert outcome.value is None
        assert bus.calls_to(Topics.PERSON_FIND_ONE) == []

    @pytest.mark.asyncio
    async def test_failure_degrades_to_none(self, resolver, bus):
        bus.set_response(Topics.PERSON_ID_BY_AFFILIATE, {"personId": 55})
        bus.set_failure(Topics.PERSON_FIND_ONE, "timeout")
        outcome = await resolver.resolve_pension_entity_name(12345)

        assert outcome.value is None
        assert outcome.degraded
        assert "timeout" in outcome.reason
