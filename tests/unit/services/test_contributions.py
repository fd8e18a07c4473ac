"""Tests for recent contributions."""

from __future__ import annotations

from datetime import date

import pytest

from preeval.messaging.topics import Topics
from preeval.services.contributions import RecentContributionsService, format_european, months_before

TODAY = date(2025, 5, 31)


def _contribution(cid, month, quotable=5715.5, **amounts):
    return {"id": cid, "monthYear": month, "quotable": quotable, **amounts}


class TestFormatEuropean:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(5715.5, "5.715,50"), (1234567.891, "1.234.567,89"), (12, "12,00"), (0, "0,00")],
    )
    def test_formats(self, value, expected):
        assert format_european(value) == expected


class TestMonthsBefore:
    def test_clamps_to_month_end(self):
        assert months_before(TODAY, 3) == date(2025, 2, 28)

    def test_crosses_year(self):
        assert months_before(date(2025, 1, 15), 3) == date(2024, 10, 15)


@pytest.fixture
def service(bus):
    return RecentContributionsService(bus, today=lambda: TODAY)


class TestGetRecentContributions:
    @pytest.mark.asyncio
    async def test_selects_newest_quotable_within_window(self, service, bus):
        bus.set_response(Topics.CONTRIBUTIONS_BY_AFFILIATE, [
            _contribution(1, "2025-02-01"),
            _contribution(2, "2025-03-01", seniorityBonus=120),
            _contribution(3, "2025-04-01"),
            _contribution(4, "2025-05-01", quotable=0),
            _contribution(5, "2025-05-01T00:00:00"),
            _contribution(6, "2024-12-01"),
        ])
        response = await service.get_recent_contributions(12345)

        assert response.service_status
        payload = response.payload
        assert [row["id"] for row in payload["contributions"]] == [5, 3, 2]
        assert payload["total_contributions"] == 3
        assert payload["period"] == {"from": "2025-02-28", "to": "2025-05-31"}
        row = payload["contributions"][2]
        assert row["quotable"] == "5.715,50"
        assert row["seniority_bonus"] == "120,00"
        assert row["study_bonus"] == "0,00"
        assert bus.calls_to(Topics.CONTRIBUTIONS_BY_AFFILIATE) == [12345]

    @pytest.mark.asyncio
    async def test_no_contributions_marker_is_empty_success(self, service, bus):
        bus.set_failure(Topics.CONTRIBUTIONS_BY_AFFILIATE, "No se encontraron aportes para el afiliado")
        response = await service.get_recent_contributions(12345)

        assert not response.error
        assert response.payload["contributions"] == []
        assert response.payload["total_contributions"] == 0

    @pytest.mark.asyncio
    async def test_empty_list_is_empty_success(self, service, bus):
        bus.set_response(Topics.CONTRIBUTIONS_BY_AFFILIATE, {"data": []})
        response = await service.get_recent_contributions(12345)
        assert response.service_status
        assert response.payload["contributions"] == []

    @pytest.mark.asyncio
    async def test_other_failures_are_reported(self, service, bus):
        bus.set_failure(Topics.CONTRIBUTIONS_BY_AFFILIATE, "connection refused")
        response = await service.get_recent_contributions(12345)

        assert response.error
        assert response.message == "Internal server error"

    @pytest.mark.asyncio
    async def test_limit_is_configurable(self, bus):
        service = RecentContributionsService(bus, limit=1, today=lambda: TODAY)
        bus.set_response(Topics.CONTRIBUTIONS_BY_AFFILIATE, [
            _contribution(1, "2025-04-01"), _contribution(2, "2025-05-01"),
        ])
        response = await service.get_recent_contributions(12345)
        assert [row["id"] for row in response.payload["contributions"]] == [2]
