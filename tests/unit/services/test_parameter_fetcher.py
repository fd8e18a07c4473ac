"""Tests for BatchParameterFetcher."""

from __future__ import annotations

import pytest

from preeval.messaging.topics import Topics
from preeval.services.parameter_fetcher import BatchParameterFetcher


@pytest.fixture
def fetcher(bus):
    return BatchParameterFetcher(bus)


def _interests_by_id(table):
    def handler(payload):
        rows = table[payload["procedureModalityId"]]
        if isinstance(rows, Exception):
            raise rows
        return rows
    return handler


class TestFetchParameters:
    @pytest.mark.asyncio
    async def test_indexes_rows_by_modality(self, fetcher, bus):
        bus.set_response(Topics.LOAN_PARAMETERS_BATCH, {"data": [
            {"procedureModalityId": 10, "debt_index": 40},
            {"procedure_modality_id": 11, "debtIndex": "50"},
            {"debt_index": 60},
        ]})
        outcome = await fetcher.fetch_parameters([10, 11])

        assert not outcome.degraded
        assert set(outcome.value) == {10, 11}
        assert outcome.value[11].debt_index == 50.0
        assert bus.calls_to(Topics.LOAN_PARAMETERS_BATCH) == [{"procedureModalityIds": [10, 11]}]

    @pytest.mark.asyncio
    async def test_last_row_wins_for_duplicate_ids(self, fetcher, bus):
        bus.set_response(Topics.LOAN_PARAMETERS_BATCH, [
            {"procedureModalityId": 10, "debt_index": 40},
            {"procedureModalityId": 10, "debt_index": 45},
        ])
        outcome = await fetcher.fetch_parameters([10])
        assert outcome.value[10].debt_index == 45.0

    @pytest.mark.asyncio
    async def test_failure_degrades_to_empty(self, fetcher, bus):
        bus.set_failure(Topics.LOAN_PARAMETERS_BATCH)
        outcome = await fetcher.fetch_parameters([10])

        assert outcome.value == {}
        assert outcome.degraded

    @pytest.mark.asyncio
    async def test_unexpected_shape_degrades_to_empty(self, fetcher, bus):
        bus.set_response(Topics.LOAN_PARAMETERS_BATCH, {"data": "nope"})
        outcome = await fetcher.fetch_parameters([10])
        assert outcome.value == {}
        assert outcome.degraded


class TestFetchInterests:
    @pytest.mark.asyncio
    async def test_only_first_entry_is_used(self, fetcher, bus):
        bus.set_response(Topics.LOAN_INTERESTS, {"data": [
            {"annualInterest": 13.2},
            {"annualInterest": 99.0},
        ]})
        outcome = await fetcher.fetch_interests([10])
        assert outcome.value[10].annual_interest == 13.2

    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_others(self, fetcher, bus):
        bus.set_handler(Topics.LOAN_INTERESTS, _interests_by_id({
            10: [{"annual_interest": 12}],
            11: RuntimeError("boom"),
        }))
        outcome = await fetcher.fetch_interests([10, 11])

        assert not outcome.degraded
        assert set(outcome.value) == {10}

    @pytest.mark.asyncio
    async def test_all_failures_degrade(self, fetcher, bus):
        bus.set_failure(Topics.LOAN_INTERESTS)
        outcome = await fetcher.fetch_interests([10, 11])

        assert outcome.value == {}
        assert outcome.degraded

    @pytest.mark.asyncio
    async def test_empty_rows_mean_no_entry(self, fetcher, bus):
        bus.set_response(Topics.LOAN_INTERESTS, [])
        outcome = await fetcher.fetch_interests([10])
        assert outcome.value == {}
        assert not outcome.degraded


class TestFetch:
    @pytest.mark.asyncio
    async def test_dedupes_ids(self, fetcher, bus):
        bus.set_response(Topics.LOAN_PARAMETERS_BATCH, [{"procedureModalityId": 10}])
        bus.set_response(Topics.LOAN_INTERESTS, [{"annualInterest": 10}])

        index = await fetcher.fetch([10, 10, 11])

        assert bus.calls_to(Topics.LOAN_PARAMETERS_BATCH) == [{"procedureModalityIds": [10, 11]}]
        assert len(bus.calls_to(Topics.LOAN_INTERESTS)) == 2
        assert set(index.parameters) == {10}
        assert set(index.interests) == {10, 11}

    @pytest.mark.asyncio
    async def test_total_failure_yields_empty_index(self, fetcher, bus):
        bus.set_failure(Topics.LOAN_PARAMETERS_BATCH)
        bus.set_failure(Topics.LOAN_INTERESTS)

        index = await fetcher.fetch([10])

        assert index.parameters == {}
        assert index.interests == {}
