"""Bulk retrieval of loan parameters and interest rates for a set of modalities."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from preeval.core.exceptions import UpstreamFailure
from preeval.core.protocols import IMessageBus
from preeval.core.types import ModalityId
from preeval.messaging.envelope import unwrap_data
from preeval.messaging.topics import Topics
from preeval.models.modality import LoanInterestEntry, RawLoanParameters
from preeval.models.responses import Outcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterIndex:
    """Request-scoped lookup tables keyed by procedure modality id."""

    parameters: dict[ModalityId, RawLoanParameters] = field(default_factory=dict)
    interests: dict[ModalityId, LoanInterestEntry] = field(default_factory=dict)


def _dedupe(ids: Iterable[ModalityId]) -> list[ModalityId]:
    return list(dict.fromkeys(ids))


class BatchParameterFetcher:
    """Fetches parameters in one bulk request and interests per modality, concurrently."""

    def __init__(self, bus: IMessageBus) -> None:
        self._bus = bus

    async def fetch(self, modality_ids: Iterable[ModalityId]) -> ParameterIndex:
        ids = _dedupe(modality_ids)
        parameters, interests = await asyncio.gather(
            self.fetch_parameters(ids), self.fetch_interests(ids),
        )
        for outcome in (parameters, interests):
            if outcome.degraded:
                logger.warning("Parameter batch degraded: %s", outcome.reason)
        return ParameterIndex(parameters=parameters.value, interests=interests.value)

    async def fetch_parameters(
        self, modality_ids: list[ModalityId],
    ) -> Outcome[dict[ModalityId, RawLoanParameters]]:
        """Parameters for modalities whose loan procedure is enabled, in one request."""
        try:
            response = await self._bus.request(
                Topics.LOAN_PARAMETERS_BATCH, {"procedureModalityIds": modality_ids},
            )
        except UpstreamFailure as exc:
            return Outcome.fallback({}, f"parameters unavailable: {exc}")

        rows = unwrap_data(response, [])
        if not isinstance(rows, list):
            return Outcome.fallback({}, f"unexpected parameters response: {type(rows).__name__}")

        by_id: dict[ModalityId, RawLoanParameters] = {}
        for row in rows:
            if not isinstance(row, dict):
                continue
            parameters = RawLoanParameters.model_validate(row)
            if parameters.procedure_modality_id is not None:
                by_id[parameters.procedure_modality_id] = parameters
        logger.debug("Loaded parameters for %d of %d modalities", len(by_id), len(modality_ids))
        return Outcome.ok(by_id)

    async def fetch_interests(
        self, modality_ids: list[ModalityId],
    ) -> Outcome[dict[ModalityId, LoanInterestEntry]]:
        """First interest entry per modality; a failed id just has no entry."""
        results = await asyncio.gather(*(self._fetch_interest_rows(mid) for mid in modality_ids))

        by_id: dict[ModalityId, LoanInterestEntry] = {}
        failed = []
        for modality_id, outcome in zip(modality_ids, results):
            if outcome.degraded:
                failed.append(modality_id)
            rows = outcome.value
            # Only the first entry is used; later entries for the same modality are ignored.
            if rows and isinstance(rows[0], dict):
                by_id[modality_id] = LoanInterestEntry.model_validate(rows[0])

        if failed and len(failed) == len(modality_ids):
            return Outcome.fallback(by_id, f"interests unavailable for all modalities {failed}")
        if failed:
            logger.debug("Interests unavailable for modalities %s", failed)
        return Outcome.ok(by_id)

    async def _fetch_interest_rows(self, modality_id: ModalityId) -> Outcome[list[Any]]:
        try:
            response = await self._bus.request(
                Topics.LOAN_INTERESTS, {"procedureModalityId": modality_id},
            )
        except UpstreamFailure as exc:
            return Outcome.fallback([], str(exc))
        rows = unwrap_data(response, [])
        return Outcome.ok(rows if isinstance(rows, list) else [])
