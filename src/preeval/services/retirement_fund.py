"""Retirement fund average lookup and the fund-based cap on maximum amounts."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from pydantic import ValidationError

from preeval.core.exceptions import NotFoundError, UpstreamFailure
from preeval.core.protocols import IMessageBus
from preeval.core.types import AffiliateId, ModalityId
from preeval.messaging.envelope import unwrap_data
from preeval.messaging.topics import Topics
from preeval.models.parsing import to_number
from preeval.models.responses import Outcome, ServiceResponse
from preeval.services.affiliate_resolver import AffiliateProfileResolver, build_profile

logger = logging.getLogger(__name__)

RETIREMENT_FUND_PATTERN = re.compile(r"\bfondo\s+de\s+retiro\b", re.IGNORECASE)

# (minimum, maximum, average) that keeps its configured maximum untouched.
# No business rule generalizes it; it is matched exactly.
UNCAPPED_EXCEPTION = (0.0, 70000.0, 130000.0)


def apply_fund_cap(minimum: float, maximum: float, average: float) -> float:
    """Cap ``maximum`` at the affiliate's fund average."""
    if average <= 0:
        return maximum
    if (minimum, maximum, average) == UNCAPPED_EXCEPTION:
        return maximum
    if maximum > average:
        return average
    return maximum


def average_amount(response: ServiceResponse) -> float:
    """Read the average out of a fund-average envelope; absence reads as 0."""
    payload = response.payload
    if isinstance(payload, dict):
        return to_number(payload.get("average_amount"))
    return to_number(payload)


class RetirementFundService:
    """Resolves fund averages and applies them to "fondo de retiro" modalities."""

    def __init__(self, bus: IMessageBus, resolver: AffiliateProfileResolver) -> None:
        self._bus = bus
        self._resolver = resolver

    async def get_average(self, affiliate_id: AffiliateId) -> ServiceResponse:
        """Fund average for the affiliate's degree and category.

        Never raises: absence and infrastructure failures both come back as a
        status-false envelope.
        """
        try:
            record = await self._resolver.fetch_record(affiliate_id)
            profile = build_profile(affiliate_id, record)
            if not profile.degree_id or not profile.category_id:
                logger.warning("Affiliate %s has no degree or category", affiliate_id)
                return ServiceResponse.failure("Affiliate has no degree or category")

            result = await self._bus.request(
                Topics.RETIREMENT_FUND_AVERAGE,
                {"degreeId": profile.degree_id, "categoryId": profile.category_id},
            )
        except (NotFoundError, ValidationError):
            return ServiceResponse.failure("Affiliate not found")
        except UpstreamFailure as exc:
            logger.error("Could not fetch retirement fund average for affiliate %s: %s", affiliate_id, exc)
            return ServiceResponse.failure("Internal server error")

        result = result if isinstance(result, dict) else {}
        if not result.get("serviceStatus") or not result.get("data"):
            logger.warning(
                "No retirement fund average for degree %s, category %s",
                profile.degree_id, profile.category_id,
            )
            return ServiceResponse.failure("No retirement fund average found")

        return ServiceResponse.success("Retirement fund average retrieved", result["data"])

    async def adjust_maximum_amount(
        self,
        modality_id: ModalityId,
        affiliate_id: AffiliateId,
        minimum: float,
        maximum: float,
    ) -> Outcome[float]:
        """Best-effort cap of a fund modality's maximum at the affiliate's average."""
        modality_response, average_response = await asyncio.gather(
            self._bus.request(Topics.MODALITIES_FIND_ONE, {"id": modality_id}),
            self.get_average(affiliate_id),
            return_exceptions=True,
        )
        if isinstance(modality_response, UpstreamFailure):
            return Outcome.fallback(maximum, f"modality {modality_id} unavailable: {modality_response}")
        if isinstance(modality_response, BaseException):
            raise modality_response
        if isinstance(average_response, BaseException):
            raise average_response

        if not RETIREMENT_FUND_PATTERN.search(_modality_name(modality_response)):
            return Outcome.ok(maximum)

        average = average_amount(average_response)
        adjusted = apply_fund_cap(minimum, maximum, average)
        if adjusted != maximum:
            logger.debug("Retirement fund: maximum lowered from %s to %s", maximum, adjusted)
        return Outcome.ok(adjusted)


def _modality_name(response: Any) -> str:
    modality = unwrap_data(response, {})
    if not isinstance(modality, dict):
        return ""
    return str(modality.get("name") or "")
