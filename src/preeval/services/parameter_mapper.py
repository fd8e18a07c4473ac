"""Turns raw parameter rows into the loan terms shown to an affiliate."""

from __future__ import annotations

import logging
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, localcontext
from typing import Optional

from preeval.core.types import AffiliateId, ModalityId
from preeval.models.modality import ComputedLoanParameters, LoanInterestEntry, RawLoanParameters
from preeval.services.retirement_fund import RetirementFundService

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = Decimal(12)


def compute_period_interest(annual_interest: float, loan_month_term: float) -> float:
    """Interest charged per loan period.

    The raw value is rounded half away from zero to 4 decimals first and only
    then floored to 2 decimals; both steps are part of the published rate.
    """
    term = Decimal(str(loan_month_term))
    periods_per_year = MONTHS_PER_YEAR / term if term > 0 else MONTHS_PER_YEAR
    raw = Decimal(str(annual_interest)) / periods_per_year
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the 4 decimals
        ctx.prec = max(ctx.prec, raw.adjusted() + 6)
        cleaned = raw.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
        return float(cleaned.quantize(Decimal("0.01"), rounding=ROUND_FLOOR))


def build_parameters(
    raw: RawLoanParameters, interest: Optional[LoanInterestEntry] = None,
) -> ComputedLoanParameters:
    """Computed terms before any retirement-fund adjustment."""
    annual_interest = interest.annual_interest if interest is not None else 0.0
    return ComputedLoanParameters(
        debt_index=raw.debt_index,
        guarantors=raw.guarantors,
        max_lenders=raw.max_lenders,
        min_lender_category=raw.min_lender_category,
        max_lender_category=raw.max_lender_category,
        maximum_amount_modality=raw.maximum_amount_modality,
        minimum_amount_modality=raw.minimum_amount_modality,
        maximum_term_modality=raw.maximum_term_modality,
        minimum_term_modality=raw.minimum_term_modality,
        loan_month_term=raw.loan_month_term,
        coverage_percentage=raw.coverage_percentage,
        annual_interest=annual_interest,
        period_interest=compute_period_interest(annual_interest, raw.loan_month_term),
    )


class ParameterMapper:
    """Maps parameter rows and applies the retirement-fund cap when an affiliate is known."""

    def __init__(self, fund_service: RetirementFundService) -> None:
        self._fund_service = fund_service

    async def map_parameters(
        self,
        raw: RawLoanParameters,
        modality_id: ModalityId,
        affiliate_id: Optional[AffiliateId] = None,
        interest: Optional[LoanInterestEntry] = None,
    ) -> ComputedLoanParameters:
        parameters = build_parameters(raw, interest)
        if not affiliate_id:
            return parameters

        adjusted = await self._fund_service.adjust_maximum_amount(
            modality_id,
            affiliate_id,
            parameters.minimum_amount_modality,
            parameters.maximum_amount_modality,
        )
        if adjusted.degraded:
            logger.warning(
                "Keeping configured maximum for modality %s: %s", modality_id, adjusted.reason,
                extra={"affiliate_id": affiliate_id, "modality_id": modality_id},
            )
        return parameters.model_copy(update={"maximum_amount_modality": adjusted.value})
