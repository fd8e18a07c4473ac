"""Pre-evaluation service: the operations exposed to the rest of the platform.

Primary identity lookups fail hard (``NotFoundError`` / ``UpstreamFailure``);
secondary enrichment (pension entity, parameters, interests, fund cap)
degrades to neutral defaults so the main answer is still returned.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from preeval.core.config import PreEvaluationConfig
from preeval.core.exceptions import PreEvalError
from preeval.core.protocols import IMessageBus
from preeval.core.types import AffiliateId, ModalityId
from preeval.messaging.envelope import unwrap_data
from preeval.messaging.topics import Topics
from preeval.models.affiliate import AffiliateProfile
from preeval.models.documents import LoanDocuments
from preeval.models.modality import EligibleModality, LoanModality
from preeval.models.responses import ServiceResponse
from preeval.services.affiliate_resolver import AffiliateProfileResolver
from preeval.services.contributions import RecentContributionsService
from preeval.services.documents import LoanDocumentsService
from preeval.services.modality_filter import filter_eligible, parse_catalog
from preeval.services.parameter_fetcher import BatchParameterFetcher, ParameterIndex
from preeval.services.parameter_mapper import ParameterMapper
from preeval.services.retirement_fund import RetirementFundService

logger = logging.getLogger(__name__)


class PreEvaluationService:
    """Composes the resolver, filter, fetcher and mapper behind one facade."""

    def __init__(self, bus: IMessageBus, rules: PreEvaluationConfig | None = None) -> None:
        rules = rules or PreEvaluationConfig()
        self._bus = bus
        self._resolver = AffiliateProfileResolver(bus)
        self._fetcher = BatchParameterFetcher(bus)
        self._fund = RetirementFundService(bus, self._resolver)
        self._mapper = ParameterMapper(self._fund)
        self._documents = LoanDocumentsService(bus, self._resolver)
        self._contributions = RecentContributionsService(
            bus, months=rules.recent_contribution_months, limit=rules.recent_contribution_limit,
        )

    async def get_affiliate_info(self, affiliate_id: AffiliateId) -> AffiliateProfile:
        return await self._resolver.resolve_profile(affiliate_id)

    async def get_loan_modalities(self, affiliate_id: AffiliateId) -> list[LoanModality]:
        """Modalities the affiliate may apply for, each with its computed terms.

        Never raises for business or upstream problems: an ineligible or
        unknown affiliate gets an empty list.
        """
        profile, catalog_response = await asyncio.gather(
            self._resolver.resolve_profile(affiliate_id),
            self._bus.request(Topics.MODALITIES_FIND_ALL, {}),
            return_exceptions=True,
        )
        for result in (profile, catalog_response):
            if isinstance(result, PreEvalError):
                logger.warning("No modalities for affiliate %s: %s", affiliate_id, result)
                return []
            if isinstance(result, BaseException):
                raise result

        if profile.is_offered_nothing:
            return []

        catalog = parse_catalog(unwrap_data(catalog_response, []))
        valid_count = sum(1 for entry in catalog if entry.is_valid)
        logger.debug("Catalog modalities: %d, valid: %d", len(catalog), valid_count)

        pension_entity_name = profile.pension_entity_name
        if not pension_entity_name:
            resolved = await self._resolver.resolve_pension_entity_name(affiliate_id)
            if resolved.degraded:
                logger.warning("Pension entity unresolved for affiliate %s: %s", affiliate_id, resolved.reason)
            pension_entity_name = resolved.value

        eligible = filter_eligible(
            catalog,
            profile.state_type_name.lower(),
            profile.subsector,
            pension_entity_name or "",
            profile.category or "",
        )
        logger.debug("Eligible modalities for affiliate %s: %d", affiliate_id, len(eligible))
        if not eligible:
            return []

        index = await self._fetcher.fetch(modality.id for modality in eligible)
        return list(await asyncio.gather(*(
            self._enrich(position, modality, profile, pension_entity_name, index)
            for position, modality in enumerate(eligible, start=1)
        )))

    async def _enrich(
        self,
        position: int,
        modality: EligibleModality,
        profile: AffiliateProfile,
        pension_entity_name: Optional[str],
        index: ParameterIndex,
    ) -> LoanModality:
        raw = index.parameters.get(modality.id)
        parameters = None
        if raw is not None:
            parameters = await self._mapper.map_parameters(
                raw, modality.id, profile.affiliate_id, index.interests.get(modality.id),
            )
        return LoanModality(
            id=position,
            affiliate_id=profile.affiliate_id,
            procedure_modality_id=modality.id,
            procedure_type_id=modality.entry.procedure_type_id,
            name=modality.name,
            category=profile.category,
            pension_entity_name=pension_entity_name,
            affiliate_state_type=profile.state_type_name,
            subsector=profile.subsector.value,
            parameters=parameters,
        )

    async def get_loan_documents(self, affiliate_id: AffiliateId, modality_id: ModalityId) -> LoanDocuments:
        return await self._documents.get_loan_documents(affiliate_id, modality_id)

    async def get_recent_contributions(self, affiliate_id: AffiliateId) -> ServiceResponse:
        return await self._contributions.get_recent_contributions(affiliate_id)

    async def get_retirement_fund_average(self, affiliate_id: AffiliateId) -> ServiceResponse:
        return await self._fund.get_average(affiliate_id)
