"""Pre-evaluation endpoints mirroring the inbound message topics."""

from __future__ import annotations

from fastapi import APIRouter, Request

from preeval.models.affiliate import AffiliateProfile
from preeval.models.documents import LoanDocuments
from preeval.models.modality import LoanModality
from preeval.models.responses import ServiceResponse
from preeval.services.pre_evaluation import PreEvaluationService

router = APIRouter(tags=["pre-evaluation"])


def _service(request: Request) -> PreEvaluationService:
    return request.app.state.service


@router.get("/{affiliate_id}", response_model=AffiliateProfile)
async def affiliate_info(affiliate_id: int, request: Request) -> AffiliateProfile:
    return await _service(request).get_affiliate_info(affiliate_id)


@router.get("/{affiliate_id}/loan-modalities", response_model=list[LoanModality])
async def loan_modalities(affiliate_id: int, request: Request) -> list[LoanModality]:
    return await _service(request).get_loan_modalities(affiliate_id)


@router.get("/{affiliate_id}/loan-modalities/{modality_id}/documents", response_model=LoanDocuments)
async def loan_documents(affiliate_id: int, modality_id: int, request: Request) -> LoanDocuments:
    return await _service(request).get_loan_documents(affiliate_id, modality_id)


@router.get("/{affiliate_id}/retirement-fund-average", response_model=ServiceResponse)
async def retirement_fund_average(affiliate_id: int, request: Request) -> ServiceResponse:
    return await _service(request).get_retirement_fund_average(affiliate_id)


@router.get("/{affiliate_id}/contributions", response_model=ServiceResponse)
async def recent_contributions(affiliate_id: int, request: Request) -> ServiceResponse:
    return await _service(request).get_recent_contributions(affiliate_id)
