"""Documents an affiliate must present for a given loan modality."""

from __future__ import annotations

from typing import Any

from preeval.core.exceptions import NotFoundError
from preeval.core.protocols import IMessageBus
from preeval.core.types import AffiliateId, ModalityId
from preeval.messaging.envelope import unwrap_data
from preeval.messaging.topics import Topics
from preeval.models.documents import LoanDocument, LoanDocuments
from preeval.models.parsing import to_optional_int
from preeval.services.affiliate_resolver import AffiliateProfileResolver

REQUIREMENT_RELATIONS = [
    "procedureRequirements",
    "procedureRequirements.procedureDocument",
]


def extract_documents(requirements: Any) -> list[LoanDocument]:
    """One document per requirement that has one, in requirement order."""
    if not isinstance(requirements, list):
        return []
    documents = []
    for requirement in requirements:
        if not isinstance(requirement, dict):
            continue
        document = requirement.get("procedureDocument")
        if not isinstance(document, dict):
            continue
        document_id = to_optional_int(document.get("id"))
        if not document_id:
            continue
        documents.append(LoanDocument(
            id=document_id,
            name=document.get("name"),
            description=document.get("description"),
            number=to_optional_int(requirement.get("number")),
        ))
    # unnumbered requirements go last
    return sorted(documents, key=lambda doc: (doc.number is None, doc.number or 0))


class LoanDocumentsService:
    def __init__(self, bus: IMessageBus, resolver: AffiliateProfileResolver) -> None:
        self._bus = bus
        self._resolver = resolver

    async def get_loan_documents(self, affiliate_id: AffiliateId, modality_id: ModalityId) -> LoanDocuments:
        await self._resolver.resolve_profile(affiliate_id)

        response = await self._bus.request(Topics.MODULES_FIND_RELATIONS, {
            "id": modality_id,
            "entity": "procedureModality",
            "relations": REQUIREMENT_RELATIONS,
        })
        modality = unwrap_data(response)
        if not isinstance(modality, dict):
            raise NotFoundError("procedure modality", modality_id)

        return LoanDocuments(
            affiliate_id=affiliate_id,
            procedure_modality_id=modality_id,
            documents=extract_documents(modality.get("procedureRequirements")),
        )
