"""Required documents for a loan modality."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class LoanDocument(BaseModel):
    id: int
    name: Optional[str] = None
    description: Optional[str] = None
    number: Optional[int] = None  # requirement order


class LoanDocuments(BaseModel):
    affiliate_id: int
    procedure_modality_id: int
    documents: list[LoanDocument] = Field(default_factory=list)
