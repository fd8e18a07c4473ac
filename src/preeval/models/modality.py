"""Loan modality catalog entries, raw parameter rows and computed terms."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from preeval.models.parsing import drop_nulls, to_number, to_optional_int


class ModalityCatalogEntry(BaseModel):
    """A procedure modality from the catalog (read-only reference data)."""

    model_config = {"frozen": True}

    id: int
    procedure_type_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("procedure_type_id", "procedureTypeId"),
    )
    name: str = ""
    is_valid: bool = False

    @model_validator(mode="before")
    @classmethod
    def _normalize_validity(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = drop_nulls(data)
        # Only a literal boolean true under either spelling counts as valid.
        data["is_valid"] = data.get("isValid") is True or data.get("is_valid") is True
        return data

    @field_validator("procedure_type_id", mode="before")
    @classmethod
    def _parse_type_id(cls, value: Any) -> Optional[int]:
        return to_optional_int(value)


class EligibleModality(BaseModel):
    """A catalog entry that survived filtering, with its ordering key."""

    model_config = {"frozen": True}

    entry: ModalityCatalogEntry
    normalized_name: str
    sort_order: int

    @property
    def id(self) -> int:
        return self.entry.id

    @property
    def name(self) -> str:
        return self.entry.name


PARAMETER_FIELDS = (
    "debt_index",
    "guarantors",
    "max_lenders",
    "min_lender_category",
    "max_lender_category",
    "minimum_amount_modality",
    "maximum_amount_modality",
    "minimum_term_modality",
    "maximum_term_modality",
    "loan_month_term",
    "coverage_percentage",
)


def _aliases(snake: str, camel: str) -> Any:
    # snake_case first, camelCase second; the first non-null value wins
    return Field(default=0.0, validation_alias=AliasChoices(snake, camel))


class RawLoanParameters(BaseModel):
    """Per-modality parameter row as delivered by the parameter store."""

    model_config = {"frozen": True}

    procedure_modality_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("procedureModalityId", "procedure_modality_id"),
    )
    debt_index: float = _aliases("debt_index", "debtIndex")
    guarantors: float = 0.0
    max_lenders: float = _aliases("max_lenders", "maxLenders")
    min_lender_category: float = _aliases("min_lender_category", "minLenderCategory")
    max_lender_category: float = _aliases("max_lender_category", "maxLenderCategory")
    minimum_amount_modality: float = _aliases("minimum_amount_modality", "minimumAmountModality")
    maximum_amount_modality: float = _aliases("maximum_amount_modality", "maximumAmountModality")
    minimum_term_modality: float = _aliases("minimum_term_modality", "minimumTermModality")
    maximum_term_modality: float = _aliases("maximum_term_modality", "maximumTermModality")
    loan_month_term: float = _aliases("loan_month_term", "loanMonthTerm")
    coverage_percentage: float = _aliases("coverage_percentage", "coveragePercentage")

    @model_validator(mode="before")
    @classmethod
    def _skip_nulls(cls, data: Any) -> Any:
        return drop_nulls(data) if data is not None else {}

    @field_validator(*PARAMETER_FIELDS, mode="before")
    @classmethod
    def _parse_number(cls, value: Any) -> float:
        return to_number(value)

    @field_validator("procedure_modality_id", mode="before")
    @classmethod
    def _parse_modality_id(cls, value: Any) -> Optional[int]:
        return to_optional_int(value)


class LoanInterestEntry(BaseModel):
    """Interest row for a modality; the rate is used exactly as supplied."""

    model_config = {"frozen": True}

    annual_interest: float = Field(
        default=0.0, validation_alias=AliasChoices("annualInterest", "annual_interest"),
    )

    @model_validator(mode="before")
    @classmethod
    def _skip_nulls(cls, data: Any) -> Any:
        return drop_nulls(data) if data is not None else {}

    @field_validator("annual_interest", mode="before")
    @classmethod
    def _parse_rate(cls, value: Any) -> float:
        return to_number(value)


class ComputedLoanParameters(BaseModel):
    """Loan terms shown to the affiliate for one modality."""

    model_config = {"frozen": True}

    debt_index: float = 0.0
    guarantors: float = 0.0
    max_lenders: float = 0.0
    min_lender_category: float = 0.0
    max_lender_category: float = 0.0
    maximum_amount_modality: float = 0.0
    minimum_amount_modality: float = 0.0
    maximum_term_modality: float = 0.0
    minimum_term_modality: float = 0.0
    loan_month_term: float = 0.0
    coverage_percentage: float = 0.0
    annual_interest: float = 0.0
    period_interest: float = 0.0


class LoanModality(BaseModel):
    """One eligible modality enriched with the affiliate's profile and terms."""

    model_config = {"frozen": True}

    id: int  # 1-based display position
    affiliate_id: int
    procedure_modality_id: int
    procedure_type_id: Optional[int] = None
    name: str
    category: Optional[str] = None
    pension_entity_name: Optional[str] = None
    affiliate_state_type: str
    subsector: Optional[str] = None
    parameters: Optional[ComputedLoanParameters] = None
