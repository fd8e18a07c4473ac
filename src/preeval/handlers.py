"""Inbound message-pattern table: topic -> service operation."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from preeval.core.exceptions import InvalidPayloadError
from preeval.messaging.topics import InboundTopics
from preeval.services.pre_evaluation import PreEvaluationService

MessageHandler = Callable[[Any], Awaitable[Any]]


def parse_int_field(payload: Any, field: str) -> int:
    """Read ``field`` from the payload as an integer ("12" is accepted)."""
    value = payload.get(field) if isinstance(payload, dict) else None
    if isinstance(value, bool):
        raise InvalidPayloadError(field, value)
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise InvalidPayloadError(field, value) from exc


def to_json(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, list):
        return [to_json(item) for item in result]
    return result


def build_message_handlers(service: PreEvaluationService) -> dict[str, MessageHandler]:
    async def affiliate_info(payload: Any) -> Any:
        return to_json(await service.get_affiliate_info(parse_int_field(payload, "affiliateId")))

    async def loan_modalities(payload: Any) -> Any:
        return to_json(await service.get_loan_modalities(parse_int_field(payload, "affiliateId")))

    async def loan_documents(payload: Any) -> Any:
        return to_json(await service.get_loan_documents(
            parse_int_field(payload, "affiliateId"),
            parse_int_field(payload, "procedureModalityId"),
        ))

    async def recent_contributions(payload: Any) -> Any:
        return to_json(await service.get_recent_contributions(parse_int_field(payload, "affiliateId")))

    async def retirement_fund_average(payload: Any) -> Any:
        return to_json(await service.get_retirement_fund_average(parse_int_field(payload, "affiliateId")))

    return {
        InboundTopics.AFFILIATE_INFO: affiliate_info,
        InboundTopics.LOAN_MODALITIES: loan_modalities,
        InboundTopics.LOAN_DOCUMENTS: loan_documents,
        InboundTopics.RECENT_CONTRIBUTIONS: recent_contributions,
        InboundTopics.RETIREMENT_FUND_AVERAGE: retirement_fund_average,
    }
