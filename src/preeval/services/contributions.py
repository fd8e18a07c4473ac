"""Most recent quotable contributions of an affiliate."""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime
from typing import Any, Callable, Optional

from preeval.core.exceptions import UpstreamFailure
from preeval.core.protocols import IMessageBus
from preeval.core.types import AffiliateId, JsonDict
from preeval.messaging.envelope import unwrap_data
from preeval.messaging.topics import Topics
from preeval.models.parsing import to_number
from preeval.models.responses import ServiceResponse

logger = logging.getLogger(__name__)

# Error text the contributions service uses when an affiliate has none.
NO_CONTRIBUTIONS_MARKER = "No se encontraron aportes"

AMOUNT_FIELDS = {
    "quotable": "quotable",
    "seniority_bonus": "seniorityBonus",
    "study_bonus": "studyBonus",
    "position_bonus": "positionBonus",
    "border_bonus": "borderBonus",
    "east_bonus": "eastBonus",
    "gain": "gain",
    "payable_liquid": "payableLiquid",
}


def format_european(value: float) -> str:
    """5715.5 -> "5.715,50"."""
    if not value:
        return "0,00"
    return f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")


def months_before(day: date, months: int) -> date:
    """Same day ``months`` earlier, clamped to the end of shorter months."""
    index = day.year * 12 + day.month - 1 - months
    year, month = divmod(index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(day.day, last_day))


def _parse_month(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


class RecentContributionsService:
    def __init__(
        self,
        bus: IMessageBus,
        months: int = 3,
        limit: int = 3,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._bus = bus
        self._months = months
        self._limit = limit
        self._today = today

    def period(self) -> dict[str, str]:
        today = self._today()
        return {"from": months_before(today, self._months).isoformat(), "to": today.isoformat()}

    def _empty(self, affiliate_id: AffiliateId) -> ServiceResponse:
        return ServiceResponse.success("No contributions found for the affiliate", {
            "affiliateId": affiliate_id,
            "total_contributions": 0,
            "contributions": [],
            "period": self.period(),
        })

    def select_recent(self, contributions: list[Any]) -> list[JsonDict]:
        """Quotable contributions inside the window, newest first."""
        since = months_before(self._today(), self._months)
        recent = []
        for contribution in contributions:
            if not isinstance(contribution, dict):
                continue
            month = _parse_month(contribution.get("monthYear"))
            if month is None or month < since or to_number(contribution.get("quotable")) <= 0:
                continue
            recent.append((month, contribution))

        recent.sort(key=lambda item: item[0], reverse=True)
        selected = []
        for _, contribution in recent[: self._limit]:
            row: JsonDict = {"id": contribution.get("id"), "month_year": contribution.get("monthYear")}
            for target, source in AMOUNT_FIELDS.items():
                row[target] = format_european(to_number(contribution.get(source)))
            selected.append(row)
        return selected

    async def get_recent_contributions(self, affiliate_id: AffiliateId) -> ServiceResponse:
        """Never raises; an affiliate without contributions is a successful empty answer."""
        try:
            response = await self._bus.request(Topics.CONTRIBUTIONS_BY_AFFILIATE, affiliate_id)
        except UpstreamFailure as exc:
            if NO_CONTRIBUTIONS_MARKER in str(exc):
                return self._empty(affiliate_id)
            logger.error("Could not fetch contributions for affiliate %s: %s", affiliate_id, exc)
            return ServiceResponse.failure("Internal server error")

        contributions = response if isinstance(response, list) else unwrap_data(response, [])
        if not isinstance(contributions, list) or not contributions:
            logger.warning("No contributions found for affiliate %s", affiliate_id)
            return self._empty(affiliate_id)

        recent = self.select_recent(contributions)
        logger.debug("Affiliate %s: %d of %d contributions are recent", affiliate_id, len(recent), len(contributions))
        return ServiceResponse.success("Recent contributions of the affiliate", {
            "affiliateId": affiliate_id,
            "total_contributions": len(recent),
            "contributions": recent,
            "period": self.period(),
        })
