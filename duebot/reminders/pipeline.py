from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Protocol

from loguru import logger

from duebot.billing.models import CustomerRecord
from duebot.reminders.evaluator import select_due
from duebot.reminders.notifier import NotificationResult, notify
from duebot.session.state import SessionManager

DEFAULT_THRESHOLD_DAYS = 3

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class CustomerSource(Protocol):
    async def fetch_customers(self) -> list[CustomerRecord]: ...


@dataclass(frozen=True)
class PassSummary:
    threshold_days: int
    trigger: str
    fetched: int
    selected: int
    results: tuple[NotificationResult, ...] = ()

    @property
    def sent(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.sent


def parse_threshold(raw: Optional[str], default: int = DEFAULT_THRESHOLD_DAYS) -> int:
    """``"5"`` and ``"5d"`` give 5; missing or non-numeric input gives the default."""
    if raw is None:
        return default
    m = _LEADING_INT.match(raw)
    return int(m.group(1)) if m else default


async def run_due_pass(
    billing: CustomerSource,
    session: Optional[SessionManager],
    threshold_days: int,
    *,
    trigger: str = "manual",
    today: Optional[date | datetime] = None,
    tz: tzinfo = timezone.utc,
) -> PassSummary:
    """Fetch, filter, notify. Shared by ``/vencimento`` and the daily cron.

    NetworkError, InvalidRecordError and SessionUnavailableError abort the pass
    and propagate to the trigger; per-customer send failures do not.
    """
    tag = "[CRON] " if trigger == "cron" else ""
    customers = await billing.fetch_customers()
    now = today if today is not None else datetime.now(tz)
    due = select_due(now, threshold_days, customers, tz)
    logger.info(f"{tag}{len(due)}/{len(customers)} cliente(s) com vencimento em {threshold_days} dia(s)")
    results = await notify(session, due, tag=tag) if due else []
    return PassSummary(threshold_days, trigger, len(customers), len(due), tuple(results))
