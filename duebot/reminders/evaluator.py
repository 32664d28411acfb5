"""Due-date evaluator: which customers get a reminder today.

``select_due`` is pure. It reads neither the clock nor the network, so a pass
can be replayed with a fixed ``today``.

The distance to a due date is ``ceil((due - today) / 1 day)`` over the raw time
difference. Time of day is *not* truncated: with ``today`` at 10:00 a due date
at midnight four days later is 3.58 days away and counts as 4. Date-only due
dates mean midnight; values without an offset are read in ``tz``.
"""
from __future__ import annotations

import math
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, List

from duebot.billing.models import CustomerRecord
from duebot.errors import InvalidRecordError

DAY_SECONDS = 24 * 60 * 60


def as_instant(value: date | datetime, tz: tzinfo = timezone.utc) -> datetime:
    """Aware datetime for ``value``; dates become midnight in ``tz``."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value


def parse_due_date(raw: str, tz: tzinfo = timezone.utc) -> datetime:
    """Parse an ISO-8601 date or date-time; raises ValueError when it isn't one."""
    return as_instant(datetime.fromisoformat(raw.strip()), tz)


def days_until(due: datetime, today: datetime) -> int:
    return math.ceil((due - today).total_seconds() / DAY_SECONDS)


def select_due(
    today: date | datetime,
    threshold_days: int,
    customers: Iterable[CustomerRecord],
    tz: tzinfo = timezone.utc,
) -> List[CustomerRecord]:
    now = as_instant(today, tz)
    selected = []
    for i, c in enumerate(customers):
        try:
            due = parse_due_date(c.due_date, tz)
        except (TypeError, ValueError) as e:
            raise InvalidRecordError(i, c.name, c.due_date) from e
        if days_until(due, now) == threshold_days:
            selected.append(c)
    return selected
