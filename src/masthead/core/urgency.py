"""Deadline urgency classification - pure logic, no I/O."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable

from .dates import as_date

CRITICAL_DAYS = 0
URGENT_DAYS = 2
WARNING_DAYS = 7

# Sort position for items without a deadline
NO_DEADLINE_DAYS = 999


class UrgencyLevel(Enum):
    """Urgency bucket, most pressing first."""

    CRITICAL = "critical"
    URGENT = "urgent"
    WARNING = "warning"
    WAITING = "waiting"


@dataclass(frozen=True)
class UrgencyCounts:
    """Dashboard counts: warning and waiting are folded into normal."""

    critical: int = 0
    urgent: int = 0
    normal: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.urgent + self.normal

    def to_dict(self) -> dict[str, int]:
        return {"critical": self.critical, "urgent": self.urgent, "normal": self.normal}


def days_left(deadline: date | datetime, today: date | datetime) -> int:
    """Whole calendar days from today until deadline (negative if overdue)."""
    return (as_date(deadline, "deadline") - as_date(today, "today")).days


def classify(deadline: date | datetime | None, today: date | datetime) -> UrgencyLevel:
    """
    Bucket a deadline relative to today.

    <= 0 days: critical
    1-2 days:  urgent
    3-7 days:  warning
    > 7 days or no deadline: waiting
    """
    if deadline is None:
        as_date(today, "today")
        return UrgencyLevel.WAITING

    remaining = days_left(deadline, today)
    if remaining <= CRITICAL_DAYS:
        return UrgencyLevel.CRITICAL
    if remaining <= URGENT_DAYS:
        return UrgencyLevel.URGENT
    if remaining <= WARNING_DAYS:
        return UrgencyLevel.WARNING
    return UrgencyLevel.WAITING


def aggregate(
    deadlines: Iterable[date | datetime | None],
    today: date | datetime,
) -> UrgencyCounts:
    """Count deadlines per dashboard bucket (critical / urgent / normal)."""
    critical = urgent = normal = 0
    for deadline in deadlines:
        level = classify(deadline, today)
        if level is UrgencyLevel.CRITICAL:
            critical += 1
        elif level is UrgencyLevel.URGENT:
            urgent += 1
        else:
            normal += 1
    return UrgencyCounts(critical=critical, urgent=urgent, normal=normal)


def classify_reminder(scheduled_for: date | datetime, today: date | datetime) -> UrgencyLevel:
    """Pending reminders only come in two flavours: critical or urgent."""
    if classify(scheduled_for, today) is UrgencyLevel.CRITICAL:
        return UrgencyLevel.CRITICAL
    return UrgencyLevel.URGENT


@dataclass
class DeadlineItem:
    """Anything with a deadline shown on the dashboard (lineup item, insert, task)."""

    id: str
    title: str
    deadline: date | None
    source: str = ""


@dataclass
class RankedDeadline:
    item: DeadlineItem
    days_left: int
    level: UrgencyLevel

    def format_deadline(self) -> str:
        if self.item.deadline is None:
            return "no date"
        return self.item.deadline.strftime("%d/%m/%Y")


def rank_deadlines(items: Iterable[DeadlineItem], today: date) -> list[RankedDeadline]:
    """
    Classify items and sort by days left, soonest first.

    Items without a deadline sort last.
    """
    ranked = []
    for item in items:
        remaining = (
            days_left(item.deadline, today) if item.deadline is not None else NO_DEADLINE_DAYS
        )
        ranked.append(RankedDeadline(item, remaining, classify(item.deadline, today)))
    return sorted(ranked, key=lambda r: r.days_left)
