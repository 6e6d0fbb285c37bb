"""Recurring task schedule computation - pure logic, no I/O."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterator

from dateutil.relativedelta import relativedelta

from .dates import as_date

DEFAULT_OCCURRENCE_LIMIT = 100


class RecurrenceType(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def label(self) -> str:
        return self.value.capitalize()


# relativedelta clamps month/year steps to the last valid day:
# 2025-01-31 + 1 month = 2025-02-28, 2024-02-29 + 1 year = 2025-02-28.
_STEPS = {
    RecurrenceType.DAILY: relativedelta(days=1),
    RecurrenceType.WEEKLY: relativedelta(weeks=1),
    RecurrenceType.MONTHLY: relativedelta(months=1),
    RecurrenceType.YEARLY: relativedelta(years=1),
}


@dataclass(frozen=True)
class RecurrenceConfig:
    """A recurring schedule. end_date is inclusive."""

    type: RecurrenceType
    start_date: date
    end_date: date | None = None
    last_created: date | None = None

    def __post_init__(self):
        if not isinstance(self.type, RecurrenceType):
            raise ValueError(f"Unknown recurrence type: {self.type!r}")


def next_occurrence(
    recurrence_type: RecurrenceType,
    start_date: date | datetime,
    last_created: date | datetime | None = None,
) -> date:
    """One recurrence step after last_created, or after start_date if nothing was created yet."""
    try:
        step = _STEPS[recurrence_type]
    except KeyError:
        raise ValueError(f"Unknown recurrence type: {recurrence_type!r}") from None

    if last_created is not None:
        base = as_date(last_created, "last_created")
    else:
        base = as_date(start_date, "start_date")
    return base + step


def should_create_today(config: RecurrenceConfig, today: date | datetime) -> bool:
    """
    Decide whether a new occurrence is due.

    Pure: the caller materializes the occurrence and persists last_created.
    """
    today = as_date(today, "today")
    start = as_date(config.start_date, "start_date")

    if today < start:
        return False

    # The whole end day still counts
    if config.end_date is not None and today > as_date(config.end_date, "end_date"):
        return False

    if config.last_created is None:
        return True

    return today >= next_occurrence(config.type, start, config.last_created)


class Occurrences:
    """
    Occurrence dates of a schedule, capped at limit.

    Iterating again restarts from start_date.
    """

    def __init__(self, config: RecurrenceConfig, limit: int = DEFAULT_OCCURRENCE_LIMIT):
        if limit < 0:
            raise ValueError("limit must be >= 0")
        self.config = config
        self.limit = limit

    def __iter__(self) -> Iterator[date]:
        end = as_date(self.config.end_date, "end_date") if self.config.end_date else None
        current = as_date(self.config.start_date, "start_date")
        if end is not None and current > end:
            return

        count = 0
        while count < self.limit:
            yield current
            count += 1
            following = next_occurrence(self.config.type, self.config.start_date, current)
            if end is not None and following > end:
                break
            current = following

    def __repr__(self) -> str:
        return f"Occurrences({self.config!r}, limit={self.limit})"


def enumerate_occurrences(
    config: RecurrenceConfig,
    limit: int = DEFAULT_OCCURRENCE_LIMIT,
) -> Occurrences:
    """All occurrence dates from start_date, stopping at end_date or after limit items."""
    return Occurrences(config, limit)


def describe_recurrence(
    recurrence_type: RecurrenceType,
    start_date: date,
    end_date: date | None = None,
) -> str:
    """Human-readable schedule, e.g. 'Weekly from 1 Jan 2025 until 31 Mar 2025'."""

    def fmt(d: date) -> str:
        return f"{d.day} {d.strftime('%b %Y')}"

    text = f"{recurrence_type.label} from {fmt(start_date)}"
    if end_date:
        text += f" until {fmt(end_date)}"
    return text
