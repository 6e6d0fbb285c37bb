"""Internal task deadline logic - pure functions, no I/O."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from .dates import as_date, parse_date, parse_datetime
from .recurrence import RecurrenceConfig, RecurrenceType, should_create_today

COMPLETED = "completed"
ALERT_WINDOW = timedelta(hours=1)


class AlertBefore(Enum):
    """How long before the due date a recurring task alerts its assignees."""

    DAY = "day"
    WEEK = "week"
    TWO_WEEKS = "two_weeks"
    MONTH = "month"

    @property
    def label(self) -> str:
        return {"day": "a day", "week": "a week", "two_weeks": "two weeks", "month": "a month"}[self.value]

    @classmethod
    def parse(cls, raw: str | None) -> "AlertBefore | None":
        """'none' and empty values mean no alert; anything else unknown is an error."""
        if not raw or raw == "none":
            return None
        return cls(raw)


_ALERT_OFFSETS = {
    AlertBefore.DAY: relativedelta(days=1),
    AlertBefore.WEEK: relativedelta(days=7),
    AlertBefore.TWO_WEEKS: relativedelta(days=14),
    AlertBefore.MONTH: relativedelta(months=1),
}


@dataclass
class WorkTask:
    """An internal production task."""

    id: str
    title: str
    status: str = "new"
    due_date: datetime | None = None
    deadline_reminder_sent: bool = False
    recurrence_type: RecurrenceType | None = None
    recurrence_start_date: date | None = None
    recurrence_end_date: date | None = None
    recurrence_last_created: date | None = None
    recurrence_alert_before: AlertBefore | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_type is not None

    @classmethod
    def from_row(cls, data: dict) -> "WorkTask":
        """Create WorkTask from a tasks table row."""
        recurrence = data.get("recurrence_type")
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            status=data.get("status") or "new",
            due_date=parse_datetime(data.get("due_date")),
            deadline_reminder_sent=bool(data.get("deadline_reminder_sent")),
            recurrence_type=RecurrenceType(recurrence) if recurrence else None,
            recurrence_start_date=parse_date(data.get("recurrence_start_date")),
            recurrence_end_date=parse_date(data.get("recurrence_end_date")),
            recurrence_last_created=parse_date(data.get("recurrence_last_created")),
            recurrence_alert_before=AlertBefore.parse(data.get("recurrence_alert_before")),
        )


def due_tomorrow(tasks: list[WorkTask], today: date) -> list[WorkTask]:
    """Open tasks due tomorrow whose deadline reminder hasn't gone out."""
    tomorrow = as_date(today, "today") + timedelta(days=1)
    return [
        t
        for t in tasks
        if not t.is_completed
        and not t.deadline_reminder_sent
        and t.due_date is not None
        and as_date(t.due_date) == tomorrow
    ]


def alert_time(due: datetime, alert_before: AlertBefore) -> datetime:
    """When the pre-deadline alert should fire."""
    return due - _ALERT_OFFSETS[alert_before]


def in_alert_window(task: WorkTask, now: datetime, window: timedelta = ALERT_WINDOW) -> bool:
    """True when now is within +/- window of the task's alert time."""
    if (
        not task.is_recurring
        or task.is_completed
        or task.due_date is None
        or task.recurrence_alert_before is None
    ):
        return False
    fire_at = alert_time(task.due_date, task.recurrence_alert_before)
    return fire_at - window <= now <= fire_at + window


def recurrence_config(task: WorkTask) -> RecurrenceConfig | None:
    """The task's schedule, or None if it doesn't recur."""
    if task.recurrence_type is None:
        return None
    start = task.recurrence_start_date
    if start is None and task.due_date is not None:
        start = as_date(task.due_date)
    if start is None:
        return None
    return RecurrenceConfig(
        type=task.recurrence_type,
        start_date=start,
        end_date=task.recurrence_end_date,
        last_created=task.recurrence_last_created,
    )


def recurring_due_today(tasks: list[WorkTask], today: date) -> list[WorkTask]:
    """Recurring task templates that should get a new occurrence today."""
    due = []
    for task in tasks:
        config = recurrence_config(task)
        if config is not None and should_create_today(config, today):
            due.append(task)
    return due
