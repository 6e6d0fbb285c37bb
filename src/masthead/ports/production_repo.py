"""Production data repository interface."""

from datetime import date, datetime
from typing import Protocol

from masthead.core.reminders import (
    DeadlineNotice,
    ExistingReminders,
    Issue,
    NewReminder,
    OverdueNotice,
    Reminder,
    ReminderSettings,
    ReminderStatus,
)
from masthead.core.tasks import WorkTask
from masthead.core.urgency import DeadlineItem


class ProductionRepository(Protocol):
    """Interface for reading and writing production records in any backend."""

    def fetch_active_issues(self, today: date) -> list[Issue]:
        """Issues in progress or draft that haven't gone to print yet."""
        ...

    def fetch_lineup_deadlines(self) -> list[DeadlineItem]:
        """Incomplete lineup items with their issue's sketch close date."""
        ...

    def fetch_editor_ids(self) -> list[str]:
        """User IDs with the editor or admin role."""
        ...

    def fetch_reminder_settings(self, user_id: str | None = None) -> ReminderSettings:
        """Reminder toggles; defaults when none are stored."""
        ...

    def fetch_existing_reminders(self) -> ExistingReminders:
        """Dedup keys of automatic reminders and editor notices on record."""
        ...

    def fetch_reminders(self, status: ReminderStatus | None = None) -> list[Reminder]:
        """Reminders, optionally filtered by status."""
        ...

    def create_reminders(self, reminders: list[NewReminder], created_by: str | None = None) -> int:
        """Insert reminders. Returns the number created."""
        ...

    def create_notices(self, notices: list[OverdueNotice | DeadlineNotice]) -> int:
        """Insert editor notifications (overdue and milestone notices). Returns the number created."""
        ...

    def update_reminder_status(self, reminder_id: str, status: ReminderStatus) -> None:
        """Mark a reminder sent or cancelled."""
        ...

    def fetch_tasks(self) -> list[WorkTask]:
        """All internal tasks."""
        ...

    def fetch_task_assignees(self, task_ids: list[str]) -> dict[str, list[str]]:
        """Map task ID to assignee user IDs."""
        ...

    def create_task_notifications(
        self, user_ids: list[str], title: str, message: str, link: str = "/tasks"
    ) -> int:
        """Insert one in-app notification per user. Returns the number created."""
        ...

    def has_task_alert(self, link: str, since: datetime) -> bool:
        """Whether a task notification with this link was created since the given time."""
        ...

    def mark_deadline_reminders_sent(self, task_ids: list[str]) -> None:
        """Flag tasks so their deadline reminder isn't sent twice."""
        ...

    def materialize_occurrence(self, task: WorkTask, occurrence: date) -> str:
        """Create a task row for one occurrence and record it as last created. Returns the new ID."""
        ...
