"""Functional core - pure scheduling logic with no I/O."""

from .urgency import (
    UrgencyLevel,
    UrgencyCounts,
    DeadlineItem,
    RankedDeadline,
    classify,
    aggregate,
    classify_reminder,
    days_left,
    rank_deadlines,
)
from .recurrence import (
    RecurrenceType,
    RecurrenceConfig,
    Occurrences,
    next_occurrence,
    should_create_today,
    enumerate_occurrences,
    describe_recurrence,
)
from .reminders import (
    ContactMethod,
    DeadlineNotice,
    ExistingReminders,
    Issue,
    LineupItem,
    Milestone,
    NewReminder,
    OverdueNotice,
    Reminder,
    ReminderKind,
    ReminderPlan,
    ReminderSettings,
    ReminderStatus,
    Supplier,
    contact_method,
    pending_reminder_view,
    plan_reminders,
)
from .tasks import AlertBefore, WorkTask, due_tomorrow, in_alert_window, recurring_due_today

__all__ = [
    # Urgency
    "UrgencyLevel",
    "UrgencyCounts",
    "DeadlineItem",
    "RankedDeadline",
    "classify",
    "aggregate",
    "classify_reminder",
    "days_left",
    "rank_deadlines",
    # Recurrence
    "RecurrenceType",
    "RecurrenceConfig",
    "Occurrences",
    "next_occurrence",
    "should_create_today",
    "enumerate_occurrences",
    "describe_recurrence",
    # Reminders
    "ContactMethod",
    "DeadlineNotice",
    "ExistingReminders",
    "Issue",
    "LineupItem",
    "Milestone",
    "NewReminder",
    "OverdueNotice",
    "Reminder",
    "ReminderKind",
    "ReminderPlan",
    "ReminderSettings",
    "ReminderStatus",
    "Supplier",
    "contact_method",
    "pending_reminder_view",
    "plan_reminders",
    # Tasks
    "AlertBefore",
    "WorkTask",
    "due_tomorrow",
    "in_alert_window",
    "recurring_due_today",
]
