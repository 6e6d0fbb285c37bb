"""Shared workflow layer between CLI and daemon.

Each run_* function: reads through the repository, asks the core what to do,
writes the result back, and returns a summary. Callers pass today/now in.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from .adapters.supabase_rest import BackendError
from .core.recurrence import next_occurrence
from .core.reminders import (
    ContactMethod,
    PendingReminderView,
    ReminderPlan,
    ReminderStatus,
    pending_reminder_view,
    plan_reminders,
    whatsapp_link,
)
from .core.tasks import (
    ALERT_WINDOW,
    WorkTask,
    alert_time,
    due_tomorrow,
    in_alert_window,
    recurrence_config,
    recurring_due_today,
)
from .core.urgency import RankedDeadline, UrgencyCounts, UrgencyLevel, aggregate, rank_deadlines
from .ports import MessageSender, ProductionRepository

logger = logging.getLogger(__name__)


@dataclass
class ReminderCheckResult:
    plan: ReminderPlan
    reminders_created: int = 0
    notices_created: int = 0


@dataclass
class DashboardSummary:
    today: date
    counts: UrgencyCounts
    upcoming: list[RankedDeadline] = field(default_factory=list)
    pending: list[PendingReminderView] = field(default_factory=list)


@dataclass
class SendResult:
    reminder_id: str
    emailed: bool = False
    whatsapp_url: str | None = None


def run_reminder_check(repo: ProductionRepository, today: date, dry_run: bool = False) -> ReminderCheckResult:
    """Daily check: create due supplier reminders and editor overdue notices."""
    logger.info(f"Starting reminder check for {today.isoformat()}")
    issues = repo.fetch_active_issues(today)
    editor_ids = repo.fetch_editor_ids()

    plan = plan_reminders(
        issues,
        today,
        existing=repo.fetch_existing_reminders(),
        settings=repo.fetch_reminder_settings(),
        editor_ids=editor_ids,
    )
    for item in plan.skipped:
        logger.warning(f"Supplier for '{item.content}' has no email or phone, reminder skipped")

    result = ReminderCheckResult(plan=plan)
    if dry_run or plan.is_empty:
        return result

    created_by = editor_ids[0] if editor_ids else None
    result.reminders_created = repo.create_reminders(plan.reminders, created_by=created_by)
    result.notices_created = repo.create_notices(plan.notices)
    logger.info(
        f"Created {result.reminders_created} reminders and {result.notices_created} notifications"
    )
    return result


def build_dashboard(repo: ProductionRepository, today: date, limit: int = 10) -> DashboardSummary:
    """Urgency counts, nearest deadlines and reminders awaiting approval."""
    items = repo.fetch_lineup_deadlines()
    ranked = rank_deadlines(items, today)
    reminders = repo.fetch_reminders(ReminderStatus.PENDING)
    return DashboardSummary(
        today=today,
        counts=aggregate((i.deadline for i in items), today),
        upcoming=[r for r in ranked if r.level is not UrgencyLevel.WAITING][:limit],
        pending=pending_reminder_view(reminders, today),
    )


def format_dashboard(summary: DashboardSummary) -> str:
    """Markdown digest for editors."""
    counts = summary.counts
    lines = [
        f"*Production status - {summary.today.strftime('%A, %d %b')}*",
        "",
        f"Critical: {counts.critical}  Urgent: {counts.urgent}  Normal: {counts.normal}",
    ]

    if summary.upcoming:
        lines.append("")
        lines.append("*Nearest deadlines*")
        for r in summary.upcoming:
            if r.days_left < 0:
                when = f"overdue {-r.days_left}d"
            elif r.days_left == 0:
                when = "today"
            else:
                when = f"in {r.days_left}d"
            lines.append(f"- [{r.level.value}] {r.item.title} ({r.item.source}, {when})")

    if summary.pending:
        lines.append("")
        lines.append(f"*Reminders awaiting approval ({len(summary.pending)})*")
        for p in summary.pending[:5]:
            lines.append(f"- [{p.urgency.value}] {p.supplier_name}: {p.item_title}")

    return "\n".join(lines)


def send_reminder(
    repo: ProductionRepository,
    email: MessageSender,
    reminder_id: str,
) -> SendResult:
    """
    Approve and deliver a pending reminder.

    Email goes out directly; phone-only suppliers get a click-to-chat link
    for the editor. The reminder is marked sent either way.
    """
    pending = {r.id: r for r in repo.fetch_reminders(ReminderStatus.PENDING)}
    reminder = pending.get(reminder_id)
    if reminder is None:
        raise LookupError(f"No pending reminder {reminder_id}")

    result = SendResult(reminder_id=reminder_id)
    supplier = reminder.supplier
    method = supplier.contact_method if supplier else ContactMethod.NONE
    if method is ContactMethod.NONE:
        raise LookupError(f"Reminder {reminder_id} has no supplier contact details")

    if method in (ContactMethod.EMAIL, ContactMethod.BOTH):
        email.send(supplier.email, f"Reminder: {reminder.item_title}", reminder.message)
        result.emailed = True
    if method in (ContactMethod.WHATSAPP, ContactMethod.BOTH):
        result.whatsapp_url = whatsapp_link(supplier.phone, reminder.message)

    repo.update_reminder_status(reminder_id, ReminderStatus.SENT)
    return result


def dismiss_reminder(repo: ProductionRepository, reminder_id: str) -> None:
    repo.update_reminder_status(reminder_id, ReminderStatus.CANCELLED)


def run_task_deadline_check(repo: ProductionRepository, today: date) -> int:
    """Notify assignees of tasks due tomorrow. Returns notifications created."""
    tasks = due_tomorrow(repo.fetch_tasks(), today)
    if not tasks:
        return 0

    assignees = repo.fetch_task_assignees([t.id for t in tasks])
    created = 0
    notified = []
    for task in tasks:
        user_ids = assignees.get(task.id, [])
        if not user_ids:
            continue
        try:
            created += repo.create_task_notifications(
                user_ids,
                title=f'Reminder: "{task.title}" is due tomorrow',
                message=f'The task "{task.title}" is due tomorrow. Please make sure it is finished on time.',
            )
        except BackendError as e:
            logger.error(f"Deadline notification for task {task.id} failed: {e}")
            continue
        notified.append(task.id)

    repo.mark_deadline_reminders_sent(notified)
    logger.info(f"Created {created} task deadline notifications")
    return created


def run_alert_window_check(repo: ProductionRepository, now: datetime) -> int:
    """Notify assignees of recurring tasks whose pre-deadline alert is due now."""
    tasks = [t for t in repo.fetch_tasks() if in_alert_window(t, now)]
    if not tasks:
        return 0

    assignees = repo.fetch_task_assignees([t.id for t in tasks])
    created = 0
    for task in tasks:
        user_ids = assignees.get(task.id, [])
        if not user_ids:
            continue
        # Consecutive runs overlap the same window
        link = f"/tasks?task={task.id}"
        fire_at = alert_time(task.due_date, task.recurrence_alert_before)
        if repo.has_task_alert(link, since=fire_at - ALERT_WINDOW):
            continue
        try:
            created += repo.create_task_notifications(
                user_ids,
                title=f"Reminder: {task.title}",
                message=f'Reminder: "{task.title}" is due in {task.recurrence_alert_before.label}',
                link=link,
            )
        except BackendError as e:
            logger.error(f"Alert for task {task.id} failed: {e}")
    return created


def occurrence_for(task: WorkTask) -> date:
    """The occurrence date a due recurring task should be created for."""
    config = recurrence_config(task)
    if config is None:
        raise ValueError(f"Task {task.id} is not recurring")
    if config.last_created is None:
        return config.start_date
    return next_occurrence(config.type, config.start_date, config.last_created)


def materialize_recurring(
    repo: ProductionRepository,
    today: date,
    dry_run: bool = False,
) -> list[tuple[WorkTask, date]]:
    """Create one occurrence for each recurring task that is due."""
    created = []
    for task in recurring_due_today(repo.fetch_tasks(), today):
        occurrence = occurrence_for(task)
        if not dry_run:
            new_id = repo.materialize_occurrence(task, occurrence)
            logger.info(f"Created occurrence {new_id} of '{task.title}' for {occurrence}")
        created.append((task, occurrence))
    return created
