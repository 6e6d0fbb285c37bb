"""Tests for the shared workflow layer."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from masthead.adapters.supabase_rest import BackendError
from masthead.core.recurrence import RecurrenceType
from masthead.core.reminders import (
    ExistingReminders,
    Issue,
    LineupItem,
    Reminder,
    ReminderKind,
    ReminderSettings,
    ReminderStatus,
    Supplier,
)
from masthead.core.tasks import AlertBefore, WorkTask
from masthead.core.urgency import DeadlineItem, UrgencyLevel
from masthead.workflows import (
    build_dashboard,
    dismiss_reminder,
    format_dashboard,
    materialize_recurring,
    occurrence_for,
    run_alert_window_check,
    run_reminder_check,
    run_task_deadline_check,
    send_reminder,
)


@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def repo():
    repo = MagicMock()
    repo.fetch_active_issues.return_value = []
    repo.fetch_editor_ids.return_value = ["e1"]
    repo.fetch_existing_reminders.return_value = ExistingReminders()
    repo.fetch_reminder_settings.return_value = ReminderSettings()
    repo.fetch_reminders.return_value = []
    repo.fetch_lineup_deadlines.return_value = []
    repo.fetch_tasks.return_value = []
    repo.fetch_task_assignees.return_value = {}
    repo.create_reminders.side_effect = lambda reminders, created_by=None: len(reminders)
    repo.create_notices.side_effect = lambda notices: len(notices)
    repo.create_task_notifications.side_effect = lambda user_ids, **kwargs: len(user_ids)
    repo.has_task_alert.return_value = False
    repo.materialize_occurrence.return_value = "new-id"
    return repo


def supplier(email="dana@example.com", phone="050-1234567"):
    return Supplier(id="s1", name="Dana", email=email, phone=phone)


def issue_due(design_start):
    item = LineupItem(id="l1", content="Cover story", page_start=1, page_end=2, supplier=supplier())
    return Issue(
        id="i1",
        issue_number=9,
        magazine_name="Kids Weekly",
        design_start_date=design_start,
        lineup_items=[item],
    )


def pending(rid="r1", sup=None):
    return Reminder(
        id=rid,
        kind=ReminderKind.REMINDER_2DAYS,
        status=ReminderStatus.PENDING,
        message="Please send the text",
        scheduled_for=datetime(2025, 1, 14, 8, tzinfo=timezone.utc),
        supplier=sup,
        item_title="Cover story",
    )


class TestRunReminderCheck:
    def test_creates_planned_reminders(self, repo, today):
        repo.fetch_active_issues.return_value = [issue_due(today + timedelta(days=2))]

        result = run_reminder_check(repo, today)

        assert result.reminders_created == 1
        # design start two days out also warns the editor
        assert result.notices_created == 1
        reminders = repo.create_reminders.call_args.args[0]
        assert reminders[0].kind is ReminderKind.REMINDER_2DAYS
        assert repo.create_reminders.call_args.kwargs["created_by"] == "e1"

    def test_overdue_notices(self, repo, today):
        repo.fetch_active_issues.return_value = [issue_due(today - timedelta(days=1))]
        result = run_reminder_check(repo, today)
        assert result.notices_created == 1

    def test_dry_run_writes_nothing(self, repo, today):
        repo.fetch_active_issues.return_value = [issue_due(today)]
        result = run_reminder_check(repo, today, dry_run=True)
        assert len(result.plan.reminders) == 1
        repo.create_reminders.assert_not_called()
        repo.create_notices.assert_not_called()

    def test_nothing_due(self, repo, today):
        result = run_reminder_check(repo, today)
        assert result.plan.is_empty
        repo.create_reminders.assert_not_called()


class TestDashboard:
    def test_build(self, repo, today):
        repo.fetch_lineup_deadlines.return_value = [
            DeadlineItem("a", "Comics", today + timedelta(days=20), "Kids Weekly #9"),
            DeadlineItem("b", "Puzzles", today + timedelta(days=1), "Kids Weekly #9"),
            DeadlineItem("c", "Cover", today - timedelta(days=2), "Kids Weekly #9"),
            DeadlineItem("d", "Letters", None, "Kids Weekly #9"),
        ]
        repo.fetch_reminders.return_value = [pending()]

        summary = build_dashboard(repo, today)

        repo.fetch_reminders.assert_called_once_with(ReminderStatus.PENDING)
        assert summary.counts.to_dict() == {"critical": 1, "urgent": 1, "normal": 2}
        assert [r.item.id for r in summary.upcoming] == ["c", "b"]
        assert summary.pending[0].urgency is UrgencyLevel.CRITICAL

    def test_format(self, repo, today):
        repo.fetch_lineup_deadlines.return_value = [
            DeadlineItem("c", "Cover", today - timedelta(days=2), "Kids Weekly #9"),
            DeadlineItem("t", "Editorial", today, "Kids Weekly #9"),
        ]
        repo.fetch_reminders.return_value = [pending(sup=supplier())]

        text = format_dashboard(build_dashboard(repo, today))

        assert "Critical: 2  Urgent: 0  Normal: 0" in text
        assert "- [critical] Cover (Kids Weekly #9, overdue 2d)" in text
        assert "- [critical] Editorial (Kids Weekly #9, today)" in text
        assert "Reminders awaiting approval (1)" in text


class TestSendReminder:
    def test_email_and_whatsapp(self, repo):
        repo.fetch_reminders.return_value = [pending(sup=supplier())]
        email = MagicMock()

        result = send_reminder(repo, email, "r1")

        email.send.assert_called_once_with("dana@example.com", "Reminder: Cover story", "Please send the text")
        assert result.emailed
        assert result.whatsapp_url.startswith("https://wa.me/0501234567?text=")
        repo.update_reminder_status.assert_called_once_with("r1", ReminderStatus.SENT)

    def test_phone_only_gets_link(self, repo):
        repo.fetch_reminders.return_value = [pending(sup=supplier(email=None))]
        email = MagicMock()

        result = send_reminder(repo, email, "r1")

        email.send.assert_not_called()
        assert not result.emailed
        assert result.whatsapp_url is not None

    def test_unknown_reminder(self, repo):
        with pytest.raises(LookupError):
            send_reminder(repo, MagicMock(), "missing")
        repo.update_reminder_status.assert_not_called()

    def test_no_contact(self, repo):
        repo.fetch_reminders.return_value = [pending(sup=supplier(email=None, phone=None))]
        with pytest.raises(LookupError):
            send_reminder(repo, MagicMock(), "r1")
        repo.update_reminder_status.assert_not_called()

    def test_dismiss(self, repo):
        dismiss_reminder(repo, "r1")
        repo.update_reminder_status.assert_called_once_with("r1", ReminderStatus.CANCELLED)


class TestTaskDeadlineCheck:
    def test_notifies_assignees(self, repo, today):
        due = datetime(2025, 1, 16, 9, tzinfo=timezone.utc)
        repo.fetch_tasks.return_value = [
            WorkTask(id="t1", title="Proofread", due_date=due),
            WorkTask(id="t2", title="Unassigned", due_date=due),
        ]
        repo.fetch_task_assignees.return_value = {"t1": ["u1", "u2"]}

        assert run_task_deadline_check(repo, today) == 2

        repo.fetch_task_assignees.assert_called_once_with(["t1", "t2"])
        repo.mark_deadline_reminders_sent.assert_called_once_with(["t1"])
        assert "Proofread" in repo.create_task_notifications.call_args.kwargs["title"]

    def test_failed_insert_does_not_lose_sent_tasks(self, repo, today, caplog):
        due = datetime(2025, 1, 16, 9, tzinfo=timezone.utc)
        repo.fetch_tasks.return_value = [
            WorkTask(id="a", title="Proofread", due_date=due),
            WorkTask(id="b", title="Send to print", due_date=due),
        ]
        repo.fetch_task_assignees.return_value = {"a": ["u1"], "b": ["u2"]}
        repo.create_task_notifications.side_effect = [1, BackendError("insert failed", status_code=500)]

        assert run_task_deadline_check(repo, today) == 1

        repo.mark_deadline_reminders_sent.assert_called_once_with(["a"])
        assert "task b failed" in caplog.text

    def test_nothing_due(self, repo, today):
        assert run_task_deadline_check(repo, today) == 0
        repo.fetch_task_assignees.assert_not_called()


class TestAlertWindowCheck:
    @pytest.fixture
    def task(self):
        return WorkTask(
            id="t9",
            title="Print run",
            due_date=datetime(2025, 1, 22, 10, tzinfo=timezone.utc),
            recurrence_type=RecurrenceType.WEEKLY,
            recurrence_alert_before=AlertBefore.WEEK,
        )

    def test_alerts_in_window(self, repo, task):
        repo.fetch_tasks.return_value = [task]
        repo.fetch_task_assignees.return_value = {"t9": ["u1"]}
        now = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)

        assert run_alert_window_check(repo, now) == 1

        kwargs = repo.create_task_notifications.call_args.kwargs
        assert kwargs["link"] == "/tasks?task=t9"
        assert "a week" in kwargs["message"]
        repo.has_task_alert.assert_called_once_with(
            "/tasks?task=t9", since=datetime(2025, 1, 15, 9, tzinfo=timezone.utc)
        )

    def test_skips_already_alerted(self, repo, task):
        repo.fetch_tasks.return_value = [task]
        repo.fetch_task_assignees.return_value = {"t9": ["u1"]}
        repo.has_task_alert.return_value = True

        assert run_alert_window_check(repo, datetime(2025, 1, 15, 10, tzinfo=timezone.utc)) == 0
        repo.create_task_notifications.assert_not_called()

    def test_outside_window(self, repo, task):
        repo.fetch_tasks.return_value = [task]
        assert run_alert_window_check(repo, datetime(2025, 1, 14, 10, tzinfo=timezone.utc)) == 0
        repo.fetch_task_assignees.assert_not_called()


class TestMaterializeRecurring:
    @pytest.fixture
    def template(self):
        return WorkTask(
            id="tmpl",
            title="Layout review",
            recurrence_type=RecurrenceType.WEEKLY,
            recurrence_start_date=date(2025, 1, 1),
            recurrence_last_created=date(2025, 1, 8),
        )

    def test_occurrence_for(self, template):
        assert occurrence_for(template) == date(2025, 1, 15)
        template.recurrence_last_created = None
        assert occurrence_for(template) == date(2025, 1, 1)

    def test_occurrence_for_plain_task(self):
        with pytest.raises(ValueError):
            occurrence_for(WorkTask(id="x", title="x"))

    def test_creates_due_occurrences(self, repo, template, today):
        repo.fetch_tasks.return_value = [template, WorkTask(id="plain", title="One-off")]

        created = materialize_recurring(repo, today)

        assert created == [(template, date(2025, 1, 15))]
        repo.materialize_occurrence.assert_called_once_with(template, date(2025, 1, 15))

    def test_dry_run(self, repo, template, today):
        repo.fetch_tasks.return_value = [template]
        assert len(materialize_recurring(repo, today, dry_run=True)) == 1
        repo.materialize_occurrence.assert_not_called()
