"""Hosted Postgres REST adapter - HTTP client for production records."""

import logging
from datetime import date, datetime, timezone

import requests

from masthead.config import Config, load_config
from masthead.core.dates import parse_date
from masthead.core.reminders import (
    DeadlineNotice,
    ExistingReminders,
    Issue,
    Milestone,
    NewReminder,
    OverdueNotice,
    Reminder,
    ReminderKind,
    ReminderSettings,
    ReminderStatus,
)
from masthead.core.tasks import WorkTask
from masthead.core.urgency import DeadlineItem

logger = logging.getLogger(__name__)

ISSUE_SELECT = (
    "id,issue_number,theme,design_start_date,sketch_close_date,print_date,"
    "magazine:magazines(name),"
    "lineup_items(id,content,page_start,page_end,text_ready,files_ready,supplier_id,"
    "supplier:suppliers(id,name,email,phone))"
)
REMINDER_SELECT = (
    "*,supplier:suppliers(id,name,email,phone),"
    "lineup_item:lineup_items(id,content),insert:inserts(id,name)"
)
TASK_SELECT = (
    "id,title,status,due_date,deadline_reminder_sent,recurrence_type,"
    "recurrence_start_date,recurrence_end_date,recurrence_last_created,recurrence_alert_before"
)
AUTOMATIC_KINDS = (ReminderKind.REMINDER_2DAYS, ReminderKind.REMINDER_URGENT)


class BackendError(Exception):
    """Raised when the backend rejects a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _in(values) -> str:
    return f"in.({','.join(str(v) for v in values)})"


class SupabaseRestAdapter:
    """
    Hosted Postgres REST adapter.

    Implements ProductionRepository protocol. Talks to the REST endpoint with
    the service key. No business logic - just I/O.
    """

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or load_config()
        self.config.require_backend()
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": self.config.supabase_service_key,
                "Authorization": f"Bearer {self.config.supabase_service_key}",
                "Content-Type": "application/json",
            }
        )

    @property
    def rest_url(self) -> str:
        return f"{self.config.supabase_url}/rest/v1"

    def _request(self, method: str, table: str, *, params=None, json=None, prefer: str | None = None):
        headers = {"Prefer": prefer} if prefer else None
        resp = self._session.request(
            method,
            f"{self.rest_url}/{table}",
            params=params,
            json=json,
            headers=headers,
        )
        if not resp.ok:
            raise BackendError(
                f"{method} {table} failed ({resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return []
        return resp.json()

    def _select(self, table: str, params: dict) -> list[dict]:
        return self._request("GET", table, params=params)

    def _insert(self, table: str, rows: list[dict]) -> list[dict]:
        if not rows:
            return []
        return self._request("POST", table, json=rows, prefer="return=representation")

    def _update(self, table: str, filters: dict, values: dict) -> None:
        self._request("PATCH", table, params=filters, json=values, prefer="return=minimal")

    # ============== Issues & lineup ==============

    def fetch_active_issues(self, today: date) -> list[Issue]:
        rows = self._select(
            "issues",
            {
                "select": ISSUE_SELECT,
                "status": _in(["in_progress", "draft"]),
                "print_date": f"gte.{today.isoformat()}",
            },
        )
        logger.info(f"Found {len(rows)} active issues")
        return [Issue.from_row(r) for r in rows if r.get("design_start_date")]

    def fetch_lineup_deadlines(self) -> list[DeadlineItem]:
        rows = self._select(
            "lineup_items",
            {
                "select": "id,content,issue:issues(issue_number,sketch_close_date,magazine:magazines(name))",
                "or": "(text_ready.eq.false,files_ready.eq.false,is_designed.eq.false)",
            },
        )
        items = []
        for row in rows:
            issue = row.get("issue") or {}
            magazine = (issue.get("magazine") or {}).get("name") or "Magazine"
            items.append(
                DeadlineItem(
                    id=row["id"],
                    title=row.get("content") or "",
                    deadline=parse_date(issue.get("sketch_close_date")),
                    source=f"{magazine} #{issue.get('issue_number', '?')}",
                )
            )
        return items

    def fetch_editor_ids(self) -> list[str]:
        rows = self._select("user_roles", {"select": "user_id", "role": _in(["editor", "admin"])})
        return list(dict.fromkeys(r["user_id"] for r in rows))

    # ============== Reminders ==============

    def fetch_reminder_settings(self, user_id: str | None = None) -> ReminderSettings:
        params = {"select": "*", "limit": "1"}
        if user_id:
            params["user_id"] = f"eq.{user_id}"
        rows = self._select("reminder_settings", params)
        return ReminderSettings.from_row(rows[0] if rows else None)

    def fetch_existing_reminders(self) -> ExistingReminders:
        reminder_rows = self._select(
            "reminders",
            {
                "select": "lineup_item_id,type",
                "type": _in(k.value for k in AUTOMATIC_KINDS),
                "lineup_item_id": "not.is.null",
            },
        )
        notice_rows = self._select(
            "system_notifications",
            {"select": "user_id,lineup_item_id", "type": "eq.overdue", "lineup_item_id": "not.is.null"},
        )
        deadline_rows = self._select(
            "system_notifications",
            {"select": "user_id,issue_id,title", "type": "eq.deadline_2days", "issue_id": "not.is.null"},
        )
        deadline_notices = set()
        for n in deadline_rows:
            milestone = Milestone.from_title(n.get("title") or "")
            if milestone is not None:
                deadline_notices.add((n["user_id"], n["issue_id"], milestone))
        return ExistingReminders(
            reminders={(r["lineup_item_id"], ReminderKind(r["type"])) for r in reminder_rows},
            overdue_notices={(n["user_id"], n["lineup_item_id"]) for n in notice_rows},
            deadline_notices=deadline_notices,
        )

    def fetch_reminders(self, status: ReminderStatus | None = None) -> list[Reminder]:
        params = {"select": REMINDER_SELECT, "order": "scheduled_for.asc"}
        if status is not None:
            params["status"] = f"eq.{status.value}"
        return [Reminder.from_row(r) for r in self._select("reminders", params)]

    def create_reminders(self, reminders: list[NewReminder], created_by: str | None = None) -> int:
        now = datetime.now(timezone.utc)
        created = self._insert("reminders", [r.to_row(now, created_by) for r in reminders])
        return len(created)

    def create_notices(self, notices: list[OverdueNotice | DeadlineNotice]) -> int:
        created = self._insert("system_notifications", [n.to_row() for n in notices])
        return len(created)

    def update_reminder_status(self, reminder_id: str, status: ReminderStatus) -> None:
        values: dict = {"status": status.value}
        if status is ReminderStatus.SENT:
            values["sent_at"] = datetime.now(timezone.utc).isoformat()
        self._update("reminders", {"id": f"eq.{reminder_id}"}, values)

    # ============== Tasks ==============

    def fetch_tasks(self) -> list[WorkTask]:
        rows = self._select("tasks", {"select": TASK_SELECT})
        return [WorkTask.from_row(r) for r in rows]

    def fetch_task_assignees(self, task_ids: list[str]) -> dict[str, list[str]]:
        if not task_ids:
            return {}
        links = self._select(
            "task_assignees", {"select": "task_id,employee_id", "task_id": _in(task_ids)}
        )
        employee_ids = list(dict.fromkeys(link["employee_id"] for link in links))
        if not employee_ids:
            return {}
        employees = self._select(
            "employees",
            {"select": "id,user_id", "id": _in(employee_ids), "user_id": "not.is.null"},
        )
        user_by_employee = {e["id"]: e["user_id"] for e in employees if e.get("user_id")}

        assignees: dict[str, list[str]] = {}
        for link in links:
            user_id = user_by_employee.get(link["employee_id"])
            if user_id:
                assignees.setdefault(link["task_id"], []).append(user_id)
        return assignees

    def create_task_notifications(
        self, user_ids: list[str], title: str, message: str, link: str = "/tasks"
    ) -> int:
        rows = [
            {"user_id": user_id, "title": title, "message": message, "type": "task_due", "link": link}
            for user_id in user_ids
        ]
        return len(self._insert("notifications", rows))

    def has_task_alert(self, link: str, since: datetime) -> bool:
        rows = self._select(
            "notifications",
            {
                "select": "id",
                "type": "eq.task_due",
                "link": f"eq.{link}",
                "created_at": f"gte.{since.isoformat()}",
                "limit": "1",
            },
        )
        return bool(rows)

    def mark_deadline_reminders_sent(self, task_ids: list[str]) -> None:
        if task_ids:
            self._update("tasks", {"id": _in(task_ids)}, {"deadline_reminder_sent": True})

    def materialize_occurrence(self, task: WorkTask, occurrence: date) -> str:
        """
        Insert the occurrence, then record it on the template.

        The two writes are not atomic. If the second fails the new row stays
        and is logged, and the next run will create the occurrence again.
        """
        created = self._insert(
            "tasks",
            [
                {
                    "title": task.title,
                    "status": "new",
                    "due_date": occurrence.isoformat(),
                    "source": "recurrence",
                    "source_reference": task.id,
                }
            ],
        )
        new_id = created[0]["id"]
        try:
            self._update(
                "tasks",
                {"id": f"eq.{task.id}"},
                {"recurrence_last_created": occurrence.isoformat()},
            )
        except BackendError:
            logger.error(
                f"Created task {new_id} for {occurrence} but could not update template {task.id}"
            )
            raise
        return new_id
