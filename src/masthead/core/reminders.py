"""Supplier reminder planning - pure logic, no I/O.

Decides what the daily reminder check should create: supplier reminders two
days before and on the design start date, overdue notices for editors once
that date has passed, and editor notices two days before each issue
milestone. Everything already on record is skipped, so the
check can be re-run safely.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable
from urllib.parse import quote

from .dates import as_date, parse_date, parse_datetime
from .urgency import UrgencyLevel, classify_reminder, days_left

TWO_DAY_LEAD = 2


class ContactMethod(Enum):
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    BOTH = "both"
    NONE = "none"


class ReminderKind(Enum):
    ASSIGNMENT = "assignment"
    REMINDER_2DAYS = "reminder_2days"
    REMINDER_URGENT = "reminder_urgent"
    CUSTOM = "custom"


class ReminderStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    CANCELLED = "cancelled"


class Milestone(Enum):
    """Issue dates editors are warned about two days ahead."""

    DESIGN_START = "design_start"
    SKETCH_CLOSE = "sketch_close"
    PRINT = "print"

    @property
    def title(self) -> str:
        return {
            "design_start": "Two days to design start",
            "sketch_close": "Two days to sketch close",
            "print": "Two days to print",
        }[self.value]

    @classmethod
    def from_title(cls, title: str) -> "Milestone | None":
        for milestone in cls:
            if milestone.title == title:
                return milestone
        return None


@dataclass
class Supplier:
    id: str
    name: str
    email: str | None = None
    phone: str | None = None

    @property
    def contact_method(self) -> ContactMethod:
        return contact_method(self)

    @classmethod
    def from_row(cls, data: dict | None) -> "Supplier | None":
        if not data:
            return None
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            email=data.get("email") or None,
            phone=data.get("phone") or None,
        )


@dataclass
class LineupItem:
    """A piece of content in an issue, assigned to a supplier."""

    id: str
    content: str
    page_start: int
    page_end: int
    text_ready: bool = False
    files_ready: bool = False
    supplier: Supplier | None = None

    @property
    def pages(self) -> str:
        if self.page_start == self.page_end:
            return str(self.page_start)
        return f"{self.page_start}-{self.page_end}"

    @classmethod
    def from_row(cls, data: dict) -> "LineupItem":
        return cls(
            id=data["id"],
            content=data.get("content") or "",
            page_start=data.get("page_start") or 0,
            page_end=data.get("page_end") or data.get("page_start") or 0,
            text_ready=bool(data.get("text_ready")),
            files_ready=bool(data.get("files_ready")),
            supplier=Supplier.from_row(data.get("supplier")),
        )


@dataclass
class Issue:
    id: str
    issue_number: int
    magazine_name: str
    design_start_date: date
    theme: str = ""
    sketch_close_date: date | None = None
    print_date: date | None = None
    lineup_items: list[LineupItem] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.magazine_name} #{self.issue_number}"

    def milestones(self) -> list[tuple[Milestone, date | None]]:
        return [
            (Milestone.DESIGN_START, self.design_start_date),
            (Milestone.SKETCH_CLOSE, self.sketch_close_date),
            (Milestone.PRINT, self.print_date),
        ]

    @classmethod
    def from_row(cls, data: dict) -> "Issue":
        magazine = data.get("magazine") or {}
        return cls(
            id=data["id"],
            issue_number=data.get("issue_number", 0),
            magazine_name=magazine.get("name") or "Magazine",
            design_start_date=parse_date(data["design_start_date"]),
            theme=data.get("theme") or "",
            sketch_close_date=parse_date(data.get("sketch_close_date")),
            print_date=parse_date(data.get("print_date")),
            lineup_items=[LineupItem.from_row(i) for i in data.get("lineup_items") or []],
        )


@dataclass
class Reminder:
    """A reminder on record."""

    id: str
    kind: ReminderKind
    status: ReminderStatus
    message: str
    scheduled_for: datetime
    supplier: Supplier | None = None
    item_title: str = ""
    lineup_item_id: str | None = None
    issue_id: str | None = None

    @classmethod
    def from_row(cls, data: dict) -> "Reminder":
        item = data.get("lineup_item") or {}
        insert = data.get("insert") or {}
        return cls(
            id=data["id"],
            kind=ReminderKind(data["type"]),
            status=ReminderStatus(data["status"]),
            message=data.get("message") or "",
            scheduled_for=parse_datetime(data["scheduled_for"]),
            supplier=Supplier.from_row(data.get("supplier")),
            item_title=item.get("content") or insert.get("name") or data.get("message") or "",
            lineup_item_id=data.get("lineup_item_id"),
            issue_id=data.get("issue_id"),
        )


@dataclass
class NewReminder:
    """A supplier reminder the check wants created."""

    lineup_item_id: str
    supplier_id: str
    issue_id: str
    kind: ReminderKind
    message: str

    @property
    def key(self) -> tuple[str, ReminderKind]:
        return (self.lineup_item_id, self.kind)

    def to_row(self, scheduled_for: datetime, created_by: str | None = None) -> dict:
        return {
            "lineup_item_id": self.lineup_item_id,
            "supplier_id": self.supplier_id,
            "issue_id": self.issue_id,
            "type": self.kind.value,
            "message": self.message,
            "scheduled_for": scheduled_for.isoformat(),
            "status": ReminderStatus.PENDING.value,
            "created_by": created_by,
        }


@dataclass
class OverdueNotice:
    """An editor notification for content past its design start date."""

    user_id: str
    issue_id: str
    lineup_item_id: str
    title: str
    message: str

    kind = "overdue"

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.lineup_item_id)

    def to_row(self) -> dict:
        return {
            "user_id": self.user_id,
            "type": self.kind,
            "title": self.title,
            "message": self.message,
            "issue_id": self.issue_id,
            "lineup_item_id": self.lineup_item_id,
        }


@dataclass
class DeadlineNotice:
    """An editor notification two days before an issue milestone."""

    user_id: str
    issue_id: str
    milestone: Milestone
    message: str

    kind = "deadline_2days"

    @property
    def key(self) -> tuple[str, str, Milestone]:
        return (self.user_id, self.issue_id, self.milestone)

    @property
    def title(self) -> str:
        return self.milestone.title

    def to_row(self) -> dict:
        return {
            "user_id": self.user_id,
            "type": self.kind,
            "title": self.title,
            "message": self.message,
            "issue_id": self.issue_id,
        }


@dataclass
class ReminderSettings:
    supplier_reminder_2days: bool = True
    supplier_reminder_urgent: bool = True
    editor_reminder_2days: bool = True
    editor_reminder_overdue: bool = True

    @classmethod
    def from_row(cls, data: dict | None) -> "ReminderSettings":
        if not data:
            return cls()
        return cls(
            supplier_reminder_2days=data.get("supplier_reminder_2days", True),
            supplier_reminder_urgent=data.get("supplier_reminder_urgent", True),
            editor_reminder_2days=data.get("editor_reminder_2days", True),
            editor_reminder_overdue=data.get("editor_reminder_overdue", True),
        )


@dataclass
class ExistingReminders:
    """Dedup keys of what is already on record."""

    reminders: set[tuple[str, ReminderKind]] = field(default_factory=set)
    overdue_notices: set[tuple[str, str]] = field(default_factory=set)
    deadline_notices: set[tuple[str, str, Milestone]] = field(default_factory=set)


@dataclass
class ReminderPlan:
    reminders: list[NewReminder] = field(default_factory=list)
    notices: list[OverdueNotice | DeadlineNotice] = field(default_factory=list)
    # Items whose supplier has neither email nor phone
    skipped: list[LineupItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.reminders and not self.notices


@dataclass
class PendingReminderView:
    id: str
    supplier_name: str
    item_title: str
    urgency: UrgencyLevel
    contact: ContactMethod


def contact_method(supplier: Supplier | None) -> ContactMethod:
    """Which channels a supplier can be reached on."""
    if supplier is None:
        return ContactMethod.NONE
    has_email = bool(supplier.email)
    has_phone = bool(supplier.phone)
    if has_email and has_phone:
        return ContactMethod.BOTH
    if has_email:
        return ContactMethod.EMAIL
    if has_phone:
        return ContactMethod.WHATSAPP
    return ContactMethod.NONE


def reminder_message(kind: ReminderKind, item: LineupItem, issue: Issue) -> str:
    """Default message text for an automatic supplier reminder."""
    name = item.supplier.name if item.supplier else ""
    due = issue.design_start_date.strftime("%d/%m/%Y")
    if kind is ReminderKind.REMINDER_2DAYS:
        return (
            f"Hello {name},\n\n"
            f"Reminder: two days left to submit.\n"
            f"Section: {item.content}\n"
            f"Pages: {item.pages}\n"
            f"Due by: {due}\n\n"
            f"Thanks"
        )
    if kind is ReminderKind.REMINDER_URGENT:
        return (
            f"Hello {name},\n\n"
            f"Today is the submission day.\n"
            f"Section: {item.content}\n\n"
            f"Please send it as soon as possible.\n\n"
            f"Thanks"
        )
    raise ValueError(f"No default message for {kind.value} reminders")


def plan_reminders(
    issues: Iterable[Issue],
    today: date | datetime,
    existing: ExistingReminders | None = None,
    settings: ReminderSettings | None = None,
    editor_ids: Iterable[str] = (),
) -> ReminderPlan:
    """
    Work out which reminders and editor notices to create today.

    Supplier reminders and overdue notices only consider lineup items with a
    supplier and text not yet ready. Milestone notices go to every editor.
    Pure function - the caller persists the plan.
    """
    today = as_date(today, "today")
    existing = existing or ExistingReminders()
    settings = settings or ReminderSettings()
    editor_ids = list(editor_ids)

    plan = ReminderPlan()
    seen_reminders = set(existing.reminders)
    seen_notices = set(existing.overdue_notices)
    seen_deadlines = set(existing.deadline_notices)

    for issue in issues:
        remaining = days_left(issue.design_start_date, today)

        for item in issue.lineup_items:
            if item.supplier is None or item.text_ready:
                continue

            kind = None
            if remaining == TWO_DAY_LEAD and settings.supplier_reminder_2days:
                kind = ReminderKind.REMINDER_2DAYS
            elif remaining == 0 and settings.supplier_reminder_urgent:
                kind = ReminderKind.REMINDER_URGENT

            if kind is not None and (item.id, kind) not in seen_reminders:
                if contact_method(item.supplier) is ContactMethod.NONE:
                    plan.skipped.append(item)
                else:
                    plan.reminders.append(
                        NewReminder(
                            lineup_item_id=item.id,
                            supplier_id=item.supplier.id,
                            issue_id=issue.id,
                            kind=kind,
                            message=reminder_message(kind, item, issue),
                        )
                    )
                    seen_reminders.add((item.id, kind))

            if remaining < 0 and settings.editor_reminder_overdue:
                for editor_id in editor_ids:
                    if (editor_id, item.id) in seen_notices:
                        continue
                    plan.notices.append(
                        OverdueNotice(
                            user_id=editor_id,
                            issue_id=issue.id,
                            lineup_item_id=item.id,
                            title="Content overdue",
                            message=f"{item.content} - {item.supplier.name} ({issue.label})",
                        )
                    )
                    seen_notices.add((editor_id, item.id))

        if not settings.editor_reminder_2days:
            continue
        for milestone, when in issue.milestones():
            if when is None or days_left(when, today) != TWO_DAY_LEAD:
                continue
            for editor_id in editor_ids:
                if (editor_id, issue.id, milestone) in seen_deadlines:
                    continue
                plan.notices.append(
                    DeadlineNotice(
                        user_id=editor_id,
                        issue_id=issue.id,
                        milestone=milestone,
                        message=f"{issue.label} - {issue.theme}" if issue.theme else issue.label,
                    )
                )
                seen_deadlines.add((editor_id, issue.id, milestone))

    return plan


def pending_reminder_view(
    reminders: Iterable[Reminder],
    today: date | datetime,
) -> list[PendingReminderView]:
    """Pending reminders for the approval card, oldest schedule first."""
    pending = sorted(
        (r for r in reminders if r.status is ReminderStatus.PENDING),
        key=lambda r: r.scheduled_for,
    )
    return [
        PendingReminderView(
            id=r.id,
            supplier_name=r.supplier.name if r.supplier else "Unknown supplier",
            item_title=r.item_title or r.message,
            urgency=classify_reminder(r.scheduled_for, today),
            contact=contact_method(r.supplier),
        )
        for r in pending
    ]


def whatsapp_link(phone: str, message: str) -> str:
    """Click-to-chat link with the message prefilled."""
    digits = re.sub(r"\D", "", phone)
    return f"https://wa.me/{digits}?text={quote(message, safe='')}"
