"""masthead CLI - magazine production scheduling."""

import json
import logging
import sys
from datetime import date, datetime, timezone

import click

from .config import ConfigError, load_config
from .core.recurrence import (
    RecurrenceConfig,
    RecurrenceType,
    describe_recurrence,
    enumerate_occurrences,
    next_occurrence,
    should_create_today,
)
from .core.urgency import classify, days_left
from .workflows import (
    build_dashboard,
    dismiss_reminder,
    format_dashboard,
    materialize_recurring,
    run_alert_window_check,
    run_reminder_check,
    run_task_deadline_check,
    send_reminder,
)

RECURRENCE_CHOICE = click.Choice([t.value for t in RecurrenceType])


def _parse_day(value: str | None, param: str = "date") -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}", param_hint=param)


def _today(value: str | None) -> date:
    return _parse_day(value, "--today") or date.today()


def _repo():
    """Backend adapter, or exit with a readable error."""
    from .adapters.supabase_rest import SupabaseRestAdapter

    try:
        return SupabaseRestAdapter(load_config())
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _run(fn, *args, **kwargs):
    """Call a workflow, turning backend failures into a clean exit."""
    from .adapters import BackendError, DeliveryError

    try:
        return fn(*args, **kwargs)
    except (BackendError, DeliveryError, LookupError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


today_option = click.option("--today", "today_str", default=None, help="Reference date (YYYY-MM-DD), defaults to today")
json_option = click.option("--json", "as_json", is_flag=True, help="Output as JSON")


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """masthead - magazine production scheduling."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command("classify")
@click.argument("deadline")
@today_option
def classify_cmd(deadline: str, today_str: str | None):
    """Show the urgency of a deadline (YYYY-MM-DD or 'none')."""
    today = _today(today_str)
    due = None if deadline.lower() == "none" else _parse_day(deadline, "DEADLINE")
    level = classify(due, today)
    if due is None:
        click.echo(f"{level.value} (no deadline)")
    else:
        click.echo(f"{level.value} ({days_left(due, today)} days left)")


@main.command()
@today_option
@json_option
def dashboard(today_str: str | None, as_json: bool):
    """Urgent items, nearest deadlines and reminders awaiting approval."""
    today = _today(today_str)
    summary = _run(build_dashboard, _repo(), today)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "today": today.isoformat(),
                    "counts": summary.counts.to_dict(),
                    "upcoming": [
                        {
                            "id": r.item.id,
                            "title": r.item.title,
                            "source": r.item.source,
                            "deadline": r.item.deadline.isoformat() if r.item.deadline else None,
                            "days_left": r.days_left,
                            "level": r.level.value,
                        }
                        for r in summary.upcoming
                    ],
                    "pending_reminders": len(summary.pending),
                },
                indent=2,
            )
        )
    else:
        click.echo(format_dashboard(summary))


# ============== Reminders ==============


@main.group()
def reminders():
    """Supplier reminders."""
    pass


@reminders.command("check")
@today_option
@click.option("--dry-run", is_flag=True, help="Show what would be created without writing")
def reminders_check(today_str: str | None, dry_run: bool):
    """Run the daily reminder check."""
    today = _today(today_str)
    result = _run(run_reminder_check, _repo(), today, dry_run=dry_run)
    plan = result.plan

    for r in plan.reminders:
        click.echo(f"[{r.kind.value}] item {r.lineup_item_id} -> supplier {r.supplier_id}")
    for n in plan.notices:
        click.echo(f"[{n.kind}] {n.title}: {n.message} -> editor {n.user_id}")
    for item in plan.skipped:
        click.echo(f"[skipped] {item.content}: supplier has no email or phone")

    if dry_run:
        click.echo(f"\nDry run: {len(plan.reminders)} reminders, {len(plan.notices)} notifications")
    else:
        click.echo(
            f"\nCreated {result.reminders_created} reminders, {result.notices_created} notifications"
        )


@reminders.command("pending")
@today_option
@json_option
def reminders_pending(today_str: str | None, as_json: bool):
    """List reminders awaiting approval."""
    today = _today(today_str)
    summary = _run(build_dashboard, _repo(), today)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": p.id,
                        "supplier": p.supplier_name,
                        "item": p.item_title,
                        "urgency": p.urgency.value,
                        "contact": p.contact.value,
                    }
                    for p in summary.pending
                ],
                indent=2,
            )
        )
        return

    if not summary.pending:
        click.echo("No reminders awaiting approval.")
        return
    for p in summary.pending:
        click.echo(f"{p.id}  [{p.urgency.value:8}] {p.supplier_name}: {p.item_title} ({p.contact.value})")


@reminders.command("send")
@click.argument("reminder_id")
def reminders_send(reminder_id: str):
    """Approve and send a pending reminder."""
    from .adapters.edge_email import EdgeFunctionEmailSender

    repo = _repo()
    result = _run(send_reminder, repo, EdgeFunctionEmailSender(repo.config), reminder_id)
    if result.emailed:
        click.echo("✓ Email sent")
    if result.whatsapp_url:
        click.echo(f"WhatsApp: {result.whatsapp_url}")


@reminders.command("dismiss")
@click.argument("reminder_id")
def reminders_dismiss(reminder_id: str):
    """Cancel a pending reminder."""
    _run(dismiss_reminder, _repo(), reminder_id)
    click.echo(f"Reminder {reminder_id} cancelled")


# ============== Recurrence ==============


def _recurrence_config(kind: str, start: str, end: str | None, last: str | None) -> RecurrenceConfig:
    return RecurrenceConfig(
        type=RecurrenceType(kind),
        start_date=_parse_day(start, "START"),
        end_date=_parse_day(end, "--end"),
        last_created=_parse_day(last, "--last"),
    )


@main.group()
def recurring():
    """Recurring task schedules."""
    pass


@recurring.command("next")
@click.argument("kind", type=RECURRENCE_CHOICE)
@click.argument("start")
@click.option("--last", default=None, help="Last created occurrence (YYYY-MM-DD)")
def recurring_next(kind: str, start: str, last: str | None):
    """Next occurrence after START (or after --last)."""
    config = _recurrence_config(kind, start, None, last)
    click.echo(next_occurrence(config.type, config.start_date, config.last_created).isoformat())


@recurring.command("check")
@click.argument("kind", type=RECURRENCE_CHOICE)
@click.argument("start")
@click.option("--end", default=None, help="Last day of the schedule (YYYY-MM-DD)")
@click.option("--last", default=None, help="Last created occurrence (YYYY-MM-DD)")
@today_option
def recurring_check(kind: str, start: str, end: str | None, last: str | None, today_str: str | None):
    """Whether a new occurrence should be created today."""
    config = _recurrence_config(kind, start, end, last)
    today = _today(today_str)
    click.echo(describe_recurrence(config.type, config.start_date, config.end_date))
    if should_create_today(config, today):
        click.echo(f"Create an occurrence for {today.isoformat()}")
    else:
        click.echo("Nothing due")


@recurring.command("occurrences")
@click.argument("kind", type=RECURRENCE_CHOICE)
@click.argument("start")
@click.option("--end", default=None, help="Last day of the schedule (YYYY-MM-DD)")
@click.option("--limit", type=click.IntRange(min=0), default=None, help="Maximum number of dates")
@json_option
def recurring_occurrences(kind: str, start: str, end: str | None, limit: int | None, as_json: bool):
    """List occurrence dates of a schedule."""
    config = _recurrence_config(kind, start, end, None)
    if limit is None:
        limit = load_config().occurrence_limit
    dates = [d.isoformat() for d in enumerate_occurrences(config, limit)]
    if as_json:
        click.echo(json.dumps(dates, indent=2))
    else:
        for d in dates:
            click.echo(d)


@recurring.command("run")
@today_option
@click.option("--dry-run", is_flag=True, help="Show what would be created without writing")
def recurring_run(today_str: str | None, dry_run: bool):
    """Create today's occurrences of recurring tasks."""
    today = _today(today_str)
    created = _run(materialize_recurring, _repo(), today, dry_run=dry_run)
    if not created:
        click.echo("No recurring tasks due.")
        return
    verb = "Would create" if dry_run else "Created"
    for task, occurrence in created:
        click.echo(f"{verb} '{task.title}' for {occurrence.isoformat()}")


# ============== Tasks ==============


@main.command("deadlines")
@today_option
def deadlines(today_str: str | None):
    """Notify assignees of tasks due tomorrow and recurring-task alerts."""
    today = _today(today_str)
    repo = _repo()
    sent = _run(run_task_deadline_check, repo, today)
    alerts = _run(run_alert_window_check, repo, datetime.now(timezone.utc))
    click.echo(f"Sent {sent} deadline notifications, {alerts} recurring alerts")


@main.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def daemon(debug: bool):
    """Run scheduled checks and send editor summaries."""
    from .daemon import run_daemon

    try:
        click.echo("Starting masthead daemon...")
        click.echo("Press Ctrl+C to stop")
        run_daemon(debug=debug)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nDaemon stopped.")


if __name__ == "__main__":
    main()
