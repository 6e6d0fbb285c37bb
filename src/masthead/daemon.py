"""masthead daemon - scheduled checks and editor summaries."""

import asyncio
import logging
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from telegram import Bot

from .adapters.supabase_rest import BackendError, SupabaseRestAdapter
from .adapters.telegram_sender import TelegramSender
from .config import Config, load_config
from .ports import ProductionRepository
from .workflows import (
    build_dashboard,
    format_dashboard,
    materialize_recurring,
    run_alert_window_check,
    run_reminder_check,
    run_task_deadline_check,
)

logger = logging.getLogger(__name__)


def parse_time(value: str) -> tuple[int, int]:
    """'HH:MM' -> (hour, minute). Raises ValueError when malformed."""
    hour, minute = map(int, value.split(":"))
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Time out of range: {value}")
    return hour, minute


def local_today(tz: str) -> date:
    """Calendar date in the scheduler's time zone, not the host's."""
    return datetime.now(ZoneInfo(tz)).date()


async def daily_run(
    repo: ProductionRepository,
    sender: TelegramSender | None,
    chat_ids: list[int],
    tz: str = "UTC",
):
    """Reminder check, task deadlines, recurring occurrences, then the editor summary."""
    today = local_today(tz)
    logger.info(f"Running daily checks for {today.isoformat()}")

    steps = (
        ("reminder check", lambda: run_reminder_check(repo, today)),
        ("task deadline check", lambda: run_task_deadline_check(repo, today)),
        ("recurring tasks", lambda: materialize_recurring(repo, today)),
    )
    for name, step in steps:
        try:
            step()
        except BackendError as e:
            logger.error(f"Daily {name} failed: {e}")

    if sender is None or not chat_ids:
        return

    try:
        summary = build_dashboard(repo, today)
    except BackendError as e:
        logger.error(f"Could not build editor summary: {e}")
        return
    delivered = await sender.broadcast(chat_ids, format_dashboard(summary))
    logger.info(f"Editor summary delivered to {delivered}/{len(chat_ids)} chats")


async def hourly_alerts(repo: ProductionRepository):
    """Recurring-task alerts fire within an hour of their alert time."""
    try:
        created = run_alert_window_check(repo, datetime.now(timezone.utc))
        if created:
            logger.info(f"Created {created} recurring task alerts")
    except BackendError as e:
        logger.error(f"Alert window check failed: {e}")


def setup_scheduler(
    repo: ProductionRepository,
    config: Config,
    sender: TelegramSender | None = None,
) -> AsyncIOScheduler:
    """Set up scheduled jobs."""
    tz = config.timezone or "UTC"
    scheduler = AsyncIOScheduler(timezone=tz)

    try:
        hour, minute = parse_time(config.reminder_check_time)
    except ValueError:
        logger.warning(f"Invalid reminder check time format: {config.reminder_check_time}, using 08:00")
        hour, minute = 8, 0

    scheduler.add_job(
        daily_run,
        CronTrigger(hour=hour, minute=minute),
        args=[repo, sender, config.telegram_editor_chats, tz],
        id="daily_run",
    )
    logger.info(f"Scheduled daily checks at {hour:02d}:{minute:02d}")

    scheduler.add_job(hourly_alerts, CronTrigger(minute=0), args=[repo], id="hourly_alerts")
    return scheduler


def run_daemon(config: Config | None = None, debug: bool = False):
    """Run the scheduler until interrupted."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )

    config = config or load_config()
    repo = SupabaseRestAdapter(config)

    sender = None
    if config.telegram_bot_token:
        sender = TelegramSender(Bot(config.telegram_bot_token))
    else:
        logger.warning("No TELEGRAM_BOT_TOKEN configured - editor summaries disabled")

    async def main():
        scheduler = setup_scheduler(repo, config, sender)
        scheduler.start()
        logger.info("Scheduler started")
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.shutdown()

    asyncio.run(main())
