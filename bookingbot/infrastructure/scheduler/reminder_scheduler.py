from __future__ import annotations

import logging
from datetime import timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from bookingbot.application.use_cases.send_reminders import SendRemindersUseCase

REMINDER_JOB_ID = "booking_reminders"

logger = logging.getLogger(__name__)


def run_reminders(use_case: SendRemindersUseCase) -> None:
    try:
        use_case.execute()
    except Exception as e:
        logger.exception("Reminder pass failed", extra={"reason": str(e)})


def start_reminder_scheduler(use_case: SendRemindersUseCase, interval: timedelta) -> BackgroundScheduler:
    """Run a reminder pass every `interval` on a background thread, never two at once."""
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        run_reminders,
        "interval",
        seconds=int(interval.total_seconds()),
        args=[use_case],
        id=REMINDER_JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info("Reminder scheduler started", extra={"reason": f"every={interval}"})
    return scheduler
