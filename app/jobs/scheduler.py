import logging
from typing import Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from app.core.config import APP_TIMEZONE
from app.jobs.base import Job
from app.jobs.subscription_jobs import (
    SubscriptionReminderJob,
    SubscriptionStatusJob,
    CurrencyRatesJob,
)
from app.services.notification_service import EmailNotificationDispatcher

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone=APP_TIMEZONE)

_registry: Dict[str, Job] = {}


def build_jobs(dispatcher: Optional[EmailNotificationDispatcher] = None) -> Dict[str, Job]:
    dispatcher = dispatcher or EmailNotificationDispatcher()
    jobs = [
        SubscriptionReminderJob(dispatcher=dispatcher),
        SubscriptionStatusJob(),
        CurrencyRatesJob(),
    ]
    return {job.name: job for job in jobs}


def get_jobs() -> Dict[str, Job]:
    """Jobs available for manual triggering (built lazily when the scheduler is off)."""
    if not _registry:
        _registry.update(build_jobs())
    return _registry


def start_scheduler() -> None:
    """
    Schedule every job and start the background scheduler.

    Expiry reminders are only scheduled when the SMTP server is reachable.
    """
    if scheduler.running:
        return

    dispatcher = EmailNotificationDispatcher()
    _registry.clear()
    _registry.update(build_jobs(dispatcher))

    if dispatcher.check_connection():
        _registry[SubscriptionReminderJob.name].schedule(scheduler)
    else:
        logger.warning("Email system not ready, expiry reminders not scheduled. Check SMTP configuration.")

    _registry[CurrencyRatesJob.name].schedule(scheduler)
    _registry[SubscriptionStatusJob.name].schedule(scheduler)

    scheduler.start()
    logger.info(f"Scheduler started (timezone={APP_TIMEZONE})")


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
