import logging
from typing import Callable, Optional

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from app.core.config import (
    APP_TIMEZONE,
    REMINDER_CRON_HOUR,
    REMINDER_CRON_MINUTE,
    STATUS_UPDATE_INTERVAL_MINUTES,
    CURRENCY_UPDATE_CRON_HOUR,
)
from app.db.session import SessionLocal
from app.db.store import SubscriptionStore
from app.jobs.base import Job
from app.schemas.jobs import CurrencyUpdateSummary, ReminderSummary, StatusSummary
from app.services.currency_service import refresh_currency_rates
from app.services.notification_service import NotificationDispatcher, EmailNotificationDispatcher
from app.services.reminder_service import check_and_send_reminders
from app.services.status_service import reconcile_subscription_statuses

logger = logging.getLogger(__name__)


class SubscriptionReminderJob(Job):
    """Daily grouped expiry reminders to the admin mailbox."""
    name = "subscription_reminders"
    run_on_start = True

    def __init__(
        self,
        dispatcher: Optional[NotificationDispatcher] = None,
        session_factory: Callable[[], Session] = SessionLocal,
    ):
        super().__init__(session_factory)
        self.dispatcher = dispatcher or EmailNotificationDispatcher()

    def execute(self, db: Session) -> ReminderSummary:
        return check_and_send_reminders(SubscriptionStore(db), self.dispatcher)

    def trigger(self):
        return CronTrigger(hour=REMINDER_CRON_HOUR, minute=REMINDER_CRON_MINUTE, timezone=APP_TIMEZONE)


class SubscriptionStatusJob(Job):
    """Reconcile stored status against renewal dates."""
    name = "subscription_status"
    run_on_start = True

    def execute(self, db: Session) -> StatusSummary:
        return reconcile_subscription_statuses(SubscriptionStore(db))

    def trigger(self):
        return IntervalTrigger(minutes=STATUS_UPDATE_INTERVAL_MINUTES, timezone=APP_TIMEZONE)


class CurrencyRatesJob(Job):
    """Nightly exchange rate refresh."""
    name = "currency_rates"

    def execute(self, db: Session) -> CurrencyUpdateSummary:
        return refresh_currency_rates(db)

    def is_success(self, summary: CurrencyUpdateSummary) -> bool:
        return summary.success

    def trigger(self):
        return CronTrigger(hour=CURRENCY_UPDATE_CRON_HOUR, minute=0, timezone=APP_TIMEZONE)
