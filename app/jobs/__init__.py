from app.jobs.base import Job
from app.jobs.subscription_jobs import (
    SubscriptionReminderJob,
    SubscriptionStatusJob,
    CurrencyRatesJob,
)

__all__ = [
    "Job",
    "SubscriptionReminderJob",
    "SubscriptionStatusJob",
    "CurrencyRatesJob",
]
