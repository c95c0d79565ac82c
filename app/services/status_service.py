"""
Subscription status engine.

A subscription's status is a pure function of its renewal date and today's
date. The stored column is reconciled periodically rather than on every
read, so rows may be stale between runs.
"""
import logging
from datetime import date
from typing import Optional

from app.core.dates import is_past, local_today
from app.db.models.subscription import SubscriptionStatus
from app.db.store import SubscriptionStore
from app.schemas.jobs import StatusSummary

logger = logging.getLogger(__name__)


def derive_status(renewal_date: Optional[date], today: date) -> SubscriptionStatus:
    """
    Derive lifecycle status.

    Lifetime subscriptions (no renewal date) never expire. A renewal date
    strictly before today is Inactive; today or later is Active.
    """
    if renewal_date is None:
        return SubscriptionStatus.ACTIVE
    if is_past(renewal_date, today):
        return SubscriptionStatus.INACTIVE
    return SubscriptionStatus.ACTIVE


def reconcile_subscription_statuses(
    store: SubscriptionStore,
    today: Optional[date] = None,
) -> StatusSummary:
    """
    Bring stored statuses in line with derive_status for every live subscription.

    Only rows whose status differs (case-insensitive) are written. Each write
    commits independently; a failure part way through leaves earlier rows
    updated and is raised to the caller. The next cycle picks up the rest.
    """
    today = today or local_today()
    logger.info("Starting subscription status update")

    subscriptions = store.find_all_non_deleted_subscriptions()
    logger.info(f"Found {len(subscriptions)} subscription(s) to check")

    summary = StatusSummary(total=len(subscriptions))

    for subscription in subscriptions:
        derived = derive_status(subscription.renewal_date, today)

        if subscription.status.lower() != derived.value.lower():
            store.update_subscription_status(subscription.id, derived)
            summary.updated += 1
            logger.info(
                f"Status updated: subscription_id={subscription.id}, "
                f"name={subscription.name}, {subscription.status} -> {derived.value}"
            )

        if derived == SubscriptionStatus.ACTIVE:
            summary.active += 1
        else:
            summary.inactive += 1

    logger.info(
        f"Subscription status update complete: active={summary.active}, "
        f"inactive={summary.inactive}, updated={summary.updated}"
    )
    return summary
