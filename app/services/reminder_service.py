"""
Expiry reminder aggregation.

Active, dated subscriptions are bucketed by days until expiry against a fixed
offset set. Each non-empty bucket becomes one notification, grouped by
department. A subscription whose offset is not in the set on scan day gets
no reminder; missed days are not caught up.
"""
import logging
from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from app.core.config import REMINDER_OFFSETS, FRONTEND_URL
from app.core.dates import days_until, format_expiry_date, local_today
from app.db.store import SubscriptionRecord, SubscriptionStore
from app.schemas.jobs import ReminderSummary
from app.schemas.notification import DepartmentGroup, ExpiryNoticeItem, GroupedExpiryNotice
from app.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

NO_DEPARTMENT_LABEL = "N/A"


def parse_offsets(raw: str) -> Tuple[int, ...]:
    """
    Parse a comma separated offset list such as "7,3,0".

    0 is always included so every subscription gets a same-day final notice.
    """
    offsets = {int(part) for part in raw.split(",") if part.strip()}
    if any(offset < 0 for offset in offsets):
        raise ValueError("Reminder offsets must be non-negative")
    offsets.add(0)
    return tuple(sorted(offsets, reverse=True))


DEFAULT_OFFSETS = parse_offsets(REMINDER_OFFSETS)


def subscription_url(subscription_id: int) -> str:
    return f"{FRONTEND_URL.rstrip('/')}/subscriptions/{subscription_id}"


def build_reminder_buckets(
    subscriptions: Iterable[SubscriptionRecord],
    today: date,
    offsets: Sequence[int] = DEFAULT_OFFSETS,
) -> "OrderedDict[int, List[SubscriptionRecord]]":
    """
    Bucket subscriptions by days until expiry.

    Returns:
        Non-empty buckets keyed by offset, in ascending offset order
    """
    wanted = set(offsets)
    buckets: Dict[int, List[SubscriptionRecord]] = {}

    for subscription in subscriptions:
        if subscription.renewal_date is None:
            continue
        remaining = days_until(subscription.renewal_date, today)
        logger.debug(f"Subscription {subscription.name}: {remaining} day(s) until expiry")
        if remaining in wanted:
            buckets.setdefault(remaining, []).append(subscription)

    return OrderedDict((offset, buckets[offset]) for offset in sorted(buckets))


def group_by_department(subscriptions: Iterable[SubscriptionRecord]) -> List[DepartmentGroup]:
    """Group subscriptions under their department name, ordered by name."""
    grouped: Dict[str, List[ExpiryNoticeItem]] = {}

    for subscription in subscriptions:
        department = subscription.department_name or NO_DEPARTMENT_LABEL
        grouped.setdefault(department, []).append(
            ExpiryNoticeItem(
                name=subscription.name,
                price=subscription.price,
                currency=subscription.currency,
                expiry_date_formatted=format_expiry_date(subscription.renewal_date),
                url=subscription_url(subscription.id),
            )
        )

    return [
        DepartmentGroup(name=name, subscriptions=items)
        for name, items in sorted(grouped.items(), key=lambda pair: pair[0].lower())
    ]


def build_notice(offset: int, subscriptions: List[SubscriptionRecord]) -> GroupedExpiryNotice:
    return GroupedExpiryNotice(
        departments=group_by_department(subscriptions),
        days_remaining=offset,
        total_subscriptions=len(subscriptions),
    )


def check_and_send_reminders(
    store: SubscriptionStore,
    dispatcher: NotificationDispatcher,
    today: Optional[date] = None,
    offsets: Sequence[int] = DEFAULT_OFFSETS,
) -> ReminderSummary:
    """
    Run one reminder scan.

    A dispatch failure is logged and counted for its bucket only; remaining
    buckets still go out. Store failures propagate to the caller.
    """
    today = today or local_today()
    logger.info("Checking for subscriptions expiring soon")

    subscriptions = store.find_active_subscriptions_with_renewal_date()
    logger.info(f"Found {len(subscriptions)} active subscription(s) to check")

    summary = ReminderSummary(checked=len(subscriptions))
    buckets = build_reminder_buckets(subscriptions, today, offsets)

    for offset, bucket in buckets.items():
        notice = build_notice(offset, bucket)
        try:
            dispatcher.send_grouped_expiry_notice(notice)
        except Exception as e:
            summary.failed += 1
            ids = ", ".join(str(s.id) for s in bucket)
            logger.error(
                f"Failed to send {offset}-day reminder for subscription_ids=[{ids}]: {e}"
            )
            continue

        summary.sent += 1
        logger.info(
            f"Sent {offset}-day reminder: {notice.total_subscriptions} subscription(s) "
            f"across {len(notice.departments)} department(s)"
        )

    logger.info(f"Reminder check complete: {summary.sent} notification(s) sent, {summary.failed} failed")
    return summary
