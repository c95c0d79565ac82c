"""
Tests for status derivation and reconciliation.
"""
from datetime import date, timedelta

import pytest

from app.db.models.subscription import Subscription, SubscriptionStatus
from app.db.store import SubscriptionStore
from app.services.status_service import derive_status, reconcile_subscription_statuses


@pytest.mark.parametrize("offset, expected", [
    (-365, SubscriptionStatus.INACTIVE),
    (-1, SubscriptionStatus.INACTIVE),
    (0, SubscriptionStatus.ACTIVE),
    (1, SubscriptionStatus.ACTIVE),
    (30, SubscriptionStatus.ACTIVE),
])
def test_derive_status_by_day(today, offset, expected):
    assert derive_status(today + timedelta(days=offset), today) == expected


def test_derive_status_lifetime_is_always_active(today):
    assert derive_status(None, today) == SubscriptionStatus.ACTIVE
    assert derive_status(None, date(2999, 1, 1)) == SubscriptionStatus.ACTIVE


def test_reconcile_updates_only_changed_rows(db, make_subscription, today):
    expired = make_subscription(renewal_date=today - timedelta(days=1), status="Active")
    renewed = make_subscription(renewal_date=today + timedelta(days=10), status="Inactive")
    unchanged = make_subscription(renewal_date=today + timedelta(days=3), status="Active")
    lifetime = make_subscription(renewal_date=None, status="Active")

    summary = reconcile_subscription_statuses(SubscriptionStore(db), today=today)

    assert summary.total == 4
    assert summary.updated == 2
    assert summary.active == 3
    assert summary.inactive == 1

    db.expire_all()
    assert db.get(Subscription, expired.id).status == "Inactive"
    assert db.get(Subscription, renewed.id).status == "Active"
    assert db.get(Subscription, unchanged.id).updated_at is None
    assert db.get(Subscription, lifetime.id).updated_at is None
    assert db.get(Subscription, expired.id).updated_at is not None


def test_reconcile_comparison_is_case_insensitive(db, make_subscription, today):
    make_subscription(renewal_date=today + timedelta(days=5), status="active")

    summary = reconcile_subscription_statuses(SubscriptionStore(db), today=today)

    assert summary.updated == 0


def test_reconcile_is_idempotent(db, make_subscription, today):
    make_subscription(renewal_date=today - timedelta(days=3), status="Active")
    make_subscription(renewal_date=today + timedelta(days=3), status="Inactive")
    store = SubscriptionStore(db)

    first = reconcile_subscription_statuses(store, today=today)
    second = reconcile_subscription_statuses(store, today=today)

    assert first.updated == 2
    assert second.updated == 0


def test_reconcile_skips_soft_deleted(db, make_subscription, today):
    deleted = make_subscription(renewal_date=today - timedelta(days=3), status="Active", deleted=True)

    summary = reconcile_subscription_statuses(SubscriptionStore(db), today=today)

    assert summary.total == 0
    db.expire_all()
    assert db.get(Subscription, deleted.id).status == "Active"


class FailingStore:
    """Fails on the second update to check there is no rollback of the first."""

    def __init__(self, store):
        self.store = store
        self.calls = 0

    def find_all_non_deleted_subscriptions(self):
        return self.store.find_all_non_deleted_subscriptions()

    def update_subscription_status(self, subscription_id, status):
        self.calls += 1
        if self.calls == 2:
            raise RuntimeError("connection lost")
        self.store.update_subscription_status(subscription_id, status)


def test_reconcile_partial_failure_keeps_committed_rows(db, make_subscription, today):
    first = make_subscription(renewal_date=today - timedelta(days=2), status="Active")
    make_subscription(renewal_date=today - timedelta(days=2), status="Active")

    with pytest.raises(RuntimeError):
        reconcile_subscription_statuses(FailingStore(SubscriptionStore(db)), today=today)

    db.expire_all()
    assert db.get(Subscription, first.id).status == "Inactive"

    # Next cycle heals the rest
    summary = reconcile_subscription_statuses(SubscriptionStore(db), today=today)
    assert summary.updated == 1
