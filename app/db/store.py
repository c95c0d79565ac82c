"""
Persistence adapters used by the lifecycle services and jobs.

Rows leave this module as frozen dataclasses so business logic never touches
ORM instances. Every write commits on its own: there is no transaction
spanning several subscriptions or users.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.dates import to_date
from app.db.models.department import Department
from app.db.models.subscription import Subscription, SubscriptionStatus
from app.db.models.user import User

logger = logging.getLogger(__name__)

OTP_FIELDS = ("otp_code", "otp_expires_at", "otp_attempts", "otp_created_at")


@dataclass(frozen=True)
class SubscriptionRecord:
    id: int
    name: str
    price: Decimal
    currency: str
    renewal_date: Optional[date]
    status: str
    department_name: Optional[str] = None


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    first_name: str
    last_name: str
    status: str


@dataclass(frozen=True)
class OtpState:
    code: Optional[str]
    expires_at: Optional[datetime]
    attempts: int
    created_at: Optional[datetime]

    @property
    def has_code(self) -> bool:
        return bool(self.code)


def _to_subscription_record(row: Any) -> SubscriptionRecord:
    if row.id is None:
        raise ValueError("Subscription row without id")
    if not row.name:
        raise ValueError(f"Subscription {row.id} has no name")
    if row.status is None:
        raise ValueError(f"Subscription {row.id} has no status")

    return SubscriptionRecord(
        id=int(row.id),
        name=str(row.name),
        price=Decimal(str(row.price)) if row.price is not None else Decimal("0"),
        currency=str(row.currency or "INR").upper(),
        renewal_date=to_date(row.renewal_date) if row.renewal_date is not None else None,
        status=str(row.status),
        department_name=getattr(row, "department_name", None),
    )


class SubscriptionStore:
    """Subscription queries needed by the status engine and reminder scan."""

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(
            Subscription.id,
            Subscription.name,
            Subscription.price,
            Subscription.currency,
            Subscription.renewal_date,
            Subscription.status,
            Department.name.label("department_name"),
        ).outerjoin(Department, Subscription.department_id == Department.id)

    def find_active_subscriptions_with_renewal_date(self) -> List[SubscriptionRecord]:
        """Active, dated, live subscriptions. Lifetime and soft-deleted rows are excluded."""
        rows = (
            self._base_query()
            .filter(
                func.lower(Subscription.status) == SubscriptionStatus.ACTIVE.value.lower(),
                Subscription.renewal_date.isnot(None),
                Subscription.deleted_at.is_(None),
            )
            .order_by(Subscription.renewal_date, Subscription.id)
            .all()
        )
        return [_to_subscription_record(row) for row in rows]

    def find_all_non_deleted_subscriptions(self) -> List[SubscriptionRecord]:
        rows = (
            self._base_query()
            .filter(Subscription.deleted_at.is_(None))
            .order_by(Subscription.id)
            .all()
        )
        return [_to_subscription_record(row) for row in rows]

    def update_subscription_status(self, subscription_id: int, status: SubscriptionStatus) -> None:
        """Write a new status and bump updated_at."""
        try:
            self.db.query(Subscription).filter(Subscription.id == subscription_id).update(
                {
                    Subscription.status: SubscriptionStatus(status).value,
                    Subscription.updated_at: datetime.utcnow(),
                },
                synchronize_session=False,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Failed to update status for subscription_id={subscription_id}")
            raise


class UserStore:
    """User lookups and OTP field writes."""

    def __init__(self, db: Session):
        self.db = db

    def find_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        user = (
            self.db.query(User)
            .filter(User.id == user_id, User.deleted_at.is_(None))
            .first()
        )
        if not user:
            return None
        return UserRecord(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            status=user.status,
        )

    def get_otp_state(self, user_id: int) -> Optional[OtpState]:
        row = (
            self.db.query(
                User.otp_code,
                User.otp_expires_at,
                User.otp_attempts,
                User.otp_created_at,
            )
            .filter(User.id == user_id, User.deleted_at.is_(None))
            .first()
        )
        if row is None:
            return None
        return OtpState(
            code=row.otp_code,
            expires_at=row.otp_expires_at,
            attempts=int(row.otp_attempts or 0),
            created_at=row.otp_created_at,
        )

    def update_user_otp_fields(self, user_id: int, fields: Dict[str, Any]) -> int:
        """
        Overwrite OTP columns for one user.

        Returns:
            Number of rows affected (0 when the user does not exist)
        """
        unknown = set(fields) - set(OTP_FIELDS)
        if unknown:
            raise ValueError(f"Not an OTP field: {', '.join(sorted(unknown))}")

        try:
            affected = (
                self.db.query(User)
                .filter(User.id == user_id)
                .update(dict(fields), synchronize_session=False)
            )
            self.db.commit()
            return affected
        except Exception:
            self.db.rollback()
            logger.error(f"Failed to update OTP fields for user_id={user_id}")
            raise

    def increment_user_otp_attempts(self, user_id: int) -> None:
        try:
            self.db.query(User).filter(User.id == user_id).update(
                {User.otp_attempts: func.coalesce(User.otp_attempts, 0) + 1},
                synchronize_session=False,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Failed to increment OTP attempts for user_id={user_id}")
            raise

    def clear_user_otp(self, user_id: int) -> int:
        """Drop the pending code. otp_created_at is kept as the resend cooldown anchor."""
        return self.update_user_otp_fields(
            user_id,
            {
                "otp_code": None,
                "otp_expires_at": None,
                "otp_attempts": 0,
            },
        )
