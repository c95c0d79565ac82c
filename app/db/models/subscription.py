"""
Subscription model owned by a department.

status mirrors a pure function of renewal_date (see
app.services.status_service.derive_status) and is reconciled periodically,
so it may be briefly stale.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Numeric, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class BillingType(str, enum.Enum):
    MONTHLY = "Monthly"
    YEARLY = "Yearly"
    FOREVER = "Forever"


class Currency(str, enum.Enum):
    INR = "INR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    AUD = "AUD"
    CAD = "CAD"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    # Unique among live rows only, enforced in subscription_service
    name = Column(String(150), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    billing_type = Column(String(20), nullable=False, default=BillingType.MONTHLY.value)
    currency = Column(String(3), nullable=False, default=Currency.INR.value)
    renewal_date = Column(Date, nullable=True)  # NULL = lifetime
    portal_detail = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value, index=True)

    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)

    # Audit
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    deleted_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    department = relationship("Department", backref="subscriptions")

    __table_args__ = (
        Index("idx_subscription_status_renewal", "status", "renewal_date"),
    )

    def __repr__(self):
        return f"<Subscription(id={self.id}, name='{self.name}', status='{self.status}')>"
