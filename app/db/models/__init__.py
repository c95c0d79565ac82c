"""
Database models module.

Importing this package registers every table with Base.metadata before
table creation or Alembic autogeneration.
"""
from app.db.models.department import Department
from app.db.models.role import Role, Permission, role_permissions
from app.db.models.user import User
from app.db.models.subscription import Subscription, SubscriptionStatus, BillingType, Currency
from app.db.models.currency_rate import CurrencyRate

__all__ = [
    "Department",
    "Role",
    "Permission",
    "role_permissions",
    "User",
    "Subscription",
    "SubscriptionStatus",
    "BillingType",
    "Currency",
    "CurrencyRate",
]
