"""
Pydantic schemas for subscription and department endpoints.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from app.db.models.subscription import BillingType, Currency


class SubscriptionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    billing_type: BillingType = BillingType.MONTHLY
    currency: Currency = Currency.INR
    renewal_date: Optional[date] = Field(None, description="Omit for lifetime subscriptions")
    portal_detail: Optional[str] = None
    department_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Subscription name is required")
        return v


class SubscriptionCreate(SubscriptionBase):
    pass


class SubscriptionUpdate(SubscriptionBase):
    pass


class SubscriptionOut(BaseModel):
    id: int
    name: str
    price: Decimal
    billing_type: str
    currency: str
    renewal_date: Optional[date] = None
    portal_detail: Optional[str] = None
    status: str
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubscriptionListResponse(BaseModel):
    subscriptions: List[SubscriptionOut]
    total: int
    total_pages: int
    current_page: int


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class DepartmentOut(BaseModel):
    id: int
    name: str
    status: str

    class Config:
        from_attributes = True
