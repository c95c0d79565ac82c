"""
Pydantic schemas for grouped expiry notices.
"""
from decimal import Decimal
from typing import List
from pydantic import BaseModel, Field


class ExpiryNoticeItem(BaseModel):
    """One subscription inside a department group."""
    name: str
    price: Decimal
    currency: str
    expiry_date_formatted: str = Field(..., description="e.g. 'October 17, 2026'")
    url: str


class DepartmentGroup(BaseModel):
    name: str = Field(..., description="Department name, 'N/A' when unassigned")
    subscriptions: List[ExpiryNoticeItem]


class GroupedExpiryNotice(BaseModel):
    """One notification per reminder offset."""
    departments: List[DepartmentGroup]
    days_remaining: int = Field(..., ge=0)
    total_subscriptions: int = Field(..., ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "departments": [
                    {
                        "name": "Engineering",
                        "subscriptions": [
                            {
                                "name": "GitHub Enterprise",
                                "price": "2100.00",
                                "currency": "USD",
                                "expiry_date_formatted": "October 20, 2026",
                                "url": "http://localhost:5173/subscriptions/12"
                            }
                        ]
                    }
                ],
                "days_remaining": 3,
                "total_subscriptions": 1
            }
        }
