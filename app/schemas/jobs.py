"""
Pydantic schemas for background job summaries.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class StatusSummary(BaseModel):
    """Result of one status reconciliation cycle."""
    total: int = 0
    active: int = 0
    inactive: int = 0
    updated: int = 0


class ReminderSummary(BaseModel):
    """Result of one expiry reminder scan."""
    checked: int = Field(0, description="Subscriptions scanned")
    sent: int = Field(0, description="Notifications dispatched")
    failed: int = Field(0, description="Buckets whose dispatch failed")


class CurrencyUpdateSummary(BaseModel):
    success: bool
    count: int = 0
    message: str


class JobResult(BaseModel):
    """Outcome of Job.run(), returned to the scheduler and the manual trigger endpoint."""
    job: str
    success: bool
    started_at: datetime
    finished_at: datetime
    summary: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
