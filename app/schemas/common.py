"""
Structured result returned by lifecycle operations.

Expected business outcomes (wrong code, expired code, cooldown) are failures
carried in this model, never exceptions.
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ServiceResult(BaseModel):
    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(..., description="Human-readable outcome")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Optional payload")

    @classmethod
    def ok(cls, message: str, **data: Any) -> "ServiceResult":
        return cls(success=True, message=message, data=data or None)

    @classmethod
    def fail(cls, message: str, **data: Any) -> "ServiceResult":
        return cls(success=False, message=message, data=data or None)
