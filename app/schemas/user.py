"""
Pydantic schemas for user management endpoints.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


class UserBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=60)
    last_name: str = Field(..., min_length=1, max_length=60)
    email: EmailStr
    phone_no: Optional[str] = Field(None, max_length=15)
    role_id: Optional[int] = None
    department_id: Optional[int] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class UserCreate(UserBase):
    """A temporary password is generated and emailed to the new user."""
    status: str = Field("Active", pattern="^(Active|Inactive)$")

    class Config:
        json_schema_extra = {
            "example": {
                "first_name": "Asha",
                "last_name": "Patel",
                "email": "asha@example.com",
                "phone_no": "9876543210",
                "role_id": 2,
                "department_id": 1,
                "status": "Active"
            }
        }


class UserUpdate(UserBase):
    pass


class UserStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(Active|Inactive)$")


class UserOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone_no: Optional[str] = None
    status: str
    role_id: Optional[int] = None
    role_name: Optional[str] = None
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MeOut(UserOut):
    permissions: List[str] = []


class UserListResponse(BaseModel):
    users: List[UserOut]
    total: int
    total_pages: int
    current_page: int


class RoleOut(BaseModel):
    id: int
    name: str
    status: str
    permissions: List[str] = []
