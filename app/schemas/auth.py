"""
Pydantic schemas for step-up login endpoints.
"""
from pydantic import BaseModel, EmailStr, Field, field_validator


class LoginRequest(BaseModel):
    """Request schema for login step 1 (password check, OTP sent)."""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "admin@example.com",
                "password": "SecurePass123"
            }
        }


class VerifyOtpRequest(BaseModel):
    """Request schema for login step 2."""
    user_id: int = Field(..., gt=0)
    otp: str = Field(..., description="6-digit code from the email")

    @field_validator("otp")
    @classmethod
    def strip_otp(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("OTP is required")
        return v


class ResendOtpRequest(BaseModel):
    user_id: int = Field(..., gt=0)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    email: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)
