"""
User models for UISketch: accounts, plans and the credit ledger
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum

class Plan(str, Enum):
    FREE = "free"
    PRO = "pro"

PASSWORD_RULES = (
    (str.isupper, "Password must contain at least one uppercase letter"),
    (str.islower, "Password must contain at least one lowercase letter"),
    (str.isdigit, "Password must contain at least one number"),
)

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: Optional[str] = Field(default=None, max_length=200)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        for check, message in PASSWORD_RULES:
            if not any(check(c) for c in value):
                raise ValueError(message)
        return value

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = None

class UserResponse(BaseModel):
    id: str
    email: EmailStr
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    plan: Plan
    credits_used: int
    credits_reset_at: datetime
    subscription_status: Optional[str] = None
    created_at: datetime

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class RegistrationPendingResponse(BaseModel):
    message: str
    user_id: str
    email_confirmation_required: bool = True

class UserCreditsInfo(BaseModel):
    """Credit ledger snapshot. Unlimited values are reported as -1."""
    plan: Plan
    credits_used: int
    credits_remaining: int
    credits_total: int
    is_unlimited: bool
    can_generate: bool
    reset_date: Optional[datetime] = None
    subscription_status: Optional[str] = None

class CreditCheckResult(BaseModel):
    can_generate: bool
    reason: Optional[str] = None
    # Set only when the cap is the reason; other refusals are lookup or storage errors
    limit_reached: bool = False
