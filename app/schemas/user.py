from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

class UserBase(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=255)

class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    referral_code: Optional[str] = Field(default=None, description="Referral code of the recruiting user")
    is_superuser: bool = False

    @field_validator("referral_code")
    @classmethod
    def normalize_referral_code(cls, v: Optional[str]) -> Optional[str]:
        # Format check only; whether the code belongs to a user is decided at signup
        if v is None or not v.strip():
            return None
        v = v.strip().upper()
        if not (4 <= len(v) <= 12) or not v.isalnum() or not v.isascii():
            raise ValueError("Referral code must be 4-12 letters or digits")
        return v

class ReferralAncestor(BaseModel):
    ancestor_id: int
    level: int

    class Config:
        from_attributes = True

class User(UserBase):
    id: int
    referral_code: str
    referred_by_id: Optional[int] = None
    referral_count: int
    plan_type: Optional[str] = None
    has_paid: bool
    paid_at: Optional[datetime] = None
    total_earnings: Decimal
    wallet_balance: Decimal
    wallet_currency: str
    is_active: bool
    is_superuser: bool
    created_at: datetime

    class Config:
        from_attributes = True

class UserWithAncestors(User):
    referral_ancestors: List[ReferralAncestor] = []

class ReferralSummary(BaseModel):
    """A recruit as seen by their referrer."""
    id: int
    name: Optional[str] = None
    email: EmailStr
    has_paid: bool
    plan_type: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
