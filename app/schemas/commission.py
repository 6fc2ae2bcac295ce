from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class Commission(BaseModel):
    """Full schema for returning commission data to the client."""
    id: int
    distribution_id: int
    from_user_id: int
    user_id: int
    level: int
    percentage: Decimal
    plan_type: str
    plan_amount: Decimal
    amount: Decimal
    currency: str
    status: str
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class PaidCommission(BaseModel):
    ancestor_id: int
    level: int
    percentage: Decimal
    amount: Decimal

    class Config:
        from_attributes = True

class DistributionResult(BaseModel):
    paying_user_id: int
    plan_type: str
    plan_amount: Decimal
    paid: List[PaidCommission] = []
    total_paid: Decimal
    company_amount: Decimal
    already_processed: bool = False

    class Config:
        from_attributes = True

class LevelEarning(BaseModel):
    level: int
    percentage: Decimal
    amount: Decimal

class EarningsPreview(BaseModel):
    plan_type: str
    plan_amount: Decimal
    levels: List[LevelEarning]
    total_commission: Decimal
    company_amount: Decimal

class PlanInfo(BaseModel):
    amount: Decimal
    label: str

class CommissionConfig(BaseModel):
    max_referral_depth: int
    plans: dict[str, PlanInfo]
    breakdown: dict[str, EarningsPreview]
