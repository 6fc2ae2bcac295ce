from pydantic import BaseModel, Field
from typing import Optional, Dict, Literal
from datetime import datetime
from decimal import Decimal

class WithdrawalCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    method: Literal["bank", "upi"]
    account_details: Dict[str, str]
    description: Optional[str] = Field(default=None, max_length=255)

class WithdrawalDecision(BaseModel):
    status: Literal["approved", "rejected"]
    admin_message: Optional[str] = None

class Withdrawal(BaseModel):
    id: int
    user_id: int
    amount: Decimal
    method: str
    account_details: Dict[str, str]
    description: str
    status: str
    admin_message: Optional[str] = None
    transaction_id: Optional[int] = None
    created_at: datetime
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
