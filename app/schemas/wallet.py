from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

class WalletTransaction(BaseModel):
    id: int
    user_id: Optional[int] = None
    amount: Decimal
    transaction_type: str
    reference_id: Optional[str] = None
    status: str
    description: str
    created_at: datetime

    class Config:
        from_attributes = True

class Wallet(BaseModel):
    balance: Decimal
    currency: str
    total_earnings: Decimal
    transactions: List[WalletTransaction] = []

class LevelTotal(BaseModel):
    level: int
    total: Decimal
    count: int

class CompanyWalletSummary(BaseModel):
    balance: Decimal
    total_collected: Decimal
    total_commissions: Decimal
    distribution_count: int
    commission_by_level: List[LevelTotal] = []
    recent_transactions: List[WalletTransaction] = []
    updated_at: Optional[datetime] = None

class Reconciliation(BaseModel):
    user_id: int
    cached_balance: Decimal
    ledger_balance: Decimal
    in_balance: bool
