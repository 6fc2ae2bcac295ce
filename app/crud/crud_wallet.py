from sqlalchemy.orm import Session
from typing import Optional, List

from app.models.wallet import WalletTransaction

def get_transactions_by_user(
    db: Session, *, user_id: int, transaction_type: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[WalletTransaction]:
    query = db.query(WalletTransaction).filter(WalletTransaction.user_id == user_id)
    if transaction_type:
        query = query.filter(WalletTransaction.transaction_type == transaction_type)
    return query.order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc()).offset(skip).limit(limit).all()

def get_company_transactions(db: Session, *, skip: int = 0, limit: int = 100) -> List[WalletTransaction]:
    return (
        db.query(WalletTransaction)
        .filter(WalletTransaction.user_id.is_(None))
        .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_transactions_by_reference(db: Session, *, reference_id: str) -> List[WalletTransaction]:
    return (
        db.query(WalletTransaction)
        .filter(WalletTransaction.reference_id == reference_id)
        .order_by(WalletTransaction.id)
        .all()
    )
