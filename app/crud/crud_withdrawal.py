from sqlalchemy.orm import Session
from typing import Optional, List

from app.models.withdrawal import Withdrawal

def get_withdrawal(db: Session, withdrawal_id: int) -> Optional[Withdrawal]:
    return db.query(Withdrawal).filter(Withdrawal.id == withdrawal_id).first()

def get_withdrawals_by_user(db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[Withdrawal]:
    return (
        db.query(Withdrawal)
        .filter(Withdrawal.user_id == user_id)
        .order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_withdrawals(
    db: Session, *, status: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[Withdrawal]:
    """Admin listing, oldest first so the queue is worked in order."""
    query = db.query(Withdrawal)
    if status:
        query = query.filter(Withdrawal.status == status)
    return query.order_by(Withdrawal.created_at.asc(), Withdrawal.id.asc()).offset(skip).limit(limit).all()
