from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional, List

from app.models.commission import Commission, CommissionDistribution

def get_commission(db: Session, commission_id: int) -> Optional[Commission]:
    return db.query(Commission).filter(Commission.id == commission_id).first()

def get_commissions_by_user(
    db: Session, *, user_id: int, status: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[Commission]:
    """
    Get commissions earned by a user, optionally filtered by status.
    Newest first.
    """
    query = db.query(Commission).filter(Commission.user_id == user_id)
    if status:
        query = query.filter(Commission.status == status)
    return query.order_by(Commission.created_at.desc(), Commission.id.desc()).offset(skip).limit(limit).all()

def get_commissions_from_user(db: Session, *, from_user_id: int) -> List[Commission]:
    """All commissions a single payer's purchase generated, by level."""
    return (
        db.query(Commission)
        .filter(Commission.from_user_id == from_user_id)
        .order_by(Commission.level)
        .all()
    )

def get_distribution(db: Session, *, from_user_id: int) -> Optional[CommissionDistribution]:
    return db.query(CommissionDistribution).filter(CommissionDistribution.from_user_id == from_user_id).first()

def count_distributions(db: Session, *, from_user_id: int) -> int:
    return db.query(CommissionDistribution).filter(CommissionDistribution.from_user_id == from_user_id).count()

def get_earnings_by_level(db: Session, *, user_id: int) -> List[tuple]:
    """(level, total, count) for a user's non-failed commissions."""
    return (
        db.query(Commission.level, func.sum(Commission.amount), func.count(Commission.id))
        .filter(Commission.user_id == user_id, Commission.status != "failed")
        .group_by(Commission.level)
        .order_by(Commission.level)
        .all()
    )
