from sqlalchemy.orm import Session
from typing import Optional, List

from app.core.ancestry import assign_unique_referral_code
from app.core.config import WALLET_CURRENCY
from app.core.security import get_password_hash
from app.models.user import User, ReferralAncestor
from app.schemas.user import UserCreate

def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()

def get_user_by_referral_code(db: Session, referral_code: str) -> Optional[User]:
    return db.query(User).filter(User.referral_code == referral_code.upper()).first()

def create_user(db: Session, *, obj_in: UserCreate) -> User:
    """
    Create the user row with a fresh referral code. The referral chain is
    attached afterwards by app.core.events.on_signup_completed.
    """
    db_obj = User(
        email=obj_in.email,
        name=obj_in.name,
        hashed_password=get_password_hash(obj_in.password),
        referral_code=assign_unique_referral_code(db),
        referral_count=0,
        total_earnings=0,
        wallet_balance=0,
        wallet_currency=WALLET_CURRENCY,
        is_active=True, # Default to active on creation
        is_superuser=obj_in.is_superuser
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_referrals(db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[User]:
    """Direct recruits of a user, newest first."""
    return (
        db.query(User)
        .filter(User.referred_by_id == user_id)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_ancestors(db: Session, *, user_id: int) -> List[ReferralAncestor]:
    return (
        db.query(ReferralAncestor)
        .filter(ReferralAncestor.user_id == user_id)
        .order_by(ReferralAncestor.level)
        .all()
    )

def get_team_size(db: Session, *, user_id: int) -> int:
    """Number of users that have this user anywhere in their stored chain."""
    return db.query(ReferralAncestor).filter(ReferralAncestor.ancestor_id == user_id).count()
