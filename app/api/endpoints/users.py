import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from typing import List, Optional

from app import schemas
from app.core import dependencies, events
from app.crud import crud_commission, crud_user, crud_wallet
from app.db.session import get_db
from app.models.user import User as UserModel

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/register", response_model=schemas.UserWithAncestors, status_code=201)
def register_user(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user and snapshot their referral chain.
    A referral code that passes format validation but matches nobody is
    ignored rather than failing the signup.
    """
    existing_user = crud_user.get_user_by_email(db, email=user_in.email)
    if existing_user:
        raise HTTPException(
            status_code=400,
            detail="The user with this email already exists in the system.",
        )

    new_user = crud_user.create_user(db=db, obj_in=user_in)
    events.on_signup_completed(db, new_user.id, user_in.referral_code)
    db.refresh(new_user)
    logger.info(f"Registered user {new_user.id} with referral code {new_user.referral_code}")
    return new_user

@router.get("/me", response_model=schemas.User)
async def read_user_me(
    current_user: UserModel = Depends(dependencies.get_current_active_user)
):
    """
    Get current logged-in user's profile.
    """
    return current_user

@router.get("/me/ancestors", response_model=List[schemas.ReferralAncestor])
async def read_my_ancestors(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(dependencies.get_current_active_user)
):
    return crud_user.get_ancestors(db, user_id=current_user.id)

@router.get("/me/referrals", response_model=List[schemas.ReferralSummary])
async def read_my_referrals(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(dependencies.get_current_active_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    """
    Direct recruits of the current user.
    """
    return crud_user.get_referrals(db, user_id=current_user.id, skip=skip, limit=limit)

@router.get("/me/commissions", response_model=List[schemas.CommissionSchema])
async def read_my_commissions(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(dependencies.get_current_active_user),
    status: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    """
    Retrieve commissions earned by the currently authenticated user.
    Optionally filter by commission status.
    """
    return crud_commission.get_commissions_by_user(
        db, user_id=current_user.id, status=status, skip=skip, limit=limit
    )

@router.get("/me/wallet", response_model=schemas.Wallet)
async def read_my_wallet(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(dependencies.get_current_active_user),
    limit: int = Query(50, ge=1, le=200)
):
    return schemas.Wallet(
        balance=events.get_wallet_balance(db, current_user.id),
        currency=current_user.wallet_currency,
        total_earnings=current_user.total_earnings,
        transactions=crud_wallet.get_transactions_by_user(db, user_id=current_user.id, limit=limit),
    )
