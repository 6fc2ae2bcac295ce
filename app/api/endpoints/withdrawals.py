from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from app.core import events
from app.core.dependencies import get_current_active_user
from app.crud import crud_withdrawal
from app.db.session import get_db
from app.models.user import User
from app.schemas.withdrawal import Withdrawal, WithdrawalCreate

router = APIRouter()

@router.post("/", response_model=Withdrawal, status_code=201)
async def create_withdrawal_request(
    withdrawal_in: WithdrawalCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Request a payout. The amount leaves the spendable balance immediately
    and stays reserved until an admin approves or rejects the request.
    """
    return events.request_withdrawal(
        db,
        current_user.id,
        withdrawal_in.amount,
        withdrawal_in.method,
        withdrawal_in.account_details,
        withdrawal_in.description,
    )

@router.get("/me", response_model=List[Withdrawal])
async def read_my_withdrawals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    return crud_withdrawal.get_withdrawals_by_user(db, user_id=current_user.id, skip=skip, limit=limit)
