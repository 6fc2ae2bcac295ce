from fastapi import APIRouter, Depends, HTTPException, Query, Body
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core import events, wallet_ledger
from app.core.dependencies import get_current_active_superuser
from app.core.referral_config import DEFAULT_RATE_TABLE
from app.crud import crud_user, crud_withdrawal
from app.db.session import get_db
from app.models.user import User
from app.schemas.commission import CommissionConfig
from app.schemas.payment import (
    MissingCommissionOutcome,
    MissingCommissionsRequest,
    PlanActivationRequest,
    PlanActivationResponse,
)
from app.schemas.wallet import CompanyWalletSummary, Reconciliation
from app.schemas.withdrawal import Withdrawal, WithdrawalDecision

router = APIRouter()

@router.get("/withdrawals", response_model=List[Withdrawal])
async def admin_list_withdrawals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser),
    status: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    return crud_withdrawal.get_withdrawals(db, status=status, skip=skip, limit=limit)

@router.get("/withdrawals/{withdrawal_id}", response_model=Withdrawal)
async def admin_read_withdrawal(
    withdrawal_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    withdrawal = crud_withdrawal.get_withdrawal(db, withdrawal_id)
    if not withdrawal:
        raise HTTPException(status_code=404, detail="Withdrawal not found")
    return withdrawal

@router.patch("/withdrawals/{withdrawal_id}", response_model=Withdrawal)
async def admin_resolve_withdrawal(
    withdrawal_id: int,
    decision: WithdrawalDecision,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    """
    Approve or reject a pending withdrawal. Rejection refunds the user.
    A withdrawal that was already decided answers 409 and changes nothing.
    """
    return events.resolve_withdrawal(db, withdrawal_id, decision.status, decision.admin_message)

@router.post("/users/{user_id}/activate", response_model=PlanActivationResponse)
async def admin_activate_user(
    user_id: int,
    payload: PlanActivationRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    """
    Direct admin activation. Goes through the same commission entry point
    as a gateway payment.
    """
    return events.activate_plan(db, user_id, payload.plan_type)

@router.post("/process-missing-commissions", response_model=List[MissingCommissionOutcome])
async def admin_process_missing_commissions(
    payload: Optional[MissingCommissionsRequest] = Body(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    """
    Run distribution for paid users whose commissions were never recorded,
    or for a single user when user_id is given.
    """
    return events.process_missing_commissions(db, payload.user_id if payload else None)

@router.get("/company-wallet", response_model=CompanyWalletSummary)
async def admin_company_wallet(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    return events.get_company_wallet_summary(db)

@router.get("/commission-config", response_model=CommissionConfig)
async def admin_commission_config(
    current_user: User = Depends(get_current_active_superuser)
):
    return DEFAULT_RATE_TABLE.summary()

@router.get("/users/{user_id}/reconcile", response_model=Reconciliation)
async def admin_reconcile_wallet(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    if not crud_user.get_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    cached, computed = wallet_ledger.reconcile(db, user_id)
    return Reconciliation(user_id=user_id, cached_balance=cached, ledger_balance=computed, in_balance=cached == computed)
