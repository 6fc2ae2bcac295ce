import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core import events
from app.core.dependencies import get_current_active_user, get_payment_verifier
from app.core.payment_verifier import PaymentVerifier, PaymentVerificationError
from app.core.referral_config import DEFAULT_RATE_TABLE
from app.db.session import get_db
from app.models.user import User
from app.schemas.payment import PaymentCompleteRequest, PlanActivationResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/complete", response_model=PlanActivationResponse)
async def complete_payment(
    *,
    db: Session = Depends(get_db),
    payload: PaymentCompleteRequest,
    current_user: User = Depends(get_current_active_user),
    verifier: PaymentVerifier = Depends(get_payment_verifier)
):
    """
    Gateway confirmation path: verify the plan payment, activate the plan
    and distribute commissions to the user's referral chain.
    """
    plan_amount = DEFAULT_RATE_TABLE.plan_amount(payload.plan_type)
    logger.info(f"User {current_user.id} completing payment for {payload.plan_type.value} plan ({plan_amount})")

    try:
        verified = verifier.verify(payload.payment_intent_id, plan_amount, current_user.wallet_currency)
    except PaymentVerificationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if not verified:
        raise HTTPException(status_code=402, detail="Payment could not be verified")

    return events.activate_plan(db, current_user.id, payload.plan_type)
