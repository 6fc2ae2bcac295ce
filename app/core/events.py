"""
Entry points the rest of the platform calls into. Each one is a single unit
of work: it commits everything it wrote or nothing. Every path that marks a
user as paid must end up in on_payment_completed.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core import commission_distributor, wallet_ledger, withdrawals
from app.core.ancestry import build_ancestors, resolve_referral_code
from app.core.commission_distributor import DistributionResult
from app.core.exceptions import AlreadyProcessedError, LedgerError, NotFoundError, ValidationError
from app.core.referral_config import DEFAULT_RATE_TABLE, RateTable
from app.db.session import unit_of_work
from app.models.commission import Commission, CommissionDistribution
from app.models.user import User, ReferralAncestor
from app.models.wallet import WalletTransaction
from app.models.withdrawal import Withdrawal

logger = logging.getLogger(__name__)


def on_signup_completed(db: Session, new_user_id: int, referral_code: Optional[str] = None) -> List[ReferralAncestor]:
    """
    Store the referral chain of a freshly created user. An unknown code is
    treated as no code at all; signup never fails on it. Calling this again
    for a user who already has a chain returns the stored chain unchanged.
    """
    with unit_of_work(db):
        user = db.query(User).filter(User.id == new_user_id).first()
        if user is None:
            raise NotFoundError(f"User {new_user_id} not found")
        if user.referral_ancestors:
            return list(user.referral_ancestors)

        referrer = resolve_referral_code(db, referral_code)
        if referral_code and referrer is None:
            logger.warning(f"Referral code {referral_code!r} used by user {new_user_id} does not resolve to a user; continuing without referrer")
        ancestors = build_ancestors(db, user, referrer)

    return ancestors


def on_payment_completed(
    db: Session, user_id: int, plan_type, *, rate_table: RateTable = DEFAULT_RATE_TABLE
) -> DistributionResult:
    """
    Distribute commissions for a user's qualifying payment, at most once.
    A repeated call returns the stored result with already_processed=True
    and writes nothing.
    """
    try:
        with unit_of_work(db):
            result = commission_distributor.distribute_commissions(db, user_id, plan_type, rate_table=rate_table)
    except AlreadyProcessedError as e:
        logger.warning(f"Skipping commission distribution for user {user_id}: {e}")
        distribution = commission_distributor.find_distribution(db, user_id)
        if distribution is not None:
            return DistributionResult.from_distribution(distribution)
        commissions = commission_distributor.find_commissions(db, user_id)
        if not commissions:
            raise
        return DistributionResult.from_commissions(user_id, commissions)

    logger.info(
        f"Distributed {result.total_paid} in commissions to {len(result.paid)} ancestors for user {user_id}; "
        f"company share {result.company_amount}"
    )
    return result


def activate_plan(
    db: Session, user_id: int, plan_type, *, rate_table: RateTable = DEFAULT_RATE_TABLE
) -> Dict[str, Any]:
    """
    Mark a user as paid and route the payment through on_payment_completed.
    Activation is committed first: a failed commission run is logged and
    reported, not allowed to block the account. The missing-commissions
    sweep picks it up later.
    """
    plan_key = plan_type.value if hasattr(plan_type, "value") else str(plan_type)
    if not rate_table.is_known_plan(plan_key):
        raise ValidationError(f"Invalid plan type: {plan_key}")

    with unit_of_work(db):
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        if not user.has_paid:
            user.has_paid = True
            user.plan_type = plan_key
            user.paid_at = datetime.now(timezone.utc)
            db.add(user)
        elif user.plan_type != plan_key:
            logger.warning(f"User {user_id} already paid for {user.plan_type}; ignoring {plan_key} activation plan")
            plan_key = user.plan_type

    try:
        result = on_payment_completed(db, user_id, plan_key, rate_table=rate_table)
    except LedgerError as e:
        logger.error(f"Commission processing failed for user {user_id}; account stays active: {e}", exc_info=True)
        return {"user_id": user_id, "plan_type": plan_key, "commissions_processed": False, "result": None, "error": str(e)}

    return {"user_id": user_id, "plan_type": plan_key, "commissions_processed": True, "result": result, "error": None}


def process_missing_commissions(
    db: Session, user_id: Optional[int] = None, *, rate_table: RateTable = DEFAULT_RATE_TABLE
) -> List[Dict[str, Any]]:
    """
    Admin sweep: run distribution for paid users that have no distribution
    batch yet. Overlapping with the normal payment path is safe; whichever
    run commits second sees already_processed.
    """
    query = (
        db.query(User)
        .outerjoin(CommissionDistribution, CommissionDistribution.from_user_id == User.id)
        .filter(User.has_paid == True, User.plan_type.isnot(None), CommissionDistribution.id.is_(None))
    )
    if user_id is not None:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        if not user.has_paid or not rate_table.is_known_plan(user.plan_type or ""):
            raise ValidationError("User has not paid or has no valid plan")
        if commission_distributor.find_distribution(db, user_id) is not None:
            raise AlreadyProcessedError("Commissions already processed for this user")
        query = query.filter(User.id == user_id)

    pending = [(u.id, u.plan_type) for u in query.order_by(User.id).all()]
    outcomes = []
    for pending_user_id, plan_key in pending:
        try:
            result = on_payment_completed(db, pending_user_id, plan_key, rate_table=rate_table)
            outcomes.append({"user_id": pending_user_id, "plan_type": plan_key, "result": result, "error": None})
        except LedgerError as e:
            logger.error(f"Missing-commission run failed for user {pending_user_id}: {e}")
            outcomes.append({"user_id": pending_user_id, "plan_type": plan_key, "result": None, "error": str(e)})

    logger.info(f"Processed missing commissions for {len(outcomes)} users")
    return outcomes


def request_withdrawal(
    db: Session, user_id: int, amount, method: str, account_details: Mapping[str, Any],
    description: Optional[str] = None
) -> Withdrawal:
    with unit_of_work(db):
        withdrawal = withdrawals.request_withdrawal(db, user_id, amount, method, account_details, description)
    db.refresh(withdrawal)
    return withdrawal


def resolve_withdrawal(db: Session, withdrawal_id: int, decision: str, note: Optional[str] = None) -> Withdrawal:
    with unit_of_work(db):
        withdrawal = withdrawals.resolve_withdrawal(db, withdrawal_id, decision, note)
    db.refresh(withdrawal)
    return withdrawal


def get_commissions_for(db: Session, user_id: int, *, skip: int = 0, limit: int = 100) -> List[Commission]:
    return (
        db.query(Commission)
        .filter(Commission.user_id == user_id)
        .order_by(Commission.created_at.desc(), Commission.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_wallet_balance(db: Session, user_id: int) -> Decimal:
    return wallet_ledger.balance_of(db, user_id)


def get_company_wallet_summary(db: Session) -> Dict[str, Any]:
    with unit_of_work(db):
        wallet = wallet_ledger.get_company_wallet(db)

    by_level = (
        db.query(Commission.level, func.sum(Commission.amount), func.count(Commission.id))
        .filter(Commission.status != "failed")
        .group_by(Commission.level)
        .order_by(Commission.level)
        .all()
    )
    total_commissions = sum((Decimal(total or 0) for _, total, _ in by_level), Decimal("0"))
    recent = (
        db.query(WalletTransaction)
        .filter(WalletTransaction.user_id.is_(None))
        .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
        .limit(10)
        .all()
    )
    return {
        "balance": Decimal(wallet.balance),
        "total_collected": Decimal(wallet.total_collected),
        "total_commissions": total_commissions,
        "distribution_count": db.query(func.count(CommissionDistribution.id)).scalar() or 0,
        "commission_by_level": [
            {"level": level, "total": Decimal(total or 0), "count": count} for level, total, count in by_level
        ],
        "recent_transactions": recent,
        "updated_at": wallet.updated_at,
    }
