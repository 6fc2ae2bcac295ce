import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from app.core import wallet_ledger
from app.core.exceptions import AlreadyProcessedError, NotFoundError, ValidationError
from app.core.referral_config import round_money
from app.models.wallet import WalletTransaction
from app.models.withdrawal import Withdrawal

logger = logging.getLogger(__name__)

# Account detail fields each payout method needs
METHOD_REQUIRED_FIELDS = {
    "bank": ("account_holder_name", "account_number", "ifsc_code"),
    "upi": ("upi_id",),
}

DECISIONS = {"approved", "rejected"}


def validate_account_details(method: Optional[str], account_details: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    if not method:
        raise ValidationError("Withdrawal method is required")
    if method not in METHOD_REQUIRED_FIELDS:
        raise ValidationError(f"Unsupported withdrawal method: {method}")
    if not account_details:
        raise ValidationError("Account details are required for withdrawal")

    cleaned = {}
    missing = []
    for name in METHOD_REQUIRED_FIELDS[method]:
        value = account_details.get(name)
        if value is None or not str(value).strip():
            missing.append(name)
        else:
            cleaned[name] = str(value).strip()
    if missing:
        raise ValidationError(f"Missing account details for {method}: {', '.join(missing)}")
    return cleaned


def _parse_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid withdrawal amount: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise ValidationError("Invalid withdrawal amount")
    if round_money(value) != value:
        raise ValidationError("Withdrawal amount has more precision than the currency allows")
    return value


def request_withdrawal(
    db: Session, user_id: int, amount, method: str, account_details: Mapping[str, Any],
    description: Optional[str] = None
) -> Withdrawal:
    """
    Create a pending withdrawal and take the funds out of the spendable
    balance right away, recorded as a pending withdrawal transaction.
    Raises InsufficientBalanceError without touching anything if the
    balance is short. Does not commit.
    """
    value = _parse_amount(amount)
    details = validate_account_details(method, account_details)

    withdrawal = Withdrawal(
        user_id=user_id,
        amount=value,
        method=method,
        account_details=details,
        description=description or f"Withdrawal request via {method}",
        status="pending",
    )
    db.add(withdrawal)
    db.flush()

    tx = wallet_ledger.debit(
        db, user_id, value, "withdrawal", str(withdrawal.id),
        description=f"Withdrawal request via {method}", status="pending",
    )
    withdrawal.transaction_id = tx.id
    db.flush()

    logger.info(f"Withdrawal {withdrawal.id} of {value} via {method} requested by user {user_id}")
    return withdrawal


def resolve_withdrawal(db: Session, withdrawal_id: int, decision: str, note: Optional[str] = None) -> Withdrawal:
    """
    Finalize a pending withdrawal.

    approved: the pending debit is completed, balance unchanged.
    rejected: the pending debit fails and a deposit refunds the amount.

    The pending -> final transition is a compare-and-set on status, so two
    admins deciding at once can't both succeed. Does not commit.
    """
    if decision not in DECISIONS:
        raise ValidationError("Valid status (approved/rejected) is required")

    withdrawal = db.query(Withdrawal).filter(Withdrawal.id == withdrawal_id).with_for_update().first()
    if withdrawal is None:
        raise NotFoundError(f"Withdrawal {withdrawal_id} not found")

    now = datetime.now(timezone.utc)
    values = {Withdrawal.status: decision, Withdrawal.processed_at: now, Withdrawal.updated_at: now}
    if decision == "approved":
        values[Withdrawal.approved_at] = now
    else:
        values[Withdrawal.rejected_at] = now
    if note:
        values[Withdrawal.admin_message] = note

    updated = (
        db.query(Withdrawal)
        .filter(Withdrawal.id == withdrawal_id, Withdrawal.status == "pending")
        .update(values, synchronize_session=False)
    )
    if not updated:
        db.refresh(withdrawal)
        raise AlreadyProcessedError(f"Withdrawal has already been {withdrawal.status}")

    tx = None
    if withdrawal.transaction_id is not None:
        tx = db.query(WalletTransaction).filter(WalletTransaction.id == withdrawal.transaction_id).first()

    if decision == "approved":
        if tx is not None:
            wallet_ledger.set_transaction_status(db, tx, "completed")
    else:
        if tx is not None:
            wallet_ledger.set_transaction_status(db, tx, "failed")
        wallet_ledger.credit(
            db, withdrawal.user_id, withdrawal.amount, "deposit", str(withdrawal.id),
            description=f"Refund for rejected withdrawal {withdrawal.id}",
        )

    db.refresh(withdrawal)
    logger.info(f"Withdrawal {withdrawal.id} {decision}" + (f": {note}" if note else ""))
    return withdrawal
