"""
Append-only wallet ledger.

Every balance change is a WalletTransaction row plus a single conditional
UPDATE on the cached balance, so two concurrent operations on one wallet
can't both read a balance and write back a stale result. Nothing here
commits; callers wrap these calls in app.db.session.unit_of_work.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import Numeric, func
from sqlalchemy.orm import Session

from app.core.exceptions import InsufficientBalanceError, NotFoundError, ValidationError
from app.core.referral_config import round_money
from app.models.user import User
from app.models.wallet import WalletTransaction, CompanyWallet, COMPANY_WALLET_ID

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("purchase", "commission", "withdrawal", "deposit")
TRANSACTION_STATUSES = ("pending", "completed", "failed")


def _cents(expr):
    # SQLite evaluates Numeric arithmetic in floating point; keep stored values on the cent grid
    return func.round(expr, 2, type_=Numeric(14, 2))


def _check_amount(amount: Decimal) -> Decimal:
    amount = round_money(amount)
    if amount <= 0:
        raise ValidationError(f"Amount must be positive, got {amount}")
    return amount


def _check_type(transaction_type: str) -> None:
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError(f"Unknown transaction type: {transaction_type}")


def _record(
    db: Session, *, user_id: Optional[int], amount: Decimal, transaction_type: str,
    reference_id: Optional[str], status: str, description: str
) -> WalletTransaction:
    tx = WalletTransaction(
        user_id=user_id,
        amount=amount,
        transaction_type=transaction_type,
        reference_id=reference_id,
        status=status,
        description=description,
    )
    db.add(tx)
    db.flush()
    return tx


def credit(
    db: Session, user_id: int, amount: Decimal, transaction_type: str, reference_id: Optional[str],
    *, description: Optional[str] = None, status: str = "completed", count_as_earnings: bool = False
) -> WalletTransaction:
    amount = _check_amount(amount)
    _check_type(transaction_type)

    values = {User.wallet_balance: _cents(User.wallet_balance + amount)}
    if count_as_earnings:
        values[User.total_earnings] = _cents(User.total_earnings + amount)
    updated = db.query(User).filter(User.id == user_id).update(values, synchronize_session=False)
    if not updated:
        raise NotFoundError(f"User {user_id} not found")

    return _record(
        db, user_id=user_id, amount=amount, transaction_type=transaction_type, reference_id=reference_id,
        status=status, description=description or f"{transaction_type.title()} credit",
    )


def debit(
    db: Session, user_id: int, amount: Decimal, transaction_type: str, reference_id: Optional[str],
    *, description: Optional[str] = None, status: str = "completed"
) -> WalletTransaction:
    """
    Take amount out of the spendable balance. The balance check and the
    decrement are one statement; if it matches no row the balance was short.
    """
    amount = _check_amount(amount)
    _check_type(transaction_type)

    updated = (
        db.query(User)
        .filter(User.id == user_id, _cents(User.wallet_balance) >= amount)
        .update({User.wallet_balance: _cents(User.wallet_balance - amount)}, synchronize_session=False)
    )
    if not updated:
        available = db.query(User.wallet_balance).filter(User.id == user_id).scalar()
        if available is None:
            raise NotFoundError(f"User {user_id} not found")
        raise InsufficientBalanceError(available_balance=available)

    return _record(
        db, user_id=user_id, amount=-amount, transaction_type=transaction_type, reference_id=reference_id,
        status=status, description=description or f"{transaction_type.title()} debit",
    )


def balance_of(db: Session, user_id: int) -> Decimal:
    balance = db.query(User.wallet_balance).filter(User.id == user_id).scalar()
    if balance is None:
        raise NotFoundError(f"User {user_id} not found")
    return Decimal(balance)


def set_transaction_status(db: Session, transaction: WalletTransaction, status: str) -> WalletTransaction:
    if status not in TRANSACTION_STATUSES:
        raise ValidationError(f"Unknown transaction status: {status}")
    transaction.status = status
    transaction.updated_at = datetime.now(timezone.utc)
    db.add(transaction)
    db.flush()
    return transaction


def get_company_wallet(db: Session) -> CompanyWallet:
    wallet = db.query(CompanyWallet).filter(CompanyWallet.wallet_id == COMPANY_WALLET_ID).first()
    if wallet is None:
        wallet = CompanyWallet(
            wallet_id=COMPANY_WALLET_ID, balance=0, total_collected=0, total_commissions=0
        )
        db.add(wallet)
        db.flush()
    return wallet


def credit_company(
    db: Session, amount: Decimal, reference_id: str, *, collected: Decimal, commissions: Decimal,
    description: Optional[str] = None
) -> WalletTransaction:
    """
    Credit the operating company with what is left of a purchase after
    commissions. A zero share still records a transaction so every purchase
    leaves exactly one company entry.
    """
    amount = round_money(amount)
    if amount < 0:
        raise ValidationError(f"Company share cannot be negative, got {amount}")

    get_company_wallet(db)
    db.query(CompanyWallet).filter(CompanyWallet.wallet_id == COMPANY_WALLET_ID).update(
        {
            CompanyWallet.balance: _cents(CompanyWallet.balance + amount),
            CompanyWallet.total_collected: _cents(CompanyWallet.total_collected + round_money(collected)),
            CompanyWallet.total_commissions: _cents(CompanyWallet.total_commissions + round_money(commissions)),
        },
        synchronize_session=False,
    )
    return _record(
        db, user_id=None, amount=amount, transaction_type="purchase", reference_id=reference_id,
        status="completed", description=description or "Company revenue from plan purchase",
    )


def company_balance(db: Session) -> Decimal:
    balance = db.query(CompanyWallet.balance).filter(CompanyWallet.wallet_id == COMPANY_WALLET_ID).scalar()
    return Decimal(balance) if balance is not None else Decimal("0")


def ledger_sum(db: Session, user_id: Optional[int]) -> Decimal:
    """
    Sum of every transaction amount of a wallet, whatever its status. Each
    row moved the cached balance when it was written; a failed withdrawal
    debit is offset by its own refund deposit, never by deleting the row.
    """
    owner = WalletTransaction.user_id.is_(None) if user_id is None else WalletTransaction.user_id == user_id
    total = db.query(func.sum(WalletTransaction.amount)).filter(owner).scalar()
    return round_money(total or Decimal("0"))


def reconcile(db: Session, user_id: int) -> Tuple[Decimal, Decimal]:
    """
    Return (cached balance, balance recomputed from the ledger). Every
    status counts on purpose, see ledger_sum: pending withdrawals already
    left the cached balance.
    """
    cached = balance_of(db, user_id)
    computed = ledger_sum(db, user_id)
    if cached != computed:
        logger.warning(f"Wallet of user {user_id} out of balance: cached {cached}, ledger {computed}")
    return cached, computed
