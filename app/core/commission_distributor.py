import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import wallet_ledger
from app.core.config import WALLET_CURRENCY
from app.core.exceptions import AlreadyProcessedError, NotFoundError, ValidationError
from app.core.referral_config import DEFAULT_RATE_TABLE, RateTable
from app.models.commission import Commission, CommissionDistribution
from app.models.user import User

logger = logging.getLogger(__name__)

# One canonical status for every trigger path (payment, admin activation, sweep)
COMMISSION_STATUS = "completed"


@dataclass
class PaidCommission:
    ancestor_id: int
    level: int
    percentage: Decimal
    amount: Decimal


@dataclass
class DistributionResult:
    paying_user_id: int
    plan_type: str
    plan_amount: Decimal
    paid: List[PaidCommission] = field(default_factory=list)
    total_paid: Decimal = Decimal("0")
    company_amount: Decimal = Decimal("0")
    already_processed: bool = False

    @classmethod
    def from_distribution(cls, distribution: CommissionDistribution, already_processed: bool = True) -> "DistributionResult":
        return cls(
            paying_user_id=distribution.from_user_id,
            plan_type=distribution.plan_type,
            plan_amount=distribution.plan_amount,
            paid=[
                PaidCommission(ancestor_id=c.user_id, level=c.level, percentage=c.percentage, amount=c.amount)
                for c in distribution.commissions
            ],
            total_paid=distribution.total_paid,
            company_amount=distribution.company_amount,
            already_processed=already_processed,
        )

    @classmethod
    def from_commissions(cls, paying_user_id: int, commissions: List[Commission]) -> "DistributionResult":
        """Stored breakdown for commission rows whose batch row is missing."""
        plan_amount = commissions[0].plan_amount
        paid = [
            PaidCommission(ancestor_id=c.user_id, level=c.level, percentage=c.percentage, amount=c.amount)
            for c in commissions
        ]
        total_paid = sum((p.amount for p in paid), Decimal("0"))
        return cls(
            paying_user_id=paying_user_id,
            plan_type=commissions[0].plan_type,
            plan_amount=plan_amount,
            paid=paid,
            total_paid=total_paid,
            company_amount=plan_amount - total_paid,
            already_processed=True,
        )


def company_reference(paying_user_id: int) -> str:
    return f"plan_purchase_{paying_user_id}"


def find_distribution(db: Session, paying_user_id: int):
    return db.query(CommissionDistribution).filter(CommissionDistribution.from_user_id == paying_user_id).first()


def find_commissions(db: Session, paying_user_id: int) -> List[Commission]:
    return db.query(Commission).filter(Commission.from_user_id == paying_user_id).order_by(Commission.level).all()


def _guard_not_distributed(db: Session, paying_user_id: int) -> None:
    if find_distribution(db, paying_user_id) is not None:
        raise AlreadyProcessedError(f"Commissions already distributed for user {paying_user_id}")
    # Commission rows without a batch would mean the batch row was lost; treat them the same
    if db.query(Commission.id).filter(Commission.from_user_id == paying_user_id).first():
        raise AlreadyProcessedError(f"Commission records already exist for user {paying_user_id}")


def distribute_commissions(
    db: Session, paying_user_id: int, plan_type, *, rate_table: RateTable = DEFAULT_RATE_TABLE
) -> DistributionResult:
    """
    Pay every stored ancestor of paying_user_id its commission for one
    purchase of plan_type and credit the company with the remainder.

    Raises AlreadyProcessedError if a distribution for this payer exists.
    The existence check, the batch row (unique per payer) and every credit
    go into the caller's transaction: the caller commits all of it or none.
    """
    plan_key = plan_type.value if hasattr(plan_type, "value") else str(plan_type)
    if not rate_table.is_known_plan(plan_key):
        raise ValidationError(f"Invalid plan type: {plan_key}")

    payer = db.query(User).filter(User.id == paying_user_id).first()
    if payer is None:
        raise NotFoundError(f"User {paying_user_id} not found")

    _guard_not_distributed(db, paying_user_id)

    plan_amount = rate_table.plan_amount(plan_key)
    distribution = CommissionDistribution(
        from_user_id=paying_user_id, plan_type=plan_key, plan_amount=plan_amount, total_paid=0, company_amount=0
    )
    db.add(distribution)
    try:
        db.flush()
    except IntegrityError as e:
        # A concurrent run inserted its batch first
        raise AlreadyProcessedError(f"Commissions already distributed for user {paying_user_id}") from e

    result = DistributionResult(paying_user_id=paying_user_id, plan_type=plan_key, plan_amount=plan_amount)
    payer_label = payer.name or payer.email

    for ancestor in payer.referral_ancestors:
        if ancestor.level > rate_table.max_depth:
            logger.info(f"Skipping ancestor {ancestor.ancestor_id} at level {ancestor.level} (beyond max depth)")
            continue

        percentage = rate_table.rate(plan_key, ancestor.level)
        if percentage <= 0:
            continue
        amount = rate_table.commission_amount(plan_key, ancestor.level)
        if amount <= 0:
            continue

        commission = Commission(
            distribution_id=distribution.id,
            from_user_id=paying_user_id,
            user_id=ancestor.ancestor_id,
            level=ancestor.level,
            percentage=percentage,
            plan_type=plan_key,
            plan_amount=plan_amount,
            amount=amount,
            currency=WALLET_CURRENCY,
            status=COMMISSION_STATUS,
            description=f"{percentage}% commission from {plan_key} plan purchase by {payer_label}",
        )
        db.add(commission)
        db.flush()

        wallet_ledger.credit(
            db, ancestor.ancestor_id, amount, "commission", str(commission.id),
            description=f"Level {ancestor.level} commission for {plan_key} plan purchase by {payer_label}",
            count_as_earnings=True,
        )

        result.paid.append(
            PaidCommission(ancestor_id=ancestor.ancestor_id, level=ancestor.level, percentage=percentage, amount=amount)
        )
        result.total_paid += amount
        logger.info(f"Level {ancestor.level} commission of {amount} to user {ancestor.ancestor_id} from user {paying_user_id}")

    result.company_amount = plan_amount - result.total_paid
    wallet_ledger.credit_company(
        db, result.company_amount, company_reference(paying_user_id),
        collected=plan_amount, commissions=result.total_paid,
        description=f"Company revenue from {plan_key} plan purchase by {payer_label}",
    )

    distribution.total_paid = result.total_paid
    distribution.company_amount = result.company_amount
    db.add(distribution)
    db.flush()

    return result
