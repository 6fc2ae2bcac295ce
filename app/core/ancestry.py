import logging
import secrets
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.core.referral_config import MAX_REFERRAL_DEPTH
from app.models.user import User, ReferralAncestor

logger = logging.getLogger(__name__)

REFERRAL_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
REFERRAL_CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 10


def generate_referral_code() -> str:
    return "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))


def assign_unique_referral_code(db: Session) -> str:
    """
    Pick a referral code that no user holds yet.
    Gives up after MAX_CODE_ATTEMPTS collisions.
    """
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_referral_code()
        if not db.query(User.id).filter(User.referral_code == code).first():
            return code
    raise ValidationError(f"Failed to generate unique referral code after {MAX_CODE_ATTEMPTS} attempts")


def resolve_referral_code(db: Session, referral_code: Optional[str]) -> Optional[User]:
    if not referral_code:
        return None
    return db.query(User).filter(User.referral_code == referral_code.strip().upper()).first()


def build_ancestors(
    db: Session, new_user: User, referrer: Optional[User], *, max_depth: int = MAX_REFERRAL_DEPTH
) -> List[ReferralAncestor]:
    """
    Snapshot the referral chain of new_user and link it to its referrer.

    The chain is the referrer at level 1 followed by the referrer's own
    stored chain shifted one level outward, cut at max_depth. It is written
    once and never recomputed, so later changes to the referrer's chain do
    not reach users who already signed up.

    Does not commit; runs inside the caller's unit of work.
    """
    if referrer is None:
        return []

    if new_user.referral_ancestors:
        raise ValidationError(f"User {new_user.id} already has a referral chain")
    if referrer.id == new_user.id:
        raise ValidationError("A user cannot refer themselves")

    chain = [(referrer.id, 1)]
    for ancestor in referrer.referral_ancestors:
        if ancestor.ancestor_id == new_user.id:
            raise ValidationError(f"Referral cycle: user {new_user.id} is an ancestor of referrer {referrer.id}")
        chain.append((ancestor.ancestor_id, ancestor.level + 1))
    chain = chain[:max_depth]

    ancestors = [
        ReferralAncestor(user_id=new_user.id, ancestor_id=ancestor_id, level=level)
        for ancestor_id, level in chain
    ]
    new_user.referral_ancestors.extend(ancestors)
    new_user.referred_by_id = referrer.id

    # Atomic increment so concurrent signups under the same referrer don't lose counts
    db.query(User).filter(User.id == referrer.id).update(
        {User.referral_count: User.referral_count + 1}, synchronize_session=False
    )
    db.flush()
    db.expire(referrer, ["referral_count", "referrals"])

    logger.info(f"Referral chain for user {new_user.id}: {[(a, l) for a, l in chain]}")
    return ancestors
