import pytest
from sqlalchemy.orm import Session
import uuid
from decimal import Decimal

from app.crud import crud_user
from app.schemas.user import UserCreate
from app.core.security import verify_password

pytestmark = pytest.mark.crud


def test_create_user(db_session: Session):
    email = f"crud_user_{uuid.uuid4().hex[:6]}@example.com"
    user = crud_user.create_user(db_session, obj_in=UserCreate(email=email, name="Crud User", password="password123"))
    assert user.id is not None
    assert user.email == email
    assert verify_password("password123", user.hashed_password)
    assert len(user.referral_code) == 6
    assert user.referral_code == user.referral_code.upper()
    assert user.wallet_balance == Decimal("0")
    assert user.total_earnings == Decimal("0")
    assert user.referral_count == 0
    assert user.has_paid is False
    assert user.is_active
    assert not user.is_superuser

def test_get_user_lookups(db_session: Session, make_user):
    user = make_user()
    assert crud_user.get_user(db_session, user.id).id == user.id
    assert crud_user.get_user_by_email(db_session, user.email).id == user.id
    assert crud_user.get_user_by_referral_code(db_session, user.referral_code.lower()).id == user.id
    assert crud_user.get_user(db_session, 999) is None
    assert crud_user.get_user_by_email(db_session, "missing@example.com") is None

def test_get_referrals_and_team(db_session: Session, make_user):
    top = make_user()
    first = make_user(referrer=top)
    second = make_user(referrer=top)
    grandchild = make_user(referrer=first)

    referrals = crud_user.get_referrals(db_session, user_id=top.id)
    assert {u.id for u in referrals} == {first.id, second.id}
    assert crud_user.get_team_size(db_session, user_id=top.id) == 3
    assert crud_user.get_team_size(db_session, user_id=first.id) == 1

    ancestors = crud_user.get_ancestors(db_session, user_id=grandchild.id)
    assert [(a.ancestor_id, a.level) for a in ancestors] == [(first.id, 1), (top.id, 2)]
