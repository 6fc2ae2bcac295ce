import os
import sys
import uuid

import pytest

# Point the app at the test database before anything from app is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("PAYMENT_TEST_MODE", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

# Add project root to sys.path to allow imports from app
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from app.main import app
from app.db.base import Base
from app.db.session import get_db, unit_of_work
from app.core import events, wallet_ledger
from app.core.dependencies import get_payment_verifier
from app.core.payment_verifier import PaymentVerifier
from app.crud import crud_user
from app.models.user import User
from app.schemas.user import UserCreate

# Use a separate SQLite database for testing
TEST_SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.create_all(bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

def override_get_payment_verifier():
    # Payments are accepted without a gateway lookup in tests
    return PaymentVerifier(None, test_mode=True)

app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_payment_verifier] = override_get_payment_verifier

PASSWORD = "testpassword123"


@pytest.fixture(scope="session")
def test_engine():
    Base.metadata.create_all(bind=engine)
    yield engine


@pytest.fixture(scope="function")
def db_session(test_engine):
    """
    Provides a database session for each test function.
    Drops and recreates every table first so tests don't see each other's rows.
    """
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_session):
    """Extra independent sessions, e.g. for concurrent callers."""
    return TestingSessionLocal


@pytest.fixture(scope="function")
def client(db_session):
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def make_user(db_session: Session):
    """
    Factory: create a user, optionally recruited through a referrer's code,
    and run signup ancestry for it.
    """
    def _make_user(referrer: User = None, *, is_superuser: bool = False, name: str = None) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = crud_user.create_user(db_session, obj_in=UserCreate(
            email=f"user_{suffix}@example.com",
            name=name or f"User {suffix}",
            password=PASSWORD,
            is_superuser=is_superuser,
        ))
        events.on_signup_completed(db_session, user.id, referrer.referral_code if referrer else None)
        db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture(scope="function")
def make_chain(make_user):
    """
    Factory: build a straight referral line of the given length.
    Returns users ordered from the top recruiter down to the newest recruit.
    """
    def _make_chain(length: int):
        users = [make_user()]
        for _ in range(length - 1):
            users.append(make_user(referrer=users[-1]))
        return users
    return _make_chain


@pytest.fixture(scope="function")
def fund_wallet(db_session: Session):
    """Factory: give a user spendable balance through the ledger."""
    def _fund_wallet(user: User, amount) -> None:
        with unit_of_work(db_session):
            wallet_ledger.credit(db_session, user.id, amount, "deposit", f"test_funding_{user.id}", description="Test funding")
    return _fund_wallet


def _login(client: TestClient, user: User) -> dict:
    response = client.post("/api/v1/auth/login", data={"username": user.email, "password": PASSWORD})
    if response.status_code != 200:
        raise Exception(f"Failed to log in user {user.email} during fixture setup. Status: {response.status_code}, Detail: {response.text}")
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture(scope="function")
def auth_headers(client: TestClient):
    """Factory: bearer headers for an existing user."""
    def _auth_headers(user: User) -> dict:
        return _login(client, user)
    return _auth_headers


@pytest.fixture(scope="function")
def normal_user_token_headers(make_user, auth_headers):
    user = make_user()
    return auth_headers(user), user


@pytest.fixture(scope="function")
def superuser_token_headers(make_user, auth_headers):
    user = make_user(is_superuser=True)
    return auth_headers(user), user
