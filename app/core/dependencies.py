from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import SECRET_KEY, ALGORITHM, STRIPE_SECRET_KEY, PAYMENT_TEST_MODE
from app.core.payment_verifier import PaymentVerifier
from app.crud import crud_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.token import TokenData

# auto_error=False: a missing token reaches get_current_user as None
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> Optional[User]:
    """Resolve the bearer token to a user, or None when no token was sent."""
    if token is None:
        return None

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        token_data = TokenData(user_id=int(payload["sub"]))
    except (JWTError, KeyError, TypeError, ValueError):
        raise _credentials_exception()

    user = crud_user.get_user(db, token_data.user_id)
    if user is None:
        raise _credentials_exception()
    return user

async def get_current_active_user(
    current_user: Optional[User] = Depends(get_current_user),
) -> User:
    if not current_user:
        raise _credentials_exception("Not authenticated")
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user

async def get_current_active_superuser(
    current_user: User = Depends(get_current_active_user),
) -> User:
    if not current_user.is_superuser:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="The user doesn't have enough privileges",
        )
    return current_user

def get_payment_verifier() -> PaymentVerifier:
    """Overridden in tests to skip the gateway lookup."""
    return PaymentVerifier(STRIPE_SECRET_KEY, test_mode=PAYMENT_TEST_MODE)
