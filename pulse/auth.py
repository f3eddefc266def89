import logging
from datetime import datetime, timedelta
from typing import Annotated

import bcrypt
from fastapi import Depends, HTTPException, status, Request, Response
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.config import get_settings
from pulse.database import get_db
from pulse.models import User
from pulse.schemas import TokenData

logger = logging.getLogger(__name__)

settings = get_settings()

# OAuth2 scheme for token extraction
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

COOKIE_NAME = "access_token"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Signed JWT whose subject is the user id."""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    return jwt.encode(
        {"sub": str(user_id), "exp": expire},
        settings.signing_key,
        algorithm=settings.algorithm,
    )


def decode_access_token(token: str) -> TokenData | None:
    """User id carried by a token, or None if it is expired, forged or malformed."""
    try:
        payload = jwt.decode(token, settings.signing_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.debug("Rejected access token: %s", e)
        return None
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        return None
    return TokenData(user_id=int(subject))


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def get_token_from_cookie_or_header(request: Request, token: str | None = Depends(oauth2_scheme)) -> str | None:
    """Extract token from cookie or Authorization header."""
    # Try cookie first (for web UI)
    cookie_token = request.cookies.get(COOKIE_NAME)
    if cookie_token:
        # Remove "Bearer " prefix if present
        if cookie_token.startswith("Bearer "):
            return cookie_token[7:]
        return cookie_token
    # Fall back to header (for API)
    return token


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_cookie_or_header)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """Get the current user if authenticated, otherwise return None."""
    if not token:
        return None
    token_data = decode_access_token(token)
    if token_data is None:
        return None
    return await get_user_by_id(db, token_data.user_id)


async def get_current_user(
    user: Annotated[User | None, Depends(get_current_user_optional)],
) -> User:
    """Get the current authenticated user from JWT token."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def resolve_scope(user: User | None) -> str | None:
    """Storage scope for a request: the user's own, else the guest scope unless sign-in is required."""
    if user is not None:
        return user.scope
    if settings.require_sign_in:
        return None
    return settings.guest_scope


async def get_scope(
    user: Annotated[User | None, Depends(get_current_user_optional)],
) -> str:
    scope = resolve_scope(user)
    if scope is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in to access your journal",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return scope


def set_auth_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=settings.access_token_expire_minutes * 60,
        samesite="lax",
        secure=not settings.debug,  # Secure cookies in production (HTTPS)
    )
