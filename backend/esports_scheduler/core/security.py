"""
Caller identity resolution.

Sign-in happens elsewhere; this service only verifies the bearer JWT it is
handed and turns it into a (caller_id, is_admin) pair.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.core.config import get_settings
from esports_scheduler.db.session import get_db
from esports_scheduler.models.user import User, ROLE_ADMIN

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CallerIdentity:
    caller_id: str
    is_admin: bool


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed token. Used by tooling and tests; sign-in lives outside this service."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_caller(token: str) -> CallerIdentity:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    caller_id = payload.get("sub")
    if not caller_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CallerIdentity(caller_id=str(caller_id), is_admin=payload.get("role") == ROLE_ADMIN)


async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CallerIdentity:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_caller(credentials.credentials)


async def require_admin(
    caller: CallerIdentity = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> CallerIdentity:
    """
    Admin capability check for mutating routes.
    A token whose user has since been removed is treated as a stale session (401).
    """
    user = await db.get(User, caller.caller_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Your session is out of date. Please sign out and sign back in.",
        )
    if not caller.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )
    return caller
