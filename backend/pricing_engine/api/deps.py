"""Common API dependencies."""

from __future__ import annotations

import uuid
from typing import Annotated
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_engine.core.config import get_settings
from pricing_engine.core.security import decode_access_token
from pricing_engine.db.retry import RetryPolicy
from pricing_engine.db.session import get_session, get_sessionmaker
from pricing_engine.models.user import UserRole
from pricing_engine.security.permissions import (
    ANONYMOUS,
    AuthenticatedCaller,
    CallerIdentity,
)
from pricing_engine.services.redemption_ledger import RedemptionLedger

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_v1_prefix}{settings.token_url}", auto_error=False
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_caller(
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> CallerIdentity:
    """Resolve the caller from an optional bearer token.

    No token means an anonymous caller; a token that fails to decode is
    rejected rather than downgraded to anonymous.
    """
    if not token:
        return ANONYMOUS

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError as exc:
        raise credentials_exception from exc

    subject = payload.get("sub")
    if subject is None:
        raise credentials_exception

    try:
        user_id = uuid.UUID(subject)
    except (ValueError, TypeError) as exc:
        raise credentials_exception from exc

    try:
        role = UserRole(payload.get("role", UserRole.GUEST.value))
    except ValueError:
        role = UserRole.GUEST
    return AuthenticatedCaller(user_id=user_id, role=role)


async def require_authenticated_caller(
    caller: Annotated[CallerIdentity, Depends(get_caller)],
) -> AuthenticatedCaller:
    """Reject anonymous callers."""
    if not isinstance(caller, AuthenticatedCaller):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller


def get_redemption_ledger() -> RedemptionLedger:
    return RedemptionLedger(
        get_sessionmaker(), retry_policy=RetryPolicy.from_settings()
    )


def parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    """Parse ``"20/minute"`` style limits into ``(times, seconds)``."""
    try:
        count_str, window_str = value.split("/", 1)
        count = int(count_str.strip())
    except ValueError:
        return fallback
    window = window_str.strip().lower()
    seconds_map = {
        "second": 1,
        "seconds": 1,
        "minute": 60,
        "minutes": 60,
        "hour": 3600,
        "hours": 3600,
        "day": 86400,
        "days": 86400,
    }
    seconds = seconds_map.get(window, fallback[1])
    return count, seconds


def rate_dependency(limit: tuple[int, int]):
    """Rate limit dependency; a no-op until the limiter has a Redis pool."""

    async def _dependency(request: Request, response: Response) -> None:
        if FastAPILimiter.redis is None:
            return None
        limiter = RateLimiter(times=limit[0], seconds=limit[1])
        await limiter(request, response)

    return Depends(_dependency)
