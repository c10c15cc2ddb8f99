"""
Shared route dependencies: bearer-token authentication, role guards and
the dashboard broadcaster.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.core.security import decode_access_token
from foodie.database import get_db
from foodie.models import Token, User, UserRole
from foodie.realtime.broadcaster import DashboardBroadcaster
from foodie.realtime.server import get_event_emitter

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Token not found")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_current_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to a live account.

    The token must verify, still be on record, and point at an account
    that has not been deleted.
    """
    payload = decode_access_token(token)
    if payload is None or "id" not in payload:
        raise _unauthorized("Invalid token")

    result = await db.execute(select(Token.id).where(Token.token == token))
    if result.first() is None:
        logger.debug(f"Rejected revoked token for user #{payload['id']}")
        raise _unauthorized("Invalid token")

    user = await db.get(User, payload["id"])
    if user is None or user.deleted:
        raise _unauthorized("User not found")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is not an admin")
    return user


async def require_restaurant(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.RESTAURANT:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is not a restaurant")
    return user


async def require_staff(user: User = Depends(get_current_user)) -> User:
    """Restaurants and admins."""
    if user.role not in (UserRole.RESTAURANT, UserRole.ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not a restaurant or admin",
        )
    return user


def get_broadcaster(
    emitter=Depends(get_event_emitter),
    db: AsyncSession = Depends(get_db),
) -> DashboardBroadcaster:
    return DashboardBroadcaster(emitter, db)
