"""
Account helpers shared by the customer, restaurant and admin routers.

A JWT is only honoured while its row exists in the tokens table, so
logging out (or an admin disabling an account) is just deleting rows.
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.core.security import create_access_token
from foodie.models import Token, User, UserRole

logger = logging.getLogger(__name__)


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


def token_claims(user: User) -> dict:
    claims = {"id": user.id, "email": user.email, "role": user.role.value}
    if user.role == UserRole.USER:
        claims["username"] = user.username
    return claims


async def issue_token(db: AsyncSession, user: User, days: int) -> str:
    """Sign a token for the user and record it. Caller commits."""
    token, expires_at = create_access_token(token_claims(user), timedelta(days=days))
    db.add(Token(user_id=user.id, token=token, expires_at=expires_at))
    logger.debug(f"Issued {days}-day token for user #{user.id}")
    return token


async def revoke_tokens(db: AsyncSession, user_id: int) -> None:
    """Delete every token of the user. Caller commits."""
    await db.execute(delete(Token).where(Token.user_id == user_id))
    logger.debug(f"Revoked tokens of user #{user_id}")


async def sign_in(db: AsyncSession, user: User, days: int) -> str:
    """Issue a token and mark the account as currently active."""
    token = await issue_token(db, user, days)
    user.currently_active = True
    await db.commit()
    logger.info(f"{user.role.value} #{user.id} logged in")
    return token


async def sign_out(db: AsyncSession, user: User) -> None:
    await revoke_tokens(db, user.id)
    user.currently_active = False
    await db.commit()
    logger.info(f"{user.role.value} #{user.id} logged out")
