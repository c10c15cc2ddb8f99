"""
Bootstrap Admin Script

The API never lets an account register itself as ADMIN, so the first
admin is created here, straight in the database.

Run from project root: python scripts/create_admin.py admin@example.com 's3cret'
"""

import argparse
import asyncio
import sys

from foodie.core.config import setup_logging
from foodie.core.security import hash_password
from foodie.database import async_session_maker, engine, init_db
from foodie.models import User, UserRole
from foodie.services.accounts import find_user_by_email

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


async def create_admin(email: str, password: str, name: str | None) -> str:
    await init_db()

    async with async_session_maker() as db:
        user = await find_user_by_email(db, email)
        if user is not None and user.role == UserRole.ADMIN and not user.deleted:
            return f"⚠️ {email} is already an admin"

        if user is None:
            user = User(email=email.lower(), name=name, hashed_password=hash_password(password))
            db.add(user)
            outcome = f"✅ Created admin {email}"
        else:
            outcome = f"✅ Promoted {email} to admin"

        user.role = UserRole.ADMIN
        user.deleted = False
        await db.commit()

    await engine.dispose()
    return outcome


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the first admin account")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--name", default=None)
    args = parser.parse_args()

    setup_logging()
    print(asyncio.run(create_admin(args.email, args.password, args.name)))
