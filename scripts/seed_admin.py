#!/usr/bin/env python3
"""
Seed script to create the admin user.
Run with: python -m scripts.seed_admin
Use --force to reset an existing admin user's password and role
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from flashcards.core.config import settings
from flashcards.core.database import async_session_maker, engine
from flashcards.models.base import Base
from flashcards.models.user import User, UserRole
from flashcards.services.auth import get_user_by_username, hash_password


async def seed_admin(force: bool = False):
    """Create the configured admin account if it doesn't exist.

    Args:
        force: If True, reset the existing account's password and role
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    username = settings.bootstrap_admin_username
    password = settings.bootstrap_admin_password

    async with async_session_maker() as db:
        existing_user = await get_user_by_username(db, username)

        if existing_user:
            if not force:
                print(f"Exists: {username} (use --force to reset)")
                return
            existing_user.role = UserRole.ADMIN
            existing_user.password_hash = hash_password(password)
            print(f"Reset: {username}")
        else:
            db.add(
                User(
                    username=username,
                    password_hash=hash_password(password),
                    role=UserRole.ADMIN,
                )
            )
            print(f"Created: {username}")

        await db.commit()

    await engine.dispose()


if __name__ == "__main__":
    force = "--force" in sys.argv
    asyncio.run(seed_admin(force=force))
