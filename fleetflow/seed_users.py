"""
Database seeding script for initial users.

Creates one verified user per role for local development.
Run this script after database is set up but before first use:

    python -m fleetflow.seed_users
"""

import asyncio

from fleetflow.app.db.session import AsyncSessionLocal, engine, Base
from fleetflow.app.models.user import User
from fleetflow.app.models.enums import UserRole
from fleetflow.app.core.security import get_password_hash
from sqlalchemy import select

import fleetflow.app.main  # noqa: F401  registers every model with Base

SEED_USERS = [
    ("manager@fleetflow.io", "Fleet Manager", "manager123", UserRole.MANAGER),
    ("dispatcher@fleetflow.io", "Dispatcher", "dispatch123", UserRole.DISPATCHER),
    ("safety@fleetflow.io", "Safety Officer", "safety123", UserRole.SAFETY_OFFICER),
    ("analyst@fleetflow.io", "Financial Analyst", "analyst123", UserRole.ANALYST),
]


async def seed_users():
    """
    Seed initial users with different roles.

    Existing emails are left untouched, so the script can be re-run.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Starting user seeding...")

        for email, name, password, role in SEED_USERS:
            result = await db.execute(select(User).where(User.email == email))
            if result.scalar_one_or_none():
                print(f"  {role.value} user {email} already exists, skipping")
                continue

            db.add(User(
                email=email,
                full_name=name,
                hashed_password=get_password_hash(password),
                role=role,
                is_verified=True,
            ))
            print(f"  Created {role.value} user ({email} / {password})")

        await db.commit()

    await engine.dispose()
    print("User seeding completed.")


if __name__ == "__main__":
    asyncio.run(seed_users())
