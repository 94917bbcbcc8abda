"""
Seed an administrator account.

Creates (or promotes) the account used for admin-only endpoints such as
``GET /api/auth/users``. This script is idempotent: running it again leaves an
existing admin untouched.

Usage:
    python scripts/seed_admin.py --email admin@example.com --password changeme123

Credentials default to the ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME
environment variables.

Security:
    IMPORTANT: Change the default password immediately after first login!
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from travel_planner.core.database import create_tables, get_session
from travel_planner.core.security import get_password_hash
from travel_planner.repositories.users import UserRepository

DEFAULT_EMAIL = "admin@example.com"
DEFAULT_PASSWORD = "changeme123"


async def seed_admin(email: str, password: str, name: str, ensure_tables: bool = False) -> str:
    """
    Create the admin account if it does not exist.

    Args:
        ensure_tables: Create missing tables first (fresh SQLite databases)

    Returns:
        "created", "promoted" or "exists"
    """
    if ensure_tables:
        await create_tables()

    async for session in get_session():
        users = UserRepository(session)
        try:
            rows = await users.select({"email": email}, columns=["id", "role"], limit=1)
            if rows and rows[0]["role"] == "admin":
                return "exists"

            if rows:
                await users.update({"id": rows[0]["id"]}, {"role": "admin"})
                outcome = "promoted"
            else:
                await users.create_user(
                    email=email,
                    hashed_password=get_password_hash(password),
                    name=name,
                    role="admin",
                )
                outcome = "created"

            await session.commit()
            return outcome
        except Exception:
            await session.rollback()
            raise

    raise RuntimeError("No database session available")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the administrator account")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", DEFAULT_EMAIL))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD", DEFAULT_PASSWORD))
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "Administrator"))
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before seeding",
    )
    args = parser.parse_args()

    if len(args.password) < 6:
        parser.error("Password must be at least 6 characters long")

    print("Seeding admin user...")
    outcome = asyncio.run(seed_admin(args.email, args.password, args.name, ensure_tables=args.create_tables))

    if outcome == "exists":
        print(f"Admin {args.email} already exists. Skipping...")
    elif outcome == "promoted":
        print(f"Existing user {args.email} promoted to admin.")
    else:
        print("Admin user created successfully!")
        print(f"Email: {args.email}")
        if args.password == DEFAULT_PASSWORD:
            print("")
            print("WARNING: Please change this password immediately after first login!")
            print("This default password is publicly known and insecure.")
    print("Done!")


if __name__ == "__main__":
    main()
