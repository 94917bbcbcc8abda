"""
User repository for account and profile operations.
"""

from typing import Any, Dict, List, Optional

from travel_planner.core.exceptions import NotFoundError
from travel_planner.models.user import User, default_preferences
from travel_planner.repositories.base import Row, TableRepository

PUBLIC_COLUMNS = ["id", "email", "name", "avatar"]
PROFILE_COLUMNS = PUBLIC_COLUMNS + ["preferences", "created_at"]


class UserRepository(TableRepository):
    """Data access for the ``users`` table."""

    model = User
    not_found_message = "User does not exist"

    async def get_by_id(self, user_id: str, columns: Optional[List[str]] = None) -> Optional[Row]:
        rows = await self.select({"id": user_id}, columns=columns, limit=1)
        return rows[0] if rows else None

    async def get_by_email(self, email: str) -> Optional[Row]:
        """
        Fetch the login row for an email, including the password hash.

        Returns:
            Row with id, email, name, avatar and password, or None
        """
        rows = await self.select(
            {"email": email},
            columns=PUBLIC_COLUMNS + ["password"],
            limit=1,
        )
        return rows[0] if rows else None

    async def email_exists(self, email: str) -> bool:
        rows = await self.select({"email": email}, columns=["id"], limit=1)
        return bool(rows)

    async def create_user(
        self,
        email: str,
        hashed_password: str,
        name: str,
        role: str = "user",
    ) -> Row:
        """
        Create an account with default travel preferences.

        Raises:
            ConflictError: If the email is already registered
        """
        return await self.insert({
            "email": email,
            "password": hashed_password,
            "name": name,
            "role": role,
            "preferences": default_preferences(),
        })

    async def update_profile(self, user_id: str, values: Dict[str, Any]) -> Row:
        """Update name/avatar/preferences and return the profile columns."""
        await self.update({"id": user_id}, values)
        profile = await self.get_by_id(user_id, columns=PROFILE_COLUMNS)
        if profile is None:
            raise NotFoundError(self.not_found_message)
        return profile

    async def list_users(self) -> List[Row]:
        return await self.select(
            order_by="created_at",
            descending=True,
            columns=PUBLIC_COLUMNS + ["role", "created_at"],
        )
