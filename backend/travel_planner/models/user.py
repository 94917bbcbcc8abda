"""
User model for authentication and profile data.
"""

from sqlalchemy import JSON, Column, String
from sqlalchemy.orm import relationship

from travel_planner.models.base import Base, ModelMixin, TimestampMixin, UUIDMixin


def default_preferences() -> dict:
    """Preferences every new account starts with."""
    return {
        "travelStyles": [],
        "budgetRange": {"min": 0, "max": 10000},
        "interests": [],
    }


class User(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Registered user of the travel planner.

    Attributes:
        id: UUID primary key (from UUIDMixin)
        email: Unique login email
        password: Bcrypt hash of the password (never returned by the API)
        name: Display name
        avatar: Optional avatar URL
        role: "user" or "admin"
        preferences: Travel styles, budget range and interests (JSON)

    Security considerations:
        - Never log or expose the password column
    """

    __tablename__ = "users"
    __private_columns__ = frozenset({"password"})

    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False, doc="Bcrypt-hashed password")
    name = Column(String(255), nullable=False)
    avatar = Column(String(1024), nullable=True)
    role = Column(String(32), nullable=False, default="user")
    preferences = Column(JSON, nullable=False, default=default_preferences)

    travel_plans = relationship(
        "TravelPlan",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, email={self.email!r})"
