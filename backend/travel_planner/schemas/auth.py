"""
Pydantic schemas for registration, login and profile endpoints.
"""

import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


class RegisterRequest(BaseModel):
    """
    Request body for account registration.

    Attributes:
        email: Login email, must look like ``name@domain.tld``
        password: Plain-text password, at least 6 characters
        name: Display name
    """
    email: str = Field(description="Login email", examples=["traveler@example.com"])
    password: str = Field(description="Password (min 6 characters)")
    name: str = Field(description="Display name", examples=["Alex"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide email, password and name")
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Please provide email, password and name")
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError("Password must be at least 6 characters long")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide email, password and name")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def require_value(cls, v: str) -> str:
        if not v:
            raise ValueError("Please provide email and password")
        return v


class ProfileUpdateRequest(BaseModel):
    """Partial profile update; at least one field must be supplied."""
    name: Optional[str] = Field(default=None, description="Display name")
    avatar: Optional[str] = Field(default=None, description="Avatar URL")
    preferences: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Travel preferences",
        examples=[{"travelStyles": ["culture"], "budgetRange": {"min": 0, "max": 8000}, "interests": ["food"]}]
    )
