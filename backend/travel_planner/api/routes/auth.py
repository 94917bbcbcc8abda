"""
Authentication endpoints.

Registration, login, the current user's profile, and an admin-only user
listing. Tokens are HS256 JWTs carrying the user ID in ``sub``.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from travel_planner.api.dependencies import AdminUser, CurrentUser, DatabaseSession
from travel_planner.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from travel_planner.core.security import create_access_token, get_password_hash, verify_password
from travel_planner.repositories.users import PROFILE_COLUMNS, UserRepository
from travel_planner.schemas.auth import LoginRequest, ProfileUpdateRequest, RegisterRequest
from travel_planner.schemas.common import ApiResponse, ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _public_user(row: dict) -> dict:
    return {
        "id": row["id"],
        "email": row["email"],
        "name": row["name"],
        "avatar": row.get("avatar"),
    }


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: DatabaseSession) -> ApiResponse:
    """
    Create an account and return it with an access token.

    Raises:
        ConflictError 409: If the email is already registered
    """
    users = UserRepository(db)
    if await users.email_exists(body.email):
        raise ConflictError("This email is already registered")

    user = await users.create_user(
        email=body.email,
        hashed_password=get_password_hash(body.password),
        name=body.name,
    )
    logger.info("User registered", extra={"user_id": user["id"]})

    return ok(
        {"user": _public_user(user), "token": create_access_token(user["id"])},
        "Registration successful",
    )


@router.post("/login", response_model=ApiResponse)
async def login(body: LoginRequest, db: DatabaseSession) -> ApiResponse:
    """
    Exchange email and password for an access token.

    The same 401 message is used for unknown emails and wrong passwords.
    """
    user = await UserRepository(db).get_by_email(body.email)
    if user is None or not verify_password(body.password, user["password"]):
        logger.warning("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    logger.info("User logged in", extra={"user_id": user["id"]})
    return ok(
        {"user": _public_user(user), "token": create_access_token(user["id"])},
        "Login successful",
    )


@router.get("/me", response_model=ApiResponse)
async def read_current_user(current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    profile = await UserRepository(db).get_by_id(current_user.id, columns=PROFILE_COLUMNS)
    if profile is None:
        raise NotFoundError("User does not exist")
    return ok({"user": profile}, "User information retrieved")


@router.put("/profile", response_model=ApiResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> ApiResponse:
    values = body.model_dump(exclude_none=True)
    if not values:
        raise ValidationFailedError("No fields to update")

    profile = await UserRepository(db).update_profile(current_user.id, values)
    logger.info("Profile updated", extra={"user_id": current_user.id, "fields": sorted(values)})
    return ok({"user": profile}, "Profile updated")


@router.get("/users", response_model=ApiResponse)
async def list_users(admin: AdminUser, db: DatabaseSession) -> ApiResponse:
    """Admin-only listing of all accounts (password hashes excluded)."""
    users = await UserRepository(db).list_users()
    return ok(users, "Users retrieved")
