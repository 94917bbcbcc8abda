"""
FastAPI dependency functions.

Provides reusable dependency injection functions for FastAPI routes:
authentication variants (required, optional, admin), database sessions
and vendor service instances.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from travel_planner.core.database import get_db
from travel_planner.core.security import InvalidTokenError, TokenExpiredError, decode_access_token
from travel_planner.repositories.users import UserRepository
from travel_planner.services.ai_service import TravelAIService
from travel_planner.services.map_service import MapService
from travel_planner.services.voice_service import VoiceRecognitionService

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme; missing headers are reported by get_current_user
security = HTTPBearer(auto_error=False)

DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
BearerCredentials = Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)]


@dataclass
class AuthenticatedUser:
    """Identity attached to an authenticated request."""
    id: str
    email: str
    name: str
    avatar: Optional[str]
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(credentials: BearerCredentials, db: DatabaseSession) -> AuthenticatedUser:
    """
    Dependency to get the current authenticated user from the bearer token.

    Returns:
        AuthenticatedUser for the token's subject

    Raises:
        HTTPException 401: Token missing, expired, invalid, or user deleted
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token missing")

    try:
        token_data = decode_access_token(credentials.credentials)
    except TokenExpiredError:
        raise _unauthorized("Token has expired")
    except InvalidTokenError:
        raise _unauthorized("Invalid token")

    row = await UserRepository(db).get_by_id(
        token_data.user_id,
        columns=["id", "email", "name", "avatar", "role"],
    )
    if row is None:
        raise _unauthorized("User does not exist or has been deleted")

    return AuthenticatedUser(**row)


async def get_optional_user(
    credentials: BearerCredentials,
    db: DatabaseSession,
) -> Optional[AuthenticatedUser]:
    """
    Like get_current_user, but anonymous requests pass through as None.

    A bad token never fails the request; the problem is logged instead.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        return await get_current_user(credentials, db)
    except HTTPException as e:
        logger.warning("Ignoring invalid optional credentials", extra={"reason": e.detail})
        return None


async def require_admin(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
) -> AuthenticatedUser:
    """
    Dependency for admin-only routes.

    Raises:
        HTTPException 403: If the user is not an admin
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required",
        )
    return current_user


# Global service singletons, created on first use
_ai_service: Optional[TravelAIService] = None
_voice_service: Optional[VoiceRecognitionService] = None
_map_service: Optional[MapService] = None


def get_ai_service() -> TravelAIService:
    global _ai_service
    if _ai_service is None:
        _ai_service = TravelAIService()
    return _ai_service


def get_voice_service() -> VoiceRecognitionService:
    global _voice_service
    if _voice_service is None:
        _voice_service = VoiceRecognitionService()
    return _voice_service


def get_map_service() -> MapService:
    global _map_service
    if _map_service is None:
        _map_service = MapService()
    return _map_service


# Type aliases for dependency injection
CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
OptionalUser = Annotated[Optional[AuthenticatedUser], Depends(get_optional_user)]
AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]
AIService = Annotated[TravelAIService, Depends(get_ai_service)]
VoiceService = Annotated[VoiceRecognitionService, Depends(get_voice_service)]
MapServiceDep = Annotated[MapService, Depends(get_map_service)]
