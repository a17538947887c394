"""API dependencies - service wiring and bearer authentication"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session, joinedload
from typing import Optional

from commerce_auth.core.database import get_db
from commerce_auth.core.exceptions import AuthenticationError, AuthorizationError
from commerce_auth.core.unit_of_work import UnitOfWork
from commerce_auth.models.user import User
from commerce_auth.services.auth_service import AuthService
from commerce_auth.services.notifications import LoggingResetCodeSender
from commerce_auth.services.revocation import RevocationRegistry
from commerce_auth.services.token_service import TokenService

# HTTP Bearer token scheme; missing credentials are reported by get_bearer_token
security = HTTPBearer(auto_error=False)


def get_unit_of_work(db: Session = Depends(get_db)) -> UnitOfWork:
    """One unit of work per request"""
    return UnitOfWork(db)


def get_revocation_registry(request: Request) -> RevocationRegistry:
    """Process-wide registry attached to the application state"""
    return request.app.state.revocation_registry


def get_token_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> TokenService:
    return TokenService(uow)


def get_auth_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: RevocationRegistry = Depends(get_revocation_registry),
) -> AuthService:
    return AuthService(
        uow,
        tokens=TokenService(uow),
        registry=registry,
        reset_code_sender=LoggingResetCodeSender(),
    )


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Raw bearer token from the Authorization header

    Raises:
        AuthenticationError: If no bearer token was presented
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> int:
    """
    Resolve the user id carried by a valid, live access token

    Raises:
        AuthenticationError: If token is invalid, superseded or revoked
    """
    result = auth_service.get_user_id_from_jwt(token)
    if not result.is_ok:
        raise AuthenticationError("Invalid or expired token")
    return result.entity


def get_current_admin_user(
    user_id: int = Depends(get_current_user_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> User:
    """
    Get current admin user (authorization check)

    Raises:
        AuthorizationError: If user is not admin
    """
    user = uow.repository(User).get(user_id, options=[joinedload(User.role)])
    if user is None or user.is_disabled:
        raise AuthenticationError("User not found")
    if user.role is None or user.role.name.lower() != "admin":
        raise AuthorizationError("Admin access required")
    return user
