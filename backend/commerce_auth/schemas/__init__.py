"""Pydantic schemas for API validation"""

from commerce_auth.schemas.auth import (
    SignupRequest,
    LoginRequest,
    NewPasswordRequest,
    UserResponse,
    UserSession,
)
from commerce_auth.schemas.token import TokenTypeCreate, TokenStatusCreate
from commerce_auth.schemas.response import APIResponse, ErrorResponse, HealthResponse

__all__ = [
    "SignupRequest", "LoginRequest", "NewPasswordRequest", "UserResponse", "UserSession",
    "TokenTypeCreate", "TokenStatusCreate",
    "APIResponse", "ErrorResponse", "HealthResponse",
]
