"""Authentication routes"""

from fastapi import APIRouter, Depends, Query, status

from commerce_auth.config import settings
from commerce_auth.core.exceptions import raise_for_result
from commerce_auth.schemas.auth import (
    LoginRequest,
    NewPasswordRequest,
    SignupRequest,
    UserResponse,
    UserSession,
)
from commerce_auth.schemas.response import APIResponse
from commerce_auth.services.auth_service import AuthService
from commerce_auth.api.deps import get_auth_service, get_bearer_token, get_current_user_id

router = APIRouter()


@router.post("/signup", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
def signup(
    body: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new account

    Returns:
        Created user
    """
    result = raise_for_result(auth_service.sign_up(body.username, body.email, body.password))
    return APIResponse(
        message="Account created successfully",
        data=UserResponse.model_validate(result.entity).model_dump(mode="json"),
    )


@router.post("/login", response_model=UserSession)
def login(
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Login endpoint - authenticate by email or username

    Returns:
        Session view with the access token
    """
    result = raise_for_result(auth_service.log_in(body.credential, body.password, body.remember_me))
    return result.entity


@router.get("/reset-password", response_model=APIResponse)
def request_password_reset(
    email: str = Query(..., min_length=1),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Issue a password reset code

    The code is delivered out of band; it is echoed back only in DEBUG.
    """
    result = raise_for_result(auth_service.request_password_reset(email))
    return APIResponse(
        message="A reset code has been issued",
        data={"code": result.entity} if settings.DEBUG else None,
    )


@router.post("/reset-password", response_model=APIResponse)
def reset_password(
    body: NewPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Consume a reset code and set a new password"""
    result = raise_for_result(auth_service.reset_password(body.token, body.password))
    return APIResponse(message=result.message)


@router.post("/logout", response_model=APIResponse)
def logout(
    token: str = Depends(get_bearer_token),
    user_id: int = Depends(get_current_user_id),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Revoke the presented bearer token for the rest of the process lifetime"""
    raise_for_result(auth_service.revoke_token(token))
    return APIResponse(message="Logged out successfully", data={"user_id": user_id})


@router.get("/me")
def get_current_user_info(
    user_id: int = Depends(get_current_user_id)
):
    """Identity carried by the access token"""
    return {"user_id": user_id}
