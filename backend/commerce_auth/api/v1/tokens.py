"""Token reference-data routes"""

from fastapi import APIRouter, Depends, status
from typing import List

from commerce_auth.core.exceptions import raise_for_result
from commerce_auth.models.user import User
from commerce_auth.schemas.response import APIResponse
from commerce_auth.schemas.token import TokenStatusCreate, TokenTypeCreate
from commerce_auth.services.token_service import TokenService
from commerce_auth.api.deps import get_current_admin_user, get_token_service

router = APIRouter()


@router.get("/types", response_model=List[str])
def get_types(
    token_service: TokenService = Depends(get_token_service)
):
    """Names of all token kinds"""
    return raise_for_result(token_service.list_types()).entity


@router.post("/types", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
def create_type(
    body: TokenTypeCreate,
    current_user: User = Depends(get_current_admin_user),
    token_service: TokenService = Depends(get_token_service)
):
    """Create a token kind (admin only)"""
    result = raise_for_result(
        token_service.create_type(body.name, body.status_default, body.time_span_default)
    )
    return APIResponse(message=result.message, data={"id": result.entity.id})


@router.post("/statuses", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
def create_status(
    body: TokenStatusCreate,
    current_user: User = Depends(get_current_admin_user),
    token_service: TokenService = Depends(get_token_service)
):
    """Create a token status (admin only)"""
    result = raise_for_result(token_service.create_status(body.name))
    return APIResponse(message=result.message, data={"id": result.entity.id})
