"""HTTP-edge exception classes for the application"""

from typing import Optional, Dict, Any

from commerce_auth.core.results import OperationResult, Outcome


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Missing, invalid or revoked bearer credential"""
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class TokenRevokedError(AuthenticationError):
    """Bearer token is in the revocation registry"""
    def __init__(self):
        super().__init__("Token has been revoked")


# Authorization Errors
class AuthorizationError(BaseAPIException):
    """Insufficient permissions"""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)


# Request Errors
class BadRequestError(BaseAPIException):
    """Malformed input, wrong credentials or failed validation"""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ConflictError(BaseAPIException):
    """Resource already exists"""
    def __init__(self, message: str):
        super().__init__(message, status_code=409)


# System Errors
class InternalServiceError(BaseAPIException):
    """Unexpected persistence or signing failure"""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)


_OUTCOME_EXCEPTIONS = {
    Outcome.BAD_REQUEST: BadRequestError,
    Outcome.NOT_FOUND: ResourceNotFoundError,
    Outcome.CONFLICT: ConflictError,
    Outcome.INTERNAL_ERROR: InternalServiceError,
}


def raise_for_result(result: OperationResult) -> OperationResult:
    """Return a successful result unchanged, raise the matching API error otherwise"""
    if result.is_ok:
        return result
    raise _OUTCOME_EXCEPTIONS[result.outcome](result.message)
