"""Authentication schemas"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class SignupRequest(BaseModel):
    """Sign-up payload; business validation happens in the service"""
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    """Login with email or username"""
    credential: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    remember_me: bool = False


class NewPasswordRequest(BaseModel):
    """Password reset confirmation"""
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """User response schema"""
    id: int
    username: str
    email: str
    is_locked: bool
    access_attempts: int
    creation_date: Optional[datetime]
    last_access_date: Optional[datetime]

    class Config:
        from_attributes = True


class UserSession(BaseModel):
    """Session view returned by a successful login"""
    user_id: int
    username: str
    role: str
    currency: str = ""
    cart: List[int] = Field(default_factory=list)
    wishlist: List[int] = Field(default_factory=list)
    access_token: Optional[str] = None

    @classmethod
    def from_user(cls, user, access_token: Optional[str] = None) -> "UserSession":
        return cls(
            user_id=user.id,
            username=user.display_name,
            role=user.role.name if user.role else "",
            access_token=access_token,
        )
