"""Database models"""

from commerce_auth.models.user import User, Role, Cart
from commerce_auth.models.security import Token, TokenType, TokenStatus

__all__ = ["User", "Role", "Cart", "Token", "TokenType", "TokenStatus"]
