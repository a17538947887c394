"""User, role and cart models"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from commerce_auth.core.database import Base


class Role(Base):
    """Named authorization role (reference data)"""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)

    users = relationship("User", back_populates="role")

    def __repr__(self):
        return f"<Role(id={self.id}, name='{self.name}')>"


class User(Base):
    """User model for authentication and account-safety policy"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False)
    username = Column(String(50), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    salt = Column(String(255), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    firstname = Column(String(100), nullable=True)
    lastname = Column(String(100), nullable=True)
    is_email_confirmed = Column(Boolean, default=False, nullable=False)
    is_disabled = Column(Boolean, default=False, nullable=False)
    is_locked = Column(Boolean, default=False, nullable=False)
    access_attempts = Column(Integer, default=0, nullable=False)
    creation_date = Column(DateTime, nullable=False)
    last_access_date = Column(DateTime, nullable=False)

    # Relationships
    role = relationship("Role", back_populates="users")
    cart = relationship("Cart", back_populates="user", uselist=False, cascade="all, delete-orphan")
    tokens = relationship("Token", back_populates="user")

    __table_args__ = (
        Index('idx_users_email', 'email'),
        Index('idx_users_username', 'username'),
    )

    @property
    def cart_id(self):
        return self.cart.id if self.cart is not None else None

    @property
    def display_name(self) -> str:
        """First and last name when known, username otherwise"""
        if self.firstname:
            return f"{self.firstname} {self.lastname or ''}".strip()
        return self.username

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role_id={self.role_id})>"


class Cart(Base):
    """Shopping cart, one per user"""

    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    user = relationship("User", back_populates="cart")

    def __repr__(self):
        return f"<Cart(id={self.id}, user_id={self.user_id})>"
