"""Token persistence models."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Index
from sqlalchemy.orm import relationship

from commerce_auth.core.database import Base

TOKEN_STATUS_ACTIVE = 1
TOKEN_STATUS_USED = 2


class TokenStatus(Base):
    """Lifecycle state of an issued token (reference data)."""

    __tablename__ = "token_statuses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)

    tokens = relationship("Token", back_populates="status_ref")


class TokenType(Base):
    """Token kind with its default status and lifetime in days."""

    __tablename__ = "token_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    status_default = Column(Integer, ForeignKey("token_statuses.id"), nullable=False)
    time_span_default = Column(Numeric(18, 4), nullable=False)

    tokens = relationship("Token", back_populates="token_type_ref")

    def __repr__(self):
        return f"<TokenType(id={self.id}, name='{self.name}')>"


class Token(Base):
    """One issued credential. Rows are only ever transitioned, never deleted."""

    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, index=True)
    value = Column(String(128), nullable=False, index=True)
    token_type = Column(Integer, ForeignKey("token_types.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(Integer, ForeignKey("token_statuses.id"), nullable=False)
    expiration = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="tokens")
    token_type_ref = relationship("TokenType", back_populates="tokens")
    status_ref = relationship("TokenStatus", back_populates="tokens")

    __table_args__ = (
        Index("idx_tokens_user_type", "user_id", "token_type"),
    )

    def __repr__(self):
        return f"<Token(id={self.id}, user_id={self.user_id}, type={self.token_type}, status={self.status})>"
