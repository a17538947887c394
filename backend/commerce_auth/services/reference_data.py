"""Seed roles, token statuses and token types."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict
import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

from commerce_auth.core.unit_of_work import UnitOfWork
from commerce_auth.models.security import (
    TOKEN_STATUS_ACTIVE,
    TOKEN_STATUS_USED,
    TokenStatus,
    TokenType,
)
from commerce_auth.models.user import Role

logger = logging.getLogger(__name__)

ROLES = ("admin", "user")

TOKEN_STATUSES = {
    TOKEN_STATUS_ACTIVE: "active",
    TOKEN_STATUS_USED: "used",
}

# name -> lifetime in days
TOKEN_TYPES = {
    "access": Decimal("1"),
    "refresh": Decimal("7"),
    "restore": Decimal("0.0417"),
}


def seed_reference_data(db: Session) -> Dict[str, int]:
    """
    Insert missing reference rows; existing rows are left untouched.

    Returns:
        Count of rows created per table
    """
    uow = UnitOfWork(db)
    created = {"roles": 0, "token_statuses": 0, "token_types": 0}

    with uow.transaction():
        roles = uow.repository(Role)
        for name in ROLES:
            if not roles.exists(Role.name == name):
                roles.create(Role(name=name))
                created["roles"] += 1

        statuses = uow.repository(TokenStatus)
        for status_id, name in TOKEN_STATUSES.items():
            if not statuses.exists(TokenStatus.id == status_id):
                statuses.create(TokenStatus(id=status_id, name=name))
                created["token_statuses"] += 1

        if created["token_statuses"] and db.get_bind().dialect.name == "postgresql":
            # explicit ids do not advance the serial sequence
            db.execute(
                text(
                    "SELECT setval(pg_get_serial_sequence('token_statuses', 'id'), "
                    "(SELECT MAX(id) FROM token_statuses))"
                )
            )

        types = uow.repository(TokenType)
        for name, days in TOKEN_TYPES.items():
            if not types.exists(TokenType.name == name):
                types.create(
                    TokenType(name=name, status_default=TOKEN_STATUS_ACTIVE, time_span_default=days)
                )
                created["token_types"] += 1

    logger.info("Reference data seeded: %s", created)
    return created
