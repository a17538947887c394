"""Token issuance, supersession and validation service."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func

from commerce_auth.core.results import OperationResult
from commerce_auth.core.security import TokenSigner, get_signer, utcnow
from commerce_auth.core.unit_of_work import UnitOfWork
from commerce_auth.models.security import (
    TOKEN_STATUS_USED,
    Token,
    TokenStatus,
    TokenType,
)
from commerce_auth.models.user import User

logger = logging.getLogger(__name__)

ACCESS_KIND = "access"
TOKEN_ERROR_MESSAGE = "Error generating token"
INVALID_TOKEN_MESSAGE = "Invalid Token"

# a live reset code belongs to exactly one user
MAX_CODE_ATTEMPTS = 20


class TokenService:
    """
    Bind signer output to persisted token records.

    Per (user, kind) the only transition is active -> used, taken when a
    newer token of the same kind is issued. Rows are never deleted.
    """

    def __init__(self, uow: UnitOfWork, signer: Optional[TokenSigner] = None) -> None:
        self.uow = uow
        self.signer = signer or get_signer()

    def find_type(self, kind_name: str) -> Optional[TokenType]:
        return self.uow.repository(TokenType).find_one(
            func.lower(TokenType.name) == (kind_name or "").lower()
        )

    def create_token(self, user: User, kind_name: str, status: int = 0) -> OperationResult[str]:
        """
        Issue a token of ``kind_name`` for ``user``

        Supersedes the user's active tokens of the same kind and persists the
        new record in one transaction scope.

        Returns:
            Result carrying the signed string (or bare code for reset codes)
        """
        try:
            token_type = self.find_type(kind_name)
            if token_type is None:
                return OperationResult.not_found(f"Token type '{kind_name}' not found")

            token_string, identifier = self.signer.issue_token(user, token_type)
            if not token_string:
                return OperationResult.bad_request(TOKEN_ERROR_MESSAGE)

            with self.uow.transaction():
                tokens = self.uow.repository(Token)
                if self.signer.is_code_kind(token_type.name):
                    token_string = identifier = self._unused_code(tokens, token_type, identifier)

                record = Token(
                    value=identifier,
                    token_type=token_type.id,
                    user_id=user.id,
                    status=status if status > 0 else token_type.status_default,
                    expiration=utcnow() + timedelta(days=float(token_type.time_span_default)),
                )
                previous = tokens.find_all(
                    Token.user_id == user.id,
                    Token.token_type == token_type.id,
                    Token.status != TOKEN_STATUS_USED,
                )
                for token in previous:
                    token.status = TOKEN_STATUS_USED
                tokens.bulk_update(previous)
                tokens.create(record)

            logger.info(
                "Issued %s token for user %s (superseded %d)", token_type.name, user.id, len(previous)
            )
            return OperationResult.ok(token_string)
        except Exception:
            logger.exception(
                "Error generating token, user id: %s, type: %s, status: %s",
                getattr(user, "id", None), kind_name, status,
            )
            return OperationResult.internal_error(TOKEN_ERROR_MESSAGE)

    def _unused_code(self, tokens, token_type: TokenType, code: str) -> str:
        """Redraw ``code`` until no live record of the same kind holds it"""
        for _ in range(MAX_CODE_ATTEMPTS):
            taken = tokens.exists(
                Token.value == code,
                Token.token_type == token_type.id,
                Token.status != TOKEN_STATUS_USED,
                Token.expiration > utcnow(),
            )
            if not taken:
                return code
            code = self.signer.generate_code()
        raise RuntimeError(f"No free {token_type.name} code after {MAX_CODE_ATTEMPTS} attempts")

    def _verified_claims(self, token: str, kind_name: str) -> OperationResult[Dict[str, Any]]:
        token_type = self.find_type(kind_name)
        if token_type is None:
            return OperationResult.not_found(f"Token type '{kind_name}' not found")

        claims = self.signer.validate_token(token, token_type)
        jti = claims.get("jti") if claims else None
        if not jti:
            return OperationResult.not_found()

        is_live = self.uow.repository(Token).exists(
            Token.value == jti,
            Token.token_type == token_type.id,
            Token.status != TOKEN_STATUS_USED,
            Token.expiration > utcnow(),
        )
        return OperationResult.ok(claims) if is_live else OperationResult.not_found()

    def validate_token(self, token: str, kind_name: str) -> OperationResult[bool]:
        """Signature check followed by a persisted-status cross-check"""
        try:
            result = self._verified_claims(token, kind_name)
        except Exception:
            logger.exception("Error validating token of type: %s", kind_name)
            return OperationResult.internal_error()
        return OperationResult.ok(True) if result.is_ok else result.failure()

    def get_user_id_from_signed_token(self, token: str) -> OperationResult[int]:
        try:
            result = self._verified_claims(token, ACCESS_KIND)
        except Exception:
            logger.exception("Error extracting user id from access token")
            return OperationResult.internal_error()

        if not result.is_ok:
            return OperationResult.bad_request(INVALID_TOKEN_MESSAGE)
        try:
            return OperationResult.ok(int(result.entity.get("sub")))
        except (TypeError, ValueError):
            return OperationResult.bad_request(INVALID_TOKEN_MESSAGE)

    def get_token(self, user: User, type_id: int = 1) -> OperationResult[Token]:
        token = self.uow.repository(Token).find_one(
            Token.user_id == user.id, Token.token_type == type_id
        )
        return OperationResult.ok(token) if token else OperationResult.not_found()

    # Reference data

    def list_types(self) -> OperationResult[List[str]]:
        types = self.uow.repository(TokenType).find_all(order_by=TokenType.id)
        return OperationResult.ok([t.name for t in types])

    def create_type(
        self, name: str, status_default: int, time_span_default: Decimal
    ) -> OperationResult[TokenType]:
        types = self.uow.repository(TokenType)
        if types.exists(func.lower(TokenType.name) == name.lower()):
            return OperationResult.conflict(f"Token type '{name}' already exists")
        if not self.uow.repository(TokenStatus).exists(TokenStatus.id == status_default):
            return OperationResult.bad_request(f"Token status {status_default} does not exist")

        try:
            token_type = types.create(
                TokenType(name=name, status_default=status_default, time_span_default=time_span_default)
            )
            self.uow.save_changes()
            return OperationResult.ok(token_type, message=f"Token type '{name}' created")
        except Exception:
            self.uow.rollback()
            logger.exception("Error creating token type: %s", name)
            return OperationResult.internal_error()

    def create_status(self, name: str) -> OperationResult[TokenStatus]:
        statuses = self.uow.repository(TokenStatus)
        if statuses.exists(func.lower(TokenStatus.name) == name.lower()):
            return OperationResult.conflict(f"Token status '{name}' already exists")

        try:
            token_status = statuses.create(TokenStatus(name=name))
            self.uow.save_changes()
            return OperationResult.ok(token_status, message=f"Token status '{name}' created")
        except Exception:
            self.uow.rollback()
            logger.exception("Error creating token status: %s", name)
            return OperationResult.internal_error()
