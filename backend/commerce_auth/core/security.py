"""Security utilities - signed tokens, password hashing, one-time codes"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Dict, Any, Tuple
from jose import JWTError, jwt
from commerce_auth.config import settings
import base64
import hashlib
import logging
import secrets
import uuid

logger = logging.getLogger(__name__)

REFRESH_KIND = "refresh"
RESET_CODE_KIND = "restore"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_salt(size: int = 32) -> bytes:
    """Cryptographically random salt bytes"""
    return secrets.token_bytes(size)


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def from_base64(value: str) -> bytes:
    return base64.b64decode(value)


def hash_password(password: str, salt: bytes) -> str:
    """
    Hash a password with its salt

    Args:
        password: Plain text password
        salt: Raw salt bytes

    Returns:
        str: Base64-encoded SHA-256 digest of password + salt
    """
    digest = hashlib.sha256(password.encode("utf-8") + salt).digest()
    return to_base64(digest)


def verify_password(password: str, salt_b64: str, password_hash: str) -> bool:
    """Recompute the hash with the stored salt and compare in constant time"""
    candidate = hash_password(password, from_base64(salt_b64))
    return secrets.compare_digest(candidate, password_hash)


class TokenSigner:
    """
    Create and verify time-bounded tokens keyed by token kind.

    The kind name alone picks key material: ``refresh`` uses the refresh
    key/audience pair, every other signed kind the default pair. The
    ``restore`` kind is a bare numeric one-time code and is never signed.
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        audience: str,
        refresh_secret_key: str,
        refresh_audience: str,
        algorithm: str = "HS256",
        reset_code_length: int = 6,
    ):
        self.issuer = issuer
        self.algorithm = algorithm
        self.reset_code_length = reset_code_length
        self._default = (secret_key, audience)
        self._refresh = (refresh_secret_key, refresh_audience)

    @classmethod
    def from_settings(cls, config=settings) -> "TokenSigner":
        return cls(
            secret_key=config.JWT_SECRET_KEY,
            issuer=config.JWT_ISSUER,
            audience=config.JWT_AUDIENCE,
            refresh_secret_key=config.JWT_REFRESH_SECRET_KEY,
            refresh_audience=config.JWT_REFRESH_AUDIENCE,
            algorithm=config.JWT_ALGORITHM,
            reset_code_length=config.RESET_CODE_LENGTH,
        )

    def key_and_audience(self, kind_name: str) -> Tuple[str, str]:
        if (kind_name or "").lower() == REFRESH_KIND:
            return self._refresh
        return self._default

    @staticmethod
    def is_code_kind(kind_name: str) -> bool:
        return (kind_name or "").lower() == RESET_CODE_KIND

    def generate_code(self) -> str:
        """Random decimal code with exactly ``reset_code_length`` digits"""
        low = 10 ** (self.reset_code_length - 1)
        return str(low + secrets.randbelow(9 * low))

    def build_claims(self, user, kind_name: str) -> Dict[str, Any]:
        claims = {
            "jti": str(uuid.uuid4()),
            "name": (kind_name or "").lower(),
            "sub": str(user.id),
        }
        if (kind_name or "").lower() == REFRESH_KIND:
            claims["email"] = user.email
        return claims

    def issue_token(self, user, token_type, claims: Optional[Dict[str, Any]] = None) -> Tuple[str, str]:
        """
        Mint a token of the given kind for ``user``

        Args:
            user: Owner (needs ``id``; ``email`` for refresh tokens)
            token_type: Kind record with ``name`` and ``time_span_default`` (days)
            claims: Optional claim set replacing the kind's default claims

        Returns:
            Tuple of (token string, identifier stored with the token record)
        """
        if self.is_code_kind(token_type.name):
            code = self.generate_code()
            return code, code

        key, audience = self.key_and_audience(token_type.name)
        to_encode = dict(claims) if claims else self.build_claims(user, token_type.name)
        to_encode.setdefault("jti", str(uuid.uuid4()))

        now = utcnow()
        to_encode.update({
            "iss": self.issuer,
            "aud": audience,
            "iat": now,
            "exp": now + timedelta(days=float(token_type.time_span_default)),
        })

        encoded = jwt.encode(to_encode, key, algorithm=self.algorithm)
        return encoded, to_encode["jti"]

    def validate_token(self, token: str, token_type) -> Optional[Dict[str, Any]]:
        """
        Verify signature, issuer, audience and expiry

        Returns:
            Optional[Dict]: Claims, or None for any kind of invalid token
        """
        if not token or not isinstance(token, str):
            return None

        key, audience = self.key_and_audience(token_type.name)
        try:
            return jwt.decode(
                token,
                key,
                algorithms=[self.algorithm],
                audience=audience,
                issuer=self.issuer,
            )
        except JWTError as exc:
            logger.info("Token validation failed for kind '%s': %s", token_type.name, exc)
            return None


@lru_cache()
def get_signer() -> TokenSigner:
    """Signer built from application settings"""
    return TokenSigner.from_settings(settings)
