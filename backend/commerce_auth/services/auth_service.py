"""Authentication service - sign-up, login with lockout, password reset"""

from typing import Optional, Tuple
import logging
import re

from sqlalchemy import func, or_
from sqlalchemy.orm import joinedload

from commerce_auth.config import settings
from commerce_auth.core.metrics import LOGIN_ATTEMPTS, TOKENS_REVOKED
from commerce_auth.core.results import OperationResult
from commerce_auth.core.security import (
    RESET_CODE_KIND,
    REFRESH_KIND,
    hash_password,
    new_salt,
    to_base64,
    utcnow,
    verify_password,
)
from commerce_auth.core.unit_of_work import UnitOfWork
from commerce_auth.models.security import TOKEN_STATUS_ACTIVE, TOKEN_STATUS_USED, Token
from commerce_auth.models.user import Cart, Role, User
from commerce_auth.schemas.auth import UserSession
from commerce_auth.services.notifications import ResetCodeSender
from commerce_auth.services.revocation import RevocationRegistry
from commerce_auth.services.token_service import (
    ACCESS_KIND,
    INVALID_TOKEN_MESSAGE,
    TokenService,
)

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"

INCORRECT_CREDENTIALS_MESSAGE = "username or password is incorrect."
ACCOUNT_LOCKED_MESSAGE = "Too many attempts, account locked."
ACCOUNT_DISABLED_MESSAGE = "Account is disabled. Please contact support."
EMAIL_IN_USE_MESSAGE = "The provided email address is already in use. Please use a different email."
USERNAME_TAKEN_MESSAGE = "The username you entered is already taken. Please choose a different username."
RESET_FAILED_MESSAGE = "Error occurred while resetting password"

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_PASSWORD_LENGTH = 8
MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 20


def is_valid_email(email: str) -> bool:
    return bool(email) and _EMAIL_PATTERN.match(email) is not None


def is_valid_password(password: str) -> bool:
    return password is not None and len(password) >= MIN_PASSWORD_LENGTH


def is_valid_username(username: str) -> bool:
    return bool(username and username.strip()) and MIN_USERNAME_LENGTH <= len(username) <= MAX_USERNAME_LENGTH


class AuthService:
    """
    User-facing identity operations.

    Every operation returns an ``OperationResult``; unexpected failures are
    logged and reported as internal errors without exception detail.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        registry: RevocationRegistry,
        tokens: Optional[TokenService] = None,
        reset_code_sender: Optional[ResetCodeSender] = None,
        lockout_threshold: Optional[int] = None,
    ) -> None:
        self.uow = uow
        self.registry = registry
        self.tokens = tokens or TokenService(uow)
        self.reset_code_sender = reset_code_sender
        self.lockout_threshold = (
            lockout_threshold if lockout_threshold is not None else settings.LOCKOUT_THRESHOLD
        )

    def _default_role(self) -> Role:
        role = self.uow.repository(Role).find_one(func.lower(Role.name) == DEFAULT_ROLE)
        if role is None:
            raise LookupError(f"Default role '{DEFAULT_ROLE}' is not seeded")
        return role

    def sign_up(self, username: str, email: str, password: str) -> OperationResult[User]:
        """
        Register a new user with an empty cart

        Args:
            username: 3 to 20 characters
            email: Address with a dotted domain
            password: At least 8 characters

        Returns:
            Result carrying the created user
        """
        if not is_valid_email(email):
            return OperationResult.bad_request(f"{email} is not a valid email.")
        if not is_valid_password(password):
            return OperationResult.bad_request(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
            )
        if not is_valid_username(username):
            return OperationResult.bad_request(f"{username} is not a valid username.")

        self.uow.begin()
        try:
            users = self.uow.repository(User)
            email_exists = users.exists(User.email == email)
            username_exists = users.exists(User.username == username)

            if email_exists or username_exists:
                self.uow.commit()
                return OperationResult.conflict(
                    EMAIL_IN_USE_MESSAGE if email_exists else USERNAME_TAKEN_MESSAGE
                )

            salt = new_salt(settings.SALT_SIZE)
            now = utcnow()
            user = User(
                username=username,
                email=email,
                salt=to_base64(salt),
                password=hash_password(password, salt),
                role=self._default_role(),
                is_locked=False,
                is_disabled=False,
                is_email_confirmed=False,
                access_attempts=0,
                creation_date=now,
                last_access_date=now,
            )
            user.cart = Cart()

            users.create(user)
            self.uow.commit()
        except Exception:
            logger.exception("SignUp error for username '%s'", username)
            self.uow.rollback()
            return OperationResult.internal_error()

        logger.info("Created user: %s (id=%s)", user.username, user.id)
        return OperationResult.ok(user)

    def log_in(self, credential: str, password: str, remember: bool = False) -> OperationResult[UserSession]:
        """
        Authenticate by email or username with lockout protection

        The lockout counter is a plain read-modify-write; concurrent failed
        attempts for the same user may under-count.
        """
        try:
            users = self.uow.repository(User)
            user = users.find_one(
                or_(User.email == credential, User.username == credential),
                options=[joinedload(User.role)],
            )

            if user is None:
                LOGIN_ATTEMPTS.labels("invalid").inc()
                return OperationResult.bad_request(INCORRECT_CREDENTIALS_MESSAGE)

            if user.is_locked or user.is_disabled:
                LOGIN_ATTEMPTS.labels("disabled").inc()
                return OperationResult.bad_request(ACCOUNT_DISABLED_MESSAGE)

            if verify_password(password, user.salt, user.password):
                token_result = self.tokens.create_token(user, ACCESS_KIND)
                if not token_result.is_ok:
                    LOGIN_ATTEMPTS.labels("error").inc()
                    return OperationResult.bad_request(token_result.message)

                if remember:
                    refresh_result = self.tokens.create_token(user, REFRESH_KIND)
                    if not refresh_result.is_ok:
                        logger.warning(
                            "Refresh token not issued for user %s: %s", user.id, refresh_result.message
                        )

                user.access_attempts = 0
                user.last_access_date = utcnow()
                users.update(user)
                self.uow.save_changes()

                LOGIN_ATTEMPTS.labels("success").inc()
                logger.info("User authenticated: %s", user.id)
                return OperationResult.ok(UserSession.from_user(user, token_result.entity))

            user.access_attempts = (user.access_attempts or 0) + 1
            message = INCORRECT_CREDENTIALS_MESSAGE
            if user.access_attempts >= self.lockout_threshold:
                user.is_locked = True
                message = ACCOUNT_LOCKED_MESSAGE
                logger.warning("Account locked for user: %s", user.id)

            users.update(user)
            self.uow.save_changes()

            LOGIN_ATTEMPTS.labels("locked" if user.is_locked else "invalid").inc()
            return OperationResult.bad_request(message)
        except Exception:
            logger.exception("Error logging in user %s", credential)
            self.uow.rollback()
            LOGIN_ATTEMPTS.labels("error").inc()
            return OperationResult.internal_error()

    def request_password_reset(self, email: str) -> OperationResult[str]:
        """Issue a single-use reset code; delivery is up to the configured sender"""
        try:
            user = self.uow.repository(User).find_one(User.email == email)
            if user is None:
                return OperationResult.not_found()

            result = self.tokens.create_token(user, RESET_CODE_KIND)
            if not result.is_ok:
                return OperationResult.bad_request(result.message)

            if self.reset_code_sender is not None:
                self.reset_code_sender.send_reset_code(user, result.entity)

            return OperationResult.ok(result.entity)
        except Exception:
            logger.exception("Sending reset code to user(%s)", email)
            return OperationResult.internal_error()

    def _find_reset_target(self, code: str) -> Tuple[Optional[Token], Optional[User]]:
        token_type = self.tokens.find_type(RESET_CODE_KIND)
        if token_type is None:
            return None, None

        matches = self.uow.repository(Token).find_all(
            Token.value == code,
            Token.token_type == token_type.id,
            Token.status == TOKEN_STATUS_ACTIVE,
            Token.expiration > utcnow(),
        )
        # an ambiguous code cannot name its owner
        if len(matches) != 1:
            return None, None
        token = matches[0]

        user = self.uow.repository(User).get(token.user_id)
        if user is None:
            return None, None
        return token, user

    def reset_password(self, code: str, new_password: str) -> OperationResult[bool]:
        """
        Consume a reset code and set a new password

        Unknown, already used and expired codes are indistinguishable.
        """
        if not is_valid_password(new_password):
            return OperationResult.bad_request(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
            )

        self.uow.begin()
        try:
            token, user = self._find_reset_target(code)
            if token is None or user is None:
                self.uow.rollback()
                return OperationResult.bad_request(INVALID_TOKEN_MESSAGE)

            salt = new_salt(settings.SALT_SIZE)
            user.salt = to_base64(salt)
            user.password = hash_password(new_password, salt)
            user.is_locked = False
            user.access_attempts = 0
            token.status = TOKEN_STATUS_USED

            self.uow.repository(User).update(user)
            self.uow.repository(Token).update(token)
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            logger.exception("Resetting password failed")
            return OperationResult.internal_error(RESET_FAILED_MESSAGE)

        logger.info("Password reset for user %s", user.id)
        return OperationResult.ok(True, message="Password has been reset.")

    def get_user_id_from_jwt(self, token: str) -> OperationResult[int]:
        if not token or not token.strip():
            return OperationResult.bad_request(INVALID_TOKEN_MESSAGE)
        if self.registry.is_revoked(token):
            return OperationResult.bad_request(INVALID_TOKEN_MESSAGE)
        return self.tokens.get_user_id_from_signed_token(token)

    def validate_access_token(self, token: str) -> OperationResult[bool]:
        """Revocation check, then signature, then persisted status"""
        if not token or not token.strip():
            return OperationResult.bad_request(INVALID_TOKEN_MESSAGE)
        if self.registry.is_revoked(token):
            return OperationResult.bad_request("Token has been revoked")
        return self.tokens.validate_token(token, ACCESS_KIND)

    def revoke_token(self, token: str) -> OperationResult[bool]:
        if not token or not token.strip():
            return OperationResult.bad_request(INVALID_TOKEN_MESSAGE)
        self.registry.revoke(token)
        TOKENS_REVOKED.inc()
        return OperationResult.ok(True, message="Token revoked")

    def is_revoked(self, token: str) -> OperationResult[bool]:
        return OperationResult.ok(self.registry.is_revoked(token))
