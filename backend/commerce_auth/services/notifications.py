"""Reset-code delivery collaborators."""

from __future__ import annotations

import logging
from typing import Protocol

from commerce_auth.models.user import User

logger = logging.getLogger(__name__)


class ResetCodeSender(Protocol):
    """Delivers a password-reset code to its owner (mail, SMS, ...)."""

    def send_reset_code(self, user: User, code: str) -> None:
        ...


class LoggingResetCodeSender:
    """Records that a code was issued. The code itself is never logged."""

    def send_reset_code(self, user: User, code: str) -> None:
        logger.info("Password reset code issued for user %s", user.id)
