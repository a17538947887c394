"""In-memory token revocation registry."""

from __future__ import annotations

import threading
from typing import Set


class RevocationRegistry:
    """
    Set of revoked raw token values, one per application instance.

    Entries live for the lifetime of the process and are not persisted, so
    a restart forgets every revocation. Suitable for single-node deployments.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._revoked: Set[str] = set()

    def is_revoked(self, token: str) -> bool:
        with self._lock:
            return token in self._revoked

    def revoke(self, token: str) -> None:
        with self._lock:
            self._revoked.add(token)

    def clear(self) -> None:
        with self._lock:
            self._revoked.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._revoked)

