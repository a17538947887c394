"""Reference-counted transaction boundary over one ORM session"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, Type, TypeVar
import logging

from sqlalchemy.orm import Session

from commerce_auth.core.repository import Repository, SQLAlchemyRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork:
    """
    Demarcate atomic multi-entity mutations.

    ``begin`` while already inside a transaction only increments the depth
    counter, so inner scopes never commit an outer caller's work. ``commit``
    finalizes when the depth goes from 1 to 0. ``rollback`` always aborts the
    whole transaction and resets the depth.

    One instance per request; never share it across concurrent operations.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._repositories: Dict[type, Repository] = {}
        self._depth = 0

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def repository(self, model: Type[T]) -> Repository[T]:
        """Lazily construct and cache the repository for ``model``"""
        repo = self._repositories.get(model)
        if repo is None:
            repo = SQLAlchemyRepository(self.session, model)
            self._repositories[model] = repo
        return repo

    def begin(self) -> None:
        if self._depth == 0 and not self.session.in_transaction():
            self.session.begin()
        self._depth += 1

    def commit(self) -> None:
        if self._depth == 1:
            self.session.flush()
            self.session.commit()
        self._depth = max(0, self._depth - 1)

    def rollback(self) -> None:
        self.session.rollback()
        self._depth = 0

    def save_changes(self) -> None:
        """Flush inside a transaction; commit immediately outside one"""
        if self._depth > 0:
            self.session.flush()
        else:
            self.session.commit()

    @contextmanager
    def transaction(self) -> Iterator["UnitOfWork"]:
        self.begin()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        self.commit()

    def close(self) -> None:
        if self._depth:
            logger.warning("Closing unit of work with %d open transaction scope(s)", self._depth)
            self.rollback()
        self.session.close()
