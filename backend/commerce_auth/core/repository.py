"""Per-entity repositories over the ORM session"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.orm import Session

T = TypeVar("T")


class Repository(ABC, Generic[T]):
    """
    Narrow storage capability consumed by the identity services.

    Predicates are backend criteria (SQLAlchemy column expressions for the
    SQLAlchemy backend). Mutations are staged in the surrounding unit of
    work and only become durable when it commits.
    """

    @abstractmethod
    def get(self, entity_id: int, options: Sequence[Any] = ()) -> Optional[T]:
        ...

    @abstractmethod
    def find_one(self, *criteria: Any, options: Sequence[Any] = ()) -> Optional[T]:
        ...

    @abstractmethod
    def find_all(self, *criteria: Any, order_by: Any = None) -> List[T]:
        ...

    @abstractmethod
    def exists(self, *criteria: Any) -> bool:
        ...

    @abstractmethod
    def count(self, *criteria: Any) -> int:
        ...

    @abstractmethod
    def create(self, entity: T) -> T:
        ...

    @abstractmethod
    def update(self, entity: T) -> T:
        ...

    @abstractmethod
    def bulk_update(self, entities: Iterable[T]) -> List[T]:
        ...

    @abstractmethod
    def delete(self, entity: T) -> None:
        ...


class SQLAlchemyRepository(Repository[T]):
    """Repository backed by a SQLAlchemy session"""

    def __init__(self, session: Session, model: Type[T]) -> None:
        self.session = session
        self.model = model

    def get(self, entity_id: int, options: Sequence[Any] = ()) -> Optional[T]:
        return self.session.get(self.model, entity_id, options=list(options) or None)

    def find_one(self, *criteria: Any, options: Sequence[Any] = ()) -> Optional[T]:
        query = self.session.query(self.model)
        if options:
            query = query.options(*options)
        return query.filter(*criteria).first()

    def find_all(self, *criteria: Any, order_by: Any = None) -> List[T]:
        query = self.session.query(self.model).filter(*criteria)
        if order_by is not None:
            query = query.order_by(order_by)
        return query.all()

    def exists(self, *criteria: Any) -> bool:
        return self.session.query(self.session.query(self.model).filter(*criteria).exists()).scalar()

    def count(self, *criteria: Any) -> int:
        return self.session.query(self.model).filter(*criteria).count()

    def create(self, entity: T) -> T:
        self.session.add(entity)
        self.session.flush()
        return entity

    def update(self, entity: T) -> T:
        self.session.add(entity)
        self.session.flush()
        return entity

    def bulk_update(self, entities: Iterable[T]) -> List[T]:
        items = list(entities)
        if items:
            self.session.add_all(items)
            self.session.flush()
        return items

    def delete(self, entity: T) -> None:
        self.session.delete(entity)
        self.session.flush()
