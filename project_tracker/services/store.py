"""Document-style access to persisted entities."""

import logging
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from project_tracker.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DocumentStore:
    """Load, save and query entities as independent documents.

    Every ``save`` is its own committed write. Two saves in a row are two
    writes: nothing ties them together, so the second can fail after the
    first has already been persisted.
    """

    def __init__(self, db: Session):
        self.db = db

    def find(self, model: type[T], entity_id: int) -> T | None:
        """Return the entity or None."""
        return self.db.get(model, entity_id)

    def load(self, model: type[T], entity_id: int, resource: str | None = None) -> T:
        """Return the entity or raise NotFoundError."""
        entity = self.db.get(model, entity_id)
        if entity is None:
            raise NotFoundError(resource or model.__name__, str(entity_id))
        return entity

    def save(self, entity: Any) -> Any:
        """Persist the entity (and anything it dirtied) as one committed write."""
        self.db.add(entity)
        try:
            self.db.commit()
        except SQLAlchemyError:
            logger.exception("Write failed for %r", entity)
            self.db.rollback()
            raise
        return entity

    def query(self, model: type[T], *criteria: Any, order_by: Any = None, limit: int | None = None) -> list[T]:
        """Return all entities of ``model`` matching the criteria."""
        stmt = select(model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def rollback(self) -> None:
        self.db.rollback()
