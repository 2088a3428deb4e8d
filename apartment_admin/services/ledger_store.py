"""Generic document access over the ORM session.

Every read path goes through :meth:`LedgerStore.query`, which is the only
place that applies the ``is_deleted`` tombstone filter. Writes commit
immediately; storage failures are rolled back and re-raised as
:class:`BackendUnavailableError` without retrying.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session
from sqlalchemy.orm.exc import StaleDataError

from ..config import settings
from ..core.errors import BackendUnavailableError, ConcurrentUpdateError, NotFoundError
from ..models.models import new_id, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LedgerStore:
    def __init__(self, db: Session, batch_limit: Optional[int] = None) -> None:
        self.db = db
        self.batch_limit = batch_limit or settings.batch_write_limit

    @contextmanager
    def _writing(self, description: str) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConcurrentUpdateError(
                f"{description} was modified by another request; reload and try again."
            ) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Ledger store write failed (%s): %s", description, exc)
            raise BackendUnavailableError(f"{description} failed.") from exc

    def query(self, model: Type[T], **filters: Any) -> Query:
        query = self.db.query(model).filter(model.is_deleted.is_(False))  # type: ignore[attr-defined]
        for field, value in filters.items():
            column = getattr(model, field)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return query

    def get(self, model: Type[T], record_id: str) -> Optional[T]:
        try:
            return self.query(model, id=record_id).first()
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(f"Reading {model.__name__} failed.") from exc

    def require(self, model: Type[T], record_id: str) -> T:
        record = self.get(model, record_id)
        if record is None:
            raise NotFoundError(model.__name__, record_id)
        return record

    def all(self, query: Query) -> List[Any]:
        try:
            return query.all()
        except SQLAlchemyError as exc:
            raise BackendUnavailableError("Query failed.") from exc

    def create(self, model: Type[T], **fields: Any) -> T:
        record = model(**fields)
        with self._writing(f"Creating {model.__name__}"):
            self.db.add(record)
        self.db.refresh(record)
        return record

    def update(self, record: T, **fields: Any) -> T:
        for key, value in fields.items():
            setattr(record, key, value)
        record.updated_at = utcnow()  # type: ignore[attr-defined]
        with self._writing(f"Updating {type(record).__name__} {getattr(record, 'id', '')}"):
            self.db.add(record)
        self.db.refresh(record)
        return record

    def create_with_update(self, model: Type[T], fields: Dict[str, Any], record: Any, **changes: Any) -> T:
        """Insert a new row and update ``record`` in one commit.

        A version conflict on ``record`` rolls back the insert as well.
        """
        created = model(**fields)
        for key, value in changes.items():
            setattr(record, key, value)
        record.updated_at = utcnow()
        with self._writing(f"Creating {model.__name__} with {type(record).__name__} {getattr(record, 'id', '')}"):
            self.db.add(created)
            self.db.add(record)
        self.db.refresh(created)
        self.db.refresh(record)
        return created

    def soft_delete(self, record: T) -> T:
        return self.update(record, is_deleted=True)

    def batch_create(self, model: Type[T], rows: Sequence[Dict[str, Any]]) -> List[str]:
        """Insert rows in chunks of at most ``batch_limit``, committing each chunk.

        Returns the ids of the inserted rows in input order. A failure leaves
        earlier chunks committed and later ones absent.
        """
        ids: List[str] = []
        for start in range(0, len(rows), self.batch_limit):
            chunk_rows = [dict(row, id=row.get("id") or new_id()) for row in rows[start : start + self.batch_limit]]
            with self._writing(f"Batch creating {model.__name__}"):
                self.db.add_all([model(**row) for row in chunk_rows])
            ids.extend(row["id"] for row in chunk_rows)
            logger.debug("Committed %s %s rows", len(chunk_rows), model.__name__)
        return ids


def snapshot(record: Any, fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """Column values of ``record`` as a plain dict, for audit before/after values."""
    names = list(fields) if fields is not None else [column.name for column in record.__table__.columns]
    return {name: getattr(record, name) for name in names}
