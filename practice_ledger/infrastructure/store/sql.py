"""DataStore backed by a SQLAlchemy session"""

import logging
import operator
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from practice_ledger.domain.exceptions import DataStoreError
from practice_ledger.infrastructure.database.models import MODELS_BY_TABLE
from practice_ledger.infrastructure.observability.metrics import store_error_counter
from practice_ledger.infrastructure.store.base import Filter, Row

logger = logging.getLogger(__name__)

_COMPARATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
    "is": lambda column, value: column.is_(value),
}


def _to_row(obj) -> Row:
    return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}


class SqlDataStore:
    """
    Runs each call as its own unit of work: reads, then commits writes
    immediately. Nothing is held open between calls.
    """

    backend = "sql"

    def __init__(self, db: Session):
        self.db = db

    def _model(self, table: str):
        try:
            return MODELS_BY_TABLE[table]
        except KeyError:
            raise DataStoreError(f"Unknown table: {table}") from None

    def _query(self, table: str, filters: Sequence[Filter]):
        model = self._model(table)
        query = self.db.query(model)
        for f in filters:
            query = query.filter(_COMPARATORS[f.op](getattr(model, f.column), f.value))
        return model, query

    def _fail(self, action: str, table: str, error: Exception) -> DataStoreError:
        self.db.rollback()
        store_error_counter.labels(backend=self.backend).inc()
        logger.error(f"Store {action} on {table} failed: {error}")
        return DataStoreError(f"Failed to {action} {table}")

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        try:
            model, query = self._query(table, filters)
            if order_by:
                column = getattr(model, order_by)
                query = query.order_by(column.desc() if descending else column.asc())
            if limit is not None:
                query = query.limit(limit)
            return [_to_row(obj) for obj in query.all()]
        except SQLAlchemyError as e:
            raise self._fail("select", table, e) from e

    async def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        if not rows:
            return []
        model = self._model(table)
        try:
            objects = [model(**row) for row in rows]
            self.db.add_all(objects)
            self.db.commit()
            return [_to_row(obj) for obj in objects]
        except SQLAlchemyError as e:
            raise self._fail("insert", table, e) from e

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        try:
            _, query = self._query(table, filters)
            objects = query.all()
            for obj in objects:
                for key, value in values.items():
                    setattr(obj, key, value)
            self.db.commit()
            return [_to_row(obj) for obj in objects]
        except SQLAlchemyError as e:
            raise self._fail("update", table, e) from e

    async def delete(self, table: str, filters: Sequence[Filter]) -> int:
        try:
            _, query = self._query(table, filters)
            objects = query.all()
            for obj in objects:
                self.db.delete(obj)
            self.db.commit()
            return len(objects)
        except SQLAlchemyError as e:
            raise self._fail("delete", table, e) from e
