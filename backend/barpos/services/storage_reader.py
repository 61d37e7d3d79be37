# Overview: Read-only storage capability handed to the analytics services.

"""
Storage reader

Wraps a SQLAlchemy session and the declared table metadata. Callers name a
relation and the columns they need and get plain dicts back.

Failures are split in two:

- RelationMissingError: the relation (or a requested column) is unknown to
  the metadata, or the database reports the table as missing. Callers treat
  it as "no data here" so a partially migrated schema still reports.
- DataSourceError: everything else. Callers let it abort the request.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from sqlalchemy import MetaData, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from barpos.time_utils import parse_iso_datetime


class StorageError(Exception):
    """Base for storage read failures."""


class RelationMissingError(StorageError):
    """A relation or column does not exist (or the schema cache has no entry for it)."""

    def __init__(self, relation: str, message: str):
        super().__init__(message)
        self.relation = relation


class DataSourceError(StorageError):
    """Any storage failure that is not a missing relation."""


_MISSING_MARKERS = ("does not exist", "no such table", "schema cache")


def is_relation_missing(error: BaseException, relation: str) -> bool:
    """True when a driver error says ``relation`` is absent."""
    message = str(getattr(error, "orig", None) or error)
    return relation in message and any(marker in message for marker in _MISSING_MARKERS)


class StorageReader:
    def __init__(self, session: Session, metadata: MetaData):
        self._session = session
        self._metadata = metadata

    def _columns(self, relation: str, columns: Sequence[str]):
        table = self._metadata.tables.get(relation)
        if table is None:
            raise RelationMissingError(
                relation, f"Could not find the table '{relation}' in the schema cache"
            )
        for name in columns:
            if name not in table.c:
                raise RelationMissingError(
                    relation, f"Could not find the '{name}' column of '{relation}' in the schema cache"
                )
        return table, [table.c[name] for name in columns]

    def _execute(self, relation: str, statement) -> list[dict[str, Any]]:
        try:
            result = self._session.execute(statement)
            return [dict(row._mapping) for row in result]
        except SQLAlchemyError as exc:
            # A failed statement poisons the transaction on some backends
            self._session.rollback()
            if is_relation_missing(exc, relation):
                raise RelationMissingError(relation, str(exc)) from exc
            raise DataSourceError(f"Failed to read {relation}: {exc}") from exc
        except (OverflowError, ValueError, TypeError) as exc:
            # Driver refused to bind a parameter, e.g. an id wider than 64 bits
            self._session.rollback()
            raise DataSourceError(f"Failed to read {relation}: {exc}") from exc

    def read_range(
        self,
        relation: str,
        columns: Sequence[str],
        start_iso: str,
        end_iso: str,
        *,
        time_column: str = "created_at",
    ) -> list[dict[str, Any]]:
        """Rows with start <= time_column < end, oldest first."""
        table, selected = self._columns(relation, list(columns) + [time_column])
        stamp = table.c[time_column]
        statement = (
            select(*selected[:-1])
            .where(stamp >= parse_iso_datetime(start_iso), stamp < parse_iso_datetime(end_iso))
            .order_by(stamp.asc())
        )
        return self._execute(relation, statement)

    def read_in(
        self,
        relation: str,
        columns: Sequence[str],
        column: str,
        values: Iterable[Any],
    ) -> list[dict[str, Any]]:
        values = list(values)
        table, selected = self._columns(relation, list(columns) + [column])
        if not values:
            return []
        statement = select(*selected[:-1]).where(table.c[column].in_(values))
        return self._execute(relation, statement)

    def get_by_id(self, relation: str, columns: Sequence[str], row_id: Any) -> dict[str, Any] | None:
        table, selected = self._columns(relation, list(columns) + ["id"])
        statement = select(*selected[:-1]).where(table.c.id == row_id).limit(1)
        rows = self._execute(relation, statement)
        return rows[0] if rows else None

    def read_all(self, relation: str, columns: Sequence[str]) -> list[dict[str, Any]]:
        _, selected = self._columns(relation, columns)
        return self._execute(relation, select(*selected))

    def latest(self, relation: str, columns: Sequence[str], order_by: str) -> dict[str, Any] | None:
        table, selected = self._columns(relation, list(columns) + [order_by])
        statement = select(*selected[:-1]).order_by(table.c[order_by].desc()).limit(1)
        rows = self._execute(relation, statement)
        return rows[0] if rows else None
