# Overview: SQLAlchemy-backed tabular store; the local system of record for all ledgers.

from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models.tables import StoreRow, StoreTable
from ..time_utils import now
from .base import Row, StoreError
from .ranges import CellRange

logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _trim(cells: list[Any]) -> list[Any]:
    end = len(cells)
    while end and _is_empty(cells[end - 1]):
        end -= 1
    return list(cells[:end])


class SqlTableStore:
    """
    TabularStore over two SQL tables (store_tables, store_rows).

    Each public call commits (or rolls back) on its own, matching the
    one-call-one-round-trip semantics of a remote spreadsheet API.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _run(self, op, *, table: str | None = None, write: bool = False):
        try:
            result = op()
            if write:
                self.session.commit()
            return result
        except StoreError:
            self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Store call failed for table %s", table)
            raise StoreError(f"store call failed: {exc}", table=table) from exc

    def _table(self, name: str) -> StoreTable:
        table = self.session.query(StoreTable).filter_by(name=name).first()
        if table is None:
            raise StoreError(f"Unable to parse range: table {name!r} not found", table=name)
        return table

    def _touch(self, table: StoreTable) -> None:
        table.updated_at = now()

    # ------------------------------------------------------------------
    # TabularStore
    # ------------------------------------------------------------------

    def list_tables(self) -> set[str]:
        def _op():
            return {name for (name,) in self.session.query(StoreTable.name).all()}
        return self._run(_op)

    def create_table(self, name: str, header: Row) -> None:
        def _op():
            if self.session.query(StoreTable).filter_by(name=name).first():
                raise StoreError(f"A table with the name {name!r} already exists", table=name)
            table = StoreTable(name=name)
            self.session.add(table)
            self.session.flush()
            self.session.add(StoreRow(table_id=table.id, position=0, cells=list(header)))
        self._run(_op, table=name, write=True)

    def read_range(self, table: str, range_spec: str) -> list[list[Any]]:
        rng = self._parse(range_spec, table)

        def _op():
            t = self._table(table)
            q = self.session.query(StoreRow).filter(
                StoreRow.table_id == t.id,
                StoreRow.position >= rng.start_row - 1,
            )
            if rng.end_row is not None:
                q = q.filter(StoreRow.position <= rng.end_row - 1)
            by_position = {r.position: r.cells or [] for r in q.all()}

            out: list[list[Any]] = []
            if not by_position:
                return out
            last = max(by_position)
            for position in range(rng.start_row - 1, last + 1):
                cells = by_position.get(position, [])
                out.append(_trim(cells[rng.start_col:rng.end_col + 1]))
            while out and not out[-1]:
                out.pop()
            return out

        return self._run(_op, table=table)

    def append_rows(self, table: str, rows: Sequence[Row]) -> None:
        def _op():
            t = self._table(table)
            last = (
                self.session.query(func.max(StoreRow.position))
                .filter(StoreRow.table_id == t.id)
                .scalar()
            )
            position = 0 if last is None else last + 1
            for row in rows:
                self.session.add(StoreRow(table_id=t.id, position=position, cells=list(row)))
                position += 1
            self._touch(t)
        self._run(_op, table=table, write=True)

    def overwrite_range(self, table: str, range_spec: str, rows: Sequence[Row]) -> None:
        rng = self._parse(range_spec, table)
        if rng.end_row is not None and len(rows) > rng.end_row - rng.start_row + 1:
            raise StoreError(f"{len(rows)} rows do not fit range {range_spec}", table=table)
        for row in rows:
            if len(row) > rng.width:
                raise StoreError(f"{len(row)} cells do not fit range {range_spec}", table=table)

        def _op():
            t = self._table(table)
            for offset, values in enumerate(rows):
                position = rng.start_row - 1 + offset
                existing = (
                    self.session.query(StoreRow)
                    .filter_by(table_id=t.id, position=position)
                    .first()
                )
                cells = list(existing.cells or []) if existing else []
                if len(cells) < rng.start_col + len(values):
                    cells.extend([""] * (rng.start_col + len(values) - len(cells)))
                for i, value in enumerate(values):
                    cells[rng.start_col + i] = value
                if existing:
                    existing.cells = cells
                else:
                    self.session.add(StoreRow(table_id=t.id, position=position, cells=cells))
            self._touch(t)
        self._run(_op, table=table, write=True)

    def delete_row(self, table: str, index: int) -> None:
        if index < 0:
            raise StoreError("row index cannot be negative", table=table)

        def _op():
            t = self._table(table)
            self.session.query(StoreRow).filter_by(table_id=t.id, position=index).delete()
            self.session.query(StoreRow).filter(
                StoreRow.table_id == t.id,
                StoreRow.position > index,
            ).update({StoreRow.position: StoreRow.position - 1}, synchronize_session=False)
            self._touch(t)
        self._run(_op, table=table, write=True)

    @staticmethod
    def _parse(range_spec: str, table: str) -> CellRange:
        try:
            return CellRange.parse(range_spec)
        except ValueError as exc:
            raise StoreError(str(exc), table=table) from exc
