"""
import_engine.backend - Bulk persistence capability.

The pipeline only talks to the BulkBackend protocol.  The SQLAlchemy
implementation below maps parsed rows onto a declarative model,
validates them, and writes the survivors with one bulk INSERT (or a
dialect upsert when a duplicate-key policy is configured).

All session management for one run is done through transaction():
commit on success, rollback on error or when the scope was marked.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator, Protocol

from sqlalchemy import inspect as sa_inspect, insert, select, UniqueConstraint
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from import_engine.errors import PersistenceConstraintError
from import_engine.options import ImportOptions
from import_engine.report import BatchOutcome, RowValidationFailure

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMNS = ("created_at", "updated_at")

_TRUE  = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE = frozenset({"0", "false", "f", "no", "n", "off"})

# Max bound parameters per IN (...) lookup
_LOOKUP_CHUNK = 500


class TransactionScope:
    """Handle yielded by BulkBackend.transaction()."""

    def __init__(self):
        self.rollback_only = False

    def mark_rollback(self) -> None:
        self.rollback_only = True


class BulkBackend(Protocol):

    def transaction(self) -> Iterator[TransactionScope]:
        ...

    def insert_batch(self, rows: list[dict], options: ImportOptions) -> BatchOutcome:
        ...


class SQLAlchemyBulkBackend:
    """
    Bulk import into one SQLAlchemy model through a caller-owned Session.
    """

    def __init__(self, session: Session, model: type):
        self.session = session
        self.model = model
        mapper = sa_inspect(model)
        self._columns = {attr.key: attr.columns[0] for attr in mapper.column_attrs}
        self._presence = [k for k, c in self._columns.items() if _validates(c, "presence")]
        self._unique = [k for k, c in self._columns.items() if _validates(c, "uniqueness")]

    # ── Transaction scope ──────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator[TransactionScope]:
        scope = TransactionScope()
        try:
            yield scope
        except BaseException:
            self.session.rollback()
            raise

        if scope.rollback_only:
            self.session.rollback()
            return
        try:
            self.session.commit()
        except DBAPIError as exc:
            self.session.rollback()
            raise PersistenceConstraintError(_db_message(exc)) from exc

    # ── Batch insert ───────────────────────────────────────────────────

    def insert_batch(self, rows: list[dict], options: ImportOptions) -> BatchOutcome:
        outcome = BatchOutcome(rows=len(rows))
        prepared = [(row, *self._prepare(row, options)) for row in rows]

        taken: dict[str, set] = {}
        if options.validate and options.validate_uniqueness:
            taken = self._taken_values(values for _row, values, _errors in prepared)
        seen: dict[str, set] = {key: set() for key in self._unique}

        now = datetime.now(timezone.utc).replace(tzinfo=None)
        records: list[dict] = []
        for pos, (row, values, errors) in enumerate(prepared):
            if options.validate:
                errors += self._validate(values, taken, seen, options)
            if errors:
                outcome.failures.append(RowValidationFailure(
                    line=getattr(row, "line", 0), row=dict(row), errors=errors, position=pos,
                ))
                continue
            for key in self._unique:
                if values.get(key) is not None:
                    seen[key].add(values[key])
            if options.timestamps:
                for key in TIMESTAMP_COLUMNS:
                    if key in self._columns and values.get(key) is None:
                        values[key] = now
            records.append(values)

        if records:
            self._write(records, options)
        outcome.inserted = len(records)
        return outcome

    # ── Private helpers ────────────────────────────────────────────────

    def _prepare(self, row: dict, options: ImportOptions) -> tuple[dict, list]:
        """Map keys onto columns and cast values.  Returns (values, errors)."""
        values: dict[str, Any] = {}
        errors: list[tuple[str, str]] = []
        for key, raw in row.items():
            if key not in self._columns:
                raise PersistenceConstraintError(
                    f"unknown attribute '{key}' for {self.model.__name__}."
                )
            try:
                values[key] = self._cast(key, raw)
            except ValueError:
                if not options.validate:
                    raise PersistenceConstraintError(
                        f"invalid value {raw!r} for {self.model.__name__}.{key}"
                    ) from None
                errors.append((key, "is invalid"))
        return values, errors

    def _cast(self, key: str, raw: Any) -> Any:
        if not isinstance(raw, str):
            return raw
        if not raw.strip():
            return None
        try:
            py_type = self._columns[key].type.python_type
        except NotImplementedError:
            return raw

        text = raw.strip()
        if py_type is str:
            return raw
        if py_type is bool:
            low = text.lower()
            if low in _TRUE:
                return True
            if low in _FALSE:
                return False
            raise ValueError(text)
        if py_type is int:
            return int(text)
        if py_type is float:
            return float(text)
        if py_type is Decimal:
            try:
                return Decimal(text)
            except InvalidOperation:
                raise ValueError(text) from None
        if py_type is datetime:
            return datetime.fromisoformat(text)
        if py_type is date:
            return date.fromisoformat(text)
        return raw

    def _validate(self, values: dict, taken: dict, seen: dict,
                  options: ImportOptions) -> list[tuple[str, str]]:
        errors: list[tuple[str, str]] = []

        # @validates hooks fire on attribute set and may normalise values
        probe = self.model()
        for key in list(values):
            try:
                setattr(probe, key, values[key])
            except ValueError as exc:
                errors.append((key, str(exc)))
            else:
                values[key] = getattr(probe, key)

        for key in self._presence:
            val = values.get(key)
            if val is None or (isinstance(val, str) and not val.strip()):
                errors.append((key, "can't be blank"))

        if options.validate_uniqueness:
            for key in self._unique:
                val = values.get(key)
                if val is None:
                    continue
                if val in taken.get(key, ()) or val in seen[key]:
                    errors.append((key, "has already been taken"))
        return errors

    def _taken_values(self, batch_values) -> dict[str, set]:
        """Values of uniqueness-validated columns that already exist in storage."""
        wanted: dict[str, set] = {key: set() for key in self._unique}
        for values in batch_values:
            for key in self._unique:
                if values.get(key) is not None:
                    wanted[key].add(values[key])

        taken: dict[str, set] = {}
        for key, candidates in wanted.items():
            attr = getattr(self.model, key)
            found: set = set()
            pending = list(candidates)
            for i in range(0, len(pending), _LOOKUP_CHUNK):
                chunk = pending[i:i + _LOOKUP_CHUNK]
                found.update(self.session.scalars(select(attr).where(attr.in_(chunk))))
            taken[key] = found
        return taken

    def _write(self, records: list[dict], options: ImportOptions) -> None:
        try:
            if options.on_duplicate_key_ignore or options.on_duplicate_key_update:
                self.session.execute(self._upsert(records, options))
            else:
                self.session.execute(insert(self.model), records)
            self.session.flush()
        except DBAPIError as exc:
            logger.error(f"Bulk insert into {self.model.__tablename__} failed: {exc.orig}")
            raise PersistenceConstraintError(_db_message(exc)) from exc

    def _upsert(self, records: list[dict], options: ImportOptions):
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as dialect_insert
        elif dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as dialect_insert
        elif dialect in ("mysql", "mariadb"):
            from sqlalchemy.dialects.mysql import insert as dialect_insert
        else:
            raise PersistenceConstraintError(
                f"duplicate key policies are not supported on {dialect}"
            )

        # multi-VALUES needs the same keys in every record
        keys = sorted(set().union(*records))
        stmt = dialect_insert(self.model).values(
            [{k: rec.get(k) for k in keys} for rec in records]
        )
        mysql = dialect in ("mysql", "mariadb")

        if options.on_duplicate_key_ignore:
            return stmt.prefix_with("IGNORE") if mysql else stmt.on_conflict_do_nothing()

        update = list(options.on_duplicate_key_update)
        if options.timestamps and "updated_at" in self._columns and "updated_at" not in update:
            update.append("updated_at")
        for key in update:
            if key not in self._columns:
                raise PersistenceConstraintError(
                    f"unknown attribute '{key}' for {self.model.__name__}."
                )
        if mysql:
            return stmt.on_duplicate_key_update({k: stmt.inserted[k] for k in update})
        return stmt.on_conflict_do_update(
            index_elements=self._conflict_target(),
            set_={k: stmt.excluded[k] for k in update},
        )

    def _conflict_target(self) -> list[str]:
        table = self.model.__table__
        for idx in sorted(table.indexes, key=lambda i: i.name or ""):
            if idx.unique:
                return [c.name for c in idx.columns]
        for cons in table.constraints:
            if isinstance(cons, UniqueConstraint):
                return [c.name for c in cons.columns]
        return [c.name for c in table.primary_key.columns]


def _validates(column, kind: str) -> bool:
    return kind in column.info.get("validates", ())


def _db_message(exc: DBAPIError) -> str:
    return str(exc.orig) if exc.orig is not None else str(exc)
