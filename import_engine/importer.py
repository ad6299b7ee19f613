"""
import_engine.importer - Top-level orchestrator.

Coordinates csv_parser → batching → batch_importer (with callbacks)
and aggregates everything into an ImportResult.

Run states: idle → importing → completed | aborted | failed.
Fatal problems (ParseError, EmptyInputError, PersistenceConstraintError)
are raised; an abort from a callback returns the partial result.
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Optional, Union

from db.engine import session_scope
from import_engine.backend import BulkBackend, SQLAlchemyBulkBackend
from import_engine.batch_importer import import_batch
from import_engine.batching import batched
from import_engine.callbacks import CallbackDispatcher, ImportRun
from import_engine.csv_parser import decode, iter_rows, scan
from import_engine.errors import AbortImport, EmptyInputError, PersistenceConstraintError
from import_engine.options import ImportOptions
from import_engine.report import ImportResult, ImportStatus

logger = logging.getLogger(__name__)

Source = Union[str, bytes, BinaryIO]


class Importer:
    """
    One configured import pipeline.  Options are validated here, so a
    bad option fails before any file is read.  Each import_file() call
    is an independent run with its own ImportResult.
    """

    def __init__(
        self,
        backend: BulkBackend,
        options: Union[ImportOptions, dict, None] = None,
        **kwargs: Any,
    ):
        self.backend = backend
        if isinstance(options, ImportOptions) and not kwargs:
            self.options = options
        else:
            self.options = ImportOptions.resolve(options, **kwargs)
        self._dispatch = CallbackDispatcher(self.options)

    def import_file(
        self,
        source: Source,
        *,
        encoding: Optional[str] = None,
        context: Optional[dict] = None,
    ) -> ImportResult:
        """
        Import ``source`` (bytes, text, or a binary file object).

        Raises
        ------
        ParseError
            The text is malformed; nothing was persisted.
        EmptyInputError
            No data rows; nothing was persisted.
        PersistenceConstraintError
            Storage rejected a batch; ``exc.result`` holds the partial result.
        """
        text = decode(_read(source), encoding)
        csv_options = self.options.csv_options

        # Full pass first: malformed or empty input fails before any write
        row_count = scan(text, csv_options)
        if row_count == 0:
            raise EmptyInputError()

        result = ImportResult()
        run = ImportRun(options=self.options, result=result, context=dict(context or {}))
        logger.info(f"Importing {row_count} row(s) in batches of {self.options.batch_size}")

        try:
            self._dispatch("before_import", run)
            for number, rows in enumerate(
                batched(iter_rows(text, csv_options), self.options.batch_size), start=1
            ):
                run.batch_number = number
                outcome = import_batch(self.backend, rows, self.options, self._dispatch, run)
                result.add(outcome, len(rows))
                logger.debug(f"Batch {number}: {len(rows)} row(s), "
                             f"{len(outcome.failures)} failed")
            self._dispatch("after_import", run)
        except AbortImport as exc:
            logger.warning(f"Import aborted after {result.batches} batch(es): {exc.message}")
            result.status = ImportStatus.ABORTED
            result.message = exc.message
            return result
        except PersistenceConstraintError as exc:
            logger.error(f"Import failed in batch {run.batch_number}: {exc}")
            exc.result = result
            raise

        result.status = ImportStatus.COMPLETED
        logger.info(f"Import done: {result.success_count} imported, "
                    f"{result.failure_count} failed / {result.total} rows")
        return result


def run_import(
    model: type,
    source: Source,
    *,
    options: Union[ImportOptions, dict, None] = None,
    encoding: Optional[str] = None,
    context: Optional[dict] = None,
    **kwargs: Any,
) -> ImportResult:
    """
    Import a CSV blob into ``model``'s table with a fresh session.

    Parameters
    ----------
    model : SQLAlchemy declarative model to insert into
    source : raw CSV (bytes, str or binary file object)
    options : resolved ImportOptions, or a dict of option keywords
    encoding : declared encoding of ``source`` when it is bytes
    context : extra data handed to callbacks as ``run.context``
    kwargs : more option keywords

    Returns
    -------
    ImportResult with per-row failure details
    """
    if not isinstance(options, ImportOptions) or kwargs:
        options = ImportOptions.resolve(options, **kwargs)

    with session_scope() as session:
        importer = Importer(SQLAlchemyBulkBackend(session, model), options)
        return importer.import_file(source, encoding=encoding, context=context)


def _read(source: Source) -> str | bytes:
    if isinstance(source, (str, bytes)):
        return source
    try:
        return source.read()
    finally:
        close = getattr(source, "close", None)
        if close is not None:
            close()
