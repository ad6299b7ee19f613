"""
import_engine.batch_importer - Persist one batch inside a transaction.

before_batch_import → insert → after_batch_import all run in the same
transaction scope, so a hook's own writes share the batch's fate.
"""

from __future__ import annotations

import logging

from import_engine.backend import BulkBackend
from import_engine.callbacks import CallbackDispatcher, ImportRun
from import_engine.options import ImportOptions
from import_engine.report import BatchOutcome, RowValidationFailure

logger = logging.getLogger(__name__)

ROLLED_BACK_MESSAGE = "was rolled back because another row of its batch failed"


def import_batch(
    backend: BulkBackend,
    rows: list,
    options: ImportOptions,
    dispatch: CallbackDispatcher,
    run: ImportRun,
) -> BatchOutcome:
    """
    Persist ``rows`` and return the outcome.

    With batch_transaction, any failed row rolls the whole batch back
    and every other row of the batch is reported as rolled back;
    after_batch_import is skipped for such a batch.
    AbortImport and PersistenceConstraintError propagate after the
    scope has been rolled back.
    """
    run.rows = rows
    run.batch_outcome = None

    with backend.transaction() as scope:
        dispatch("before_batch_import", run)
        outcome = backend.insert_batch(run.rows, options)
        if options.batch_transaction and outcome.failed:
            outcome = _roll_back(outcome, run.rows)
        run.batch_outcome = outcome
        if outcome.rolled_back:
            scope.mark_rollback()
        else:
            dispatch("after_batch_import", run)

    if outcome.rolled_back:
        logger.info(f"Batch {run.batch_number} rolled back: "
                    f"{len(outcome.failures)} row(s) not imported")
    return outcome


def _roll_back(outcome: BatchOutcome, rows: list) -> BatchOutcome:
    by_position = {f.position: f for f in outcome.failures}
    failures: list[RowValidationFailure] = []
    for pos, row in enumerate(rows):
        failure = by_position.get(pos)
        if failure is None:
            failure = RowValidationFailure(
                line=getattr(row, "line", 0), row=dict(row), position=pos,
                errors=[("base", f"Row {ROLLED_BACK_MESSAGE}")], rolled_back=True,
            )
        failures.append(failure)
    return BatchOutcome(rows=outcome.rows, inserted=0, failures=failures, rolled_back=True)
