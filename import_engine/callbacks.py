"""
import_engine.callbacks - Hook points around the import run.

Hooks are plain callables taking the ImportRun.  A hook stops the whole
run by raising AbortImport, or by returning Abort("message").
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from import_engine.errors import AbortImport
from import_engine.options import CALLBACK_NAMES, ImportOptions
from import_engine.report import BatchOutcome, ImportResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Abort:
    """Return value a hook may use instead of raising AbortImport."""
    message: str = "Import aborted"


@dataclass
class ImportRun:
    """
    State a hook sees.  ``rows`` is the current batch and may be edited
    in place by the per-batch hooks; ``context`` carries caller data
    (e.g. the author every imported post belongs to).
    """

    options: ImportOptions
    result: ImportResult
    context: dict = field(default_factory=dict)
    rows: list = field(default_factory=list)
    batch_number: int = 0
    batch_outcome: Optional[BatchOutcome] = None

    def batch_replace(self, key: Any, mapping: Mapping) -> None:
        """Rewrite ``row[key]`` through ``mapping`` for every row of the batch."""
        for row in self.rows:
            value = row.get(key)
            if value in mapping:
                row[key] = mapping[value]


class CallbackDispatcher:

    def __init__(self, options: ImportOptions):
        self._hooks = {name: getattr(options, name) for name in CALLBACK_NAMES}

    def __call__(self, name: str, run: ImportRun) -> None:
        hook = self._hooks.get(name)
        if hook is None:
            return
        logger.debug(f"Running {name} callback")
        outcome = hook(run)
        if isinstance(outcome, Abort):
            raise AbortImport(outcome.message)
