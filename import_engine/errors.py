"""
import_engine.errors - Exception taxonomy of the import pipeline.

Row-level problems are never raised: they are collected as
RowValidationFailure records (see import_engine.report).  Everything
here terminates the run.
"""

from __future__ import annotations


class ImportEngineError(Exception):
    """Base class for fatal import errors."""


class ConfigurationError(ImportEngineError, ValueError):
    """Raised at construction time for unknown or invalid options."""


class ParseError(ImportEngineError):
    """Malformed delimited text; raised before anything is persisted."""

    def __init__(self, message: str, line: int | None = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


class EmptyInputError(ImportEngineError):
    """The source holds no data rows (empty or header-only file)."""

    def __init__(self, message: str = "File is empty, nothing to import"):
        super().__init__(message)


class PersistenceConstraintError(ImportEngineError):
    """
    Storage rejected a batch in a way validation did not catch
    (unique index race, unknown column, type mismatch).  The batch is
    rolled back; ``result`` holds what was committed before it.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.result = None


class AbortImport(Exception):
    """
    Raised from a callback to stop the whole run.  The message is shown
    to the user; batches committed before the abort stay committed.
    """

    def __init__(self, message: str = "Import aborted"):
        super().__init__(message)
        self.message = message
