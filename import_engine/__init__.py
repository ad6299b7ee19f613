"""
import_engine - Batch CSV import pipeline.

Public API:
    run_import(model, file_content, **options) → ImportResult
    Importer(backend, **options).import_file(content) → ImportResult
"""

from import_engine.importer import Importer, run_import                  # noqa: F401
from import_engine.backend import BulkBackend, SQLAlchemyBulkBackend     # noqa: F401
from import_engine.callbacks import Abort, ImportRun                     # noqa: F401
from import_engine.options import CsvOptions, ImportOptions              # noqa: F401
from import_engine.report import (                                       # noqa: F401
    BatchOutcome, ImportResult, ImportStatus, RowValidationFailure,
)
from import_engine.errors import (                                       # noqa: F401
    AbortImport, ConfigurationError, EmptyInputError, ImportEngineError,
    ParseError, PersistenceConstraintError,
)
