"""
import_engine.options - Import configuration, resolved once.

ImportOptions.resolve() turns the keyword options a resource is
registered with into a frozen value.  Unknown keys are rejected here,
long before any file is opened.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Mapping, Optional

import config
from import_engine.errors import ConfigurationError

CALLBACK_NAMES = (
    "before_import",
    "after_import",
    "before_batch_import",
    "after_batch_import",
)

# Accepted option keys  →  ImportOptions attribute
OPTION_KEYS = frozenset({
    "validate",
    "validate_uniqueness",
    "on_duplicate_key_update",
    "on_duplicate_key_ignore",
    "ignore",
    "timestamps",
    "batch_size",
    "batch_transaction",
    "csv_options",
    *CALLBACK_NAMES,
})

# csv_options aliases kept for the Ruby-CSV style spelling
_CSV_ALIASES = {
    "col_sep": "delimiter",
    "quote_char": "quotechar",
    "header_converters": "header_converter",
}


@dataclass(frozen=True)
class CsvOptions:
    delimiter: str = ","
    quotechar: str = '"'
    # True → header row read from file, False → positional keys,
    # tuple → fixed header names (first file line is data)
    headers: bool | tuple[str, ...] = True
    # None → import_engine.csv_parser.normalize_header
    header_converter: Optional[Callable[[str], str]] = None

    @classmethod
    def resolve(cls, raw: Mapping[str, Any] | "CsvOptions" | None) -> "CsvOptions":
        if raw is None:
            return cls()
        if isinstance(raw, CsvOptions):
            return raw
        if not isinstance(raw, Mapping):
            raise ConfigurationError(
                f"csv_options must be a mapping, got {type(raw).__name__}"
            )

        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in raw.items():
            name = _CSV_ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown csv option: {key!r}")
            # Blank values fall back to defaults
            if value is None or value == "":
                continue
            values[name] = value

        for name in ("delimiter", "quotechar"):
            if name in values:
                val = values[name]
                if not isinstance(val, str) or len(val) != 1:
                    raise ConfigurationError(
                        f"csv option {name!r} must be a single character, got {val!r}"
                    )

        if "headers" in values:
            headers = values["headers"]
            if isinstance(headers, (list, tuple)):
                if not headers:
                    raise ConfigurationError("csv option 'headers' list is empty")
                values["headers"] = tuple(str(h) for h in headers)
            elif not isinstance(headers, bool):
                raise ConfigurationError(
                    "csv option 'headers' must be True, False or a list of names"
                )

        conv = values.get("header_converter")
        if conv is not None and not callable(conv):
            raise ConfigurationError("csv option 'header_converter' must be callable")

        return cls(**values)

    @property
    def fixed_headers(self) -> tuple[str, ...] | None:
        return self.headers if isinstance(self.headers, tuple) else None


@dataclass(frozen=True)
class ImportOptions:
    validate: bool = True
    validate_uniqueness: bool = True
    on_duplicate_key_update: tuple[str, ...] | None = None
    on_duplicate_key_ignore: bool = False
    timestamps: bool = True
    batch_size: int = 1000
    batch_transaction: bool = False
    csv_options: CsvOptions = field(default_factory=CsvOptions)
    before_import: Optional[Callable] = None
    after_import: Optional[Callable] = None
    before_batch_import: Optional[Callable] = None
    after_batch_import: Optional[Callable] = None

    @classmethod
    def resolve(cls, options: Mapping[str, Any] | "ImportOptions" | None = None,
                **kwargs) -> "ImportOptions":
        """
        Validate a raw option mapping (and/or keyword options) and
        return the frozen configuration.  Raises ConfigurationError.
        """
        if isinstance(options, ImportOptions):
            raw = {f.name: getattr(options, f.name) for f in fields(options)}
        else:
            raw = dict(options or {})
        raw.update(kwargs)

        unknown = sorted(set(raw) - OPTION_KEYS)
        if unknown:
            raise ConfigurationError(f"Unknown import option(s): {', '.join(unknown)}")

        values: dict[str, Any] = {
            "batch_size": _batch_size(raw.get("batch_size", config.IMPORT_BATCH_SIZE)),
            "csv_options": CsvOptions.resolve(raw.get("csv_options")),
        }

        for name in ("validate", "validate_uniqueness", "timestamps", "batch_transaction"):
            if name in raw and raw[name] is not None:
                values[name] = bool(raw[name])

        ignore = bool(raw.get("on_duplicate_key_ignore")) or bool(raw.get("ignore"))
        update = raw.get("on_duplicate_key_update")
        if update is not None:
            if isinstance(update, str) or not isinstance(update, (list, tuple)):
                raise ConfigurationError(
                    "on_duplicate_key_update must be a list of column names"
                )
            update = tuple(str(col) for col in update)
        if ignore and update:
            raise ConfigurationError(
                "on_duplicate_key_update and on_duplicate_key_ignore are mutually exclusive"
            )
        values["on_duplicate_key_ignore"] = ignore
        values["on_duplicate_key_update"] = update or None

        for name in CALLBACK_NAMES:
            cb = raw.get(name)
            if cb is not None and not callable(cb):
                raise ConfigurationError(f"Callback {name!r} must be callable")
            values[name] = cb

        return cls(**values)


def _batch_size(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"batch_size must be a positive integer, got {value!r}")
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"batch_size must be a positive integer, got {value!r}") from None
    if size < 1:
        raise ConfigurationError(f"batch_size must be a positive integer, got {value!r}")
    return size
