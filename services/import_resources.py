"""
services.import_resources - Registry of importable resources.

A resource couples a model with its import options.  Options are
resolved at registration, so an unknown option fails at startup
instead of on the first upload.  Both the HTML upload page and the
JSON API look resources up here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import config
from import_engine import ImportOptions, ImportResult, run_import

_RESOURCES: dict[str, "ImportResource"] = {}


@dataclass(frozen=True)
class ImportResource:
    name: str                       # URL segment, e.g. "authors"
    model: type
    options: ImportOptions
    singular: str
    plural: str
    hint: str = ""
    # Callable returning extra callback context for one upload
    context: Optional[Callable[[], dict]] = field(default=None, compare=False)

    def run(self, content: Any, encoding: Optional[str] = None) -> ImportResult:
        ctx = self.context() if self.context else None
        return run_import(self.model, content, options=self.options,
                          encoding=encoding, context=ctx)

    def flash_messages(self, result: ImportResult) -> list[tuple[str, str]]:
        return result.summary(self.singular, self.plural,
                              limit=config.MAX_FAILED_MESSAGES)


def register_resource(
    name: str,
    model: type,
    *,
    singular: Optional[str] = None,
    plural: Optional[str] = None,
    hint: str = "",
    context: Optional[Callable[[], dict]] = None,
    **options: Any,
) -> ImportResource:
    """Register ``model`` under ``name``.  Raises ConfigurationError on bad options."""
    resolved = ImportOptions.resolve(options)
    singular = singular or model.__name__.lower()
    resource = ImportResource(
        name=name, model=model, options=resolved,
        singular=singular, plural=plural or f"{singular}s",
        hint=hint, context=context,
    )
    _RESOURCES[name] = resource
    return resource


def get_resource(name: str) -> Optional[ImportResource]:
    return _RESOURCES.get(name)


def all_resources() -> list[ImportResource]:
    return sorted(_RESOURCES.values(), key=lambda r: r.name)


def clear_resources() -> None:
    _RESOURCES.clear()
