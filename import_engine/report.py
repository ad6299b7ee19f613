"""
import_engine.report - Structured result of a CSV import run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def humanize(attribute: Any) -> str:
    """last_name → "Last name" (the way messages name attributes)."""
    text = str(attribute).replace("_", " ").strip()
    if text.endswith(" id"):
        text = text[:-3]
    return text[:1].upper() + text[1:]


@dataclass
class RowValidationFailure:
    """One row that was not persisted, with per-attribute messages."""

    line: int
    row: dict
    errors: list[tuple[str, str]] = field(default_factory=list)   # [(attribute, message)]
    position: int = 0                                               # index within its batch
    rolled_back: bool = False

    @property
    def messages(self) -> list[str]:
        return [
            msg if attr == "base" else f"{humanize(attr)} {msg}"
            for attr, msg in self.errors
        ]

    @property
    def reason(self) -> str:
        return ", ".join(self.messages)

    def describe(self) -> str:
        """Full message plus the offending value, e.g. "Last name has already been taken - Doe"."""
        parts = []
        for (attr, _msg), text in zip(self.errors, self.messages):
            value = None if attr == "base" else self.row.get(attr)
            parts.append(f"{text} - {value}" if value not in (None, "") else text)
        return ", ".join(parts)

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "reason": self.reason,
            "errors": [{"attribute": a, "message": m} for a, m in self.errors],
            "rolled_back": self.rolled_back,
        }


@dataclass
class BatchOutcome:
    rows: int = 0
    inserted: int = 0
    failures: list[RowValidationFailure] = field(default_factory=list)
    rolled_back: bool = False

    @property
    def failed(self) -> bool:
        return bool(self.failures)


class ImportStatus(str, Enum):
    PENDING   = "pending"
    COMPLETED = "completed"
    ABORTED   = "aborted"


@dataclass
class ImportResult:
    total: int = 0
    batches: int = 0
    failures: list[RowValidationFailure] = field(default_factory=list)
    status: ImportStatus = ImportStatus.PENDING
    message: str | None = None

    def add(self, outcome: BatchOutcome, row_count: int) -> None:
        self.total += row_count
        self.batches += 1
        self.failures.extend(outcome.failures)

    # ── Read-only totals ───────────────────────────────────────────────

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def rolled_back_count(self) -> int:
        return sum(1 for f in self.failures if f.rolled_back)

    @property
    def success_count(self) -> int:
        return self.total - self.failure_count

    @property
    def aborted(self) -> bool:
        return self.status is ImportStatus.ABORTED

    @property
    def empty(self) -> bool:
        return self.total == 0

    # ── Rendering ──────────────────────────────────────────────────────

    def failed_message(self, limit: int | None = None) -> str:
        failures = self._rejected()
        if limit is not None:
            failures = failures[:limit]
        return " ; ".join(f.describe() for f in failures)

    def summary(self, singular: str, plural: str | None = None,
                limit: int | None = None) -> list[tuple[str, str]]:
        """
        Flash-ready (category, message) pairs, e.g.
        ("success", "Successfully imported 2 authors").
        """
        plural = plural or f"{singular}s"

        def items(n: int) -> str:
            return f"{n} {singular if n == 1 else plural}"

        out: list[tuple[str, str]] = []
        if self.aborted:
            out.append(("danger", f"Error: {self.message}"))
        if self.success_count:
            out.append(("success", f"Successfully imported {items(self.success_count)}"))
        rejected = self._rejected()
        if rejected:
            out.append(("danger", f"Failed to import {items(len(rejected))}: "
                                  f"{self.failed_message(limit)}"))
        if self.rolled_back_count and len(rejected) < self.failure_count:
            out.append(("warning", f"Rolled back {items(self.rolled_back_count)} "
                                   f"together with their failed batch"))
        if not out:
            out.append(("warning", "Nothing was imported"))
        return out

    def _rejected(self) -> list[RowValidationFailure]:
        # rows that failed on their own; rolled-back siblings only when nothing else
        return [f for f in self.failures if not f.rolled_back] or self.failures

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "message": self.message,
            "total": self.total,
            "batches": self.batches,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "rolled_back_count": self.rolled_back_count,
            "failures": [f.to_dict() for f in self.failures],
        }
