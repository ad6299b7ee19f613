"""
import_engine.batching - Group parsed rows into fixed-size batches.
"""

from __future__ import annotations

from typing import Iterable, Iterator, TypeVar

T = TypeVar("T")


def batched(rows: Iterable[T], batch_size: int) -> Iterator[list[T]]:
    """
    Yield lists of ``batch_size`` rows in source order; the last list
    may be shorter.  Nothing is yielded for an empty source.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    buffer: list[T] = []
    for row in rows:
        buffer.append(row)
        if len(buffer) == batch_size:
            yield buffer
            buffer = []
    # last batch smaller than batch_size
    if buffer:
        yield buffer
