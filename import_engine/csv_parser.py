"""
import_engine.csv_parser - Decoding and lazy row parsing.

Responsibilities:
  • BOM removal and decoding with a declared encoding
  • Header normalisation ("Last name" → last_name)
  • Lazy iteration of Row dicts, blank lines skipped
  • Turning malformed CSV into ParseError with a line number
"""

from __future__ import annotations

import codecs
import csv
import io
import re
from typing import Iterator, Optional

import config
from import_engine.errors import ConfigurationError, ParseError
from import_engine.options import CsvOptions

_UTF8_BOM = b"\xef\xbb\xbf"

_CAMEL_LOWER = re.compile(r"([a-z\d])([A-Z])")
_CAMEL_UPPER = re.compile(r"([A-Z]+)([A-Z][a-z])")
_NON_WORD    = re.compile(r"[^\w\s]+")
_SPACES      = re.compile(r"\s+")


class Row(dict):
    """
    One parsed record: normalised header (or column index) → value.
    ``line`` is the source line the record ended on.
    """

    __slots__ = ("line",)

    def __init__(self, *args, line: int = 0, **kwargs):
        super().__init__(*args, **kwargs)
        self.line = line


def decode(raw: str | bytes, encoding: Optional[str] = None) -> str:
    """
    Turn uploaded content into text.  ``encoding`` is the declared tag
    (detection is the caller's job); a UTF-8 BOM always wins.
    """
    if isinstance(raw, str):
        return raw[1:] if raw.startswith("\ufeff") else raw

    enc = encoding or config.IMPORT_DEFAULT_ENCODING
    try:
        codecs.lookup(enc)
    except LookupError:
        raise ConfigurationError(f"Unknown encoding: {enc!r}") from None

    if raw.startswith(_UTF8_BOM):
        raw, enc = raw[len(_UTF8_BOM):], "utf-8"
    try:
        return raw.decode(enc)
    except UnicodeDecodeError as exc:
        raise ParseError(f"file is not valid {enc}: {exc.reason}") from exc


def normalize_header(name: str) -> str:
    """Header → lookup key: snake_case, case-folded, punctuation dropped."""
    key = _CAMEL_UPPER.sub(r"\1_\2", name)
    key = _CAMEL_LOWER.sub(r"\1_\2", key)
    key = _NON_WORD.sub("", key.casefold())
    return _SPACES.sub("_", key.strip())


def iter_rows(text: str, csv_options: CsvOptions) -> Iterator[Row]:
    """
    Yield Rows lazily.  Each call starts from the top of ``text``.
    Raises ParseError on malformed input or a column-count mismatch.
    """
    reader = csv.reader(
        io.StringIO(text, newline=""),
        delimiter=csv_options.delimiter,
        quotechar=csv_options.quotechar,
        strict=True,
    )
    headers: list | None = None
    if csv_options.fixed_headers is not None:
        headers = list(csv_options.fixed_headers)
    converter = csv_options.header_converter or normalize_header

    while True:
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            raise ParseError(str(exc), line=reader.line_num) from exc

        if _is_blank(fields):
            continue

        if csv_options.headers is False:
            yield Row(enumerate(fields), line=reader.line_num)
            continue

        if headers is None:
            headers = [converter(h) for h in fields]
            dupes = sorted({h for h in headers if headers.count(h) > 1})
            if dupes:
                raise ParseError(f"duplicate header(s): {', '.join(map(str, dupes))}",
                                 line=reader.line_num)
            continue

        if len(fields) != len(headers):
            raise ParseError(
                f"expected {len(headers)} fields, got {len(fields)}",
                line=reader.line_num,
            )
        yield Row(zip(headers, fields), line=reader.line_num)


def scan(text: str, csv_options: CsvOptions) -> int:
    """Validate the whole text and return the number of data rows."""
    return sum(1 for _ in iter_rows(text, csv_options))


def _is_blank(fields: list[str]) -> bool:
    return not fields or all(not f.strip() for f in fields)
