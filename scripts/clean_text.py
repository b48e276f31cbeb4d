"""
Repair OCR chyron text: escape artifacts and whitespace.

Chyron extracts carry text that was backslash-escaped upstream, e.g.
'Breaking\\u0020News', sometimes with a dangling backslash at the end of
the string. Cleaning runs three steps in this order:

    1. strip a trailing run of literal backslashes
    2. decode unicode escape sequences (\\uXXXX, \\xXX, \\n, ...)
    3. collapse whitespace runs into a single space

Step 1 has to come first: an unterminated escape at the end of the string
makes the decoder fail.

Usage:
    from scripts.clean_text import clean_text, load_and_clean

    clean_text("Breaking\\\\u0020News")   # 'Breaking News'
    records, report = load_and_clean(["data/2019-03-01.tsv"])
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from scripts.load_chyrons import ChyronRecord, load_chyron_files


_TRAILING_BACKSLASH_RE = re.compile(r"\\+$")
_WHITESPACE_RE = re.compile(r"\s+")

MAX_REPORTED_ERRORS = 5


class CleaningError(ValueError):
    """Text whose escape sequences cannot be decoded."""


def strip_trailing_backslashes(text: str) -> str:
    return _TRAILING_BACKSLASH_RE.sub("", text)


def decode_unicode_escapes(text: str) -> str:
    """Decode textual escape sequences into the characters they name.

    Characters outside ASCII are first turned into escapes themselves so
    that text which is already partly decoded survives the round trip.
    """
    try:
        return text.encode("ascii", "backslashreplace").decode("unicode_escape")
    except UnicodeDecodeError as e:
        raise CleaningError(f"malformed escape sequence in {text[:60]!r}: {e.reason}") from e


def squish_whitespace(text: str) -> str:
    """Collapse runs of whitespace (newlines, tabs, ...) into one space."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_text(text: str) -> str:
    """Run the three cleaning steps in order. Raises CleaningError."""
    text = strip_trailing_backslashes(text)
    text = decode_unicode_escapes(text)
    return squish_whitespace(text)


# ---------------------------------------------------------------------------
# Batch cleaning
# ---------------------------------------------------------------------------

@dataclass
class CleanResult:
    records: list = field(default_factory=list)
    failed: int = 0


def clean_records(records: Iterable[ChyronRecord]) -> CleanResult:
    """Clean every record's text, returning new records.

    A record whose escapes cannot be decoded is passed through with its
    original text and counted in CleanResult.failed; the batch carries on.
    """
    result = CleanResult()

    for record in records:
        try:
            cleaned = dataclasses.replace(record, text=clean_text(record.text))
        except CleaningError as e:
            result.failed += 1
            if result.failed <= MAX_REPORTED_ERRORS:
                print(f"  ⚠ {record.station} {record.timestamp}: {e}")
            cleaned = record
        result.records.append(cleaned)

    if result.failed > MAX_REPORTED_ERRORS:
        print(f"  ⚠ {result.failed} records kept their raw text (undecodable escapes)")

    return result


def load_and_clean(paths: Iterable[str | Path], progress: bool = True) -> tuple[list, dict]:
    """Load extracts and clean them in one go.

    Returns the cleaned records and a report dict suitable for embedding in
    experiment results.
    """
    ingest = load_chyron_files(paths, progress=progress)
    cleaned = clean_records(ingest.records)

    report = {
        "records": len(cleaned.records),
        "skipped_rows": ingest.skipped_rows,
        "failed_files": [{"path": p, "reason": r} for p, r in ingest.failed_files],
        "cleaning_failures": cleaned.failed,
    }
    return cleaned.records, report
