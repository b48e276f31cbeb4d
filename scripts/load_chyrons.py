"""
Load TV news chyron extracts into a unified record set.

Each input file is a daily extract: newline-delimited, tab-separated, no
header row, five positional fields:

    timestamp   station   duration   clip_id   text
    2019-03-01 00:00:05\tCNNW\t12\tCNNW_20190301_000000_Cuomo_Prime_Time\tBreaking\\u0020News

The text field is raw OCR output and may still carry backslash-escaped
unicode; see scripts/clean_text.py for repairing it.

Usage:
    from scripts.load_chyrons import load_chyron_files

    result = load_chyron_files(["data/2019-03-01.tsv", "data/2019-03-02.tsv"])
    print(len(result.records), result.skipped_rows)

    # Command-line summary
    python scripts/load_chyrons.py data/*.tsv
"""

from __future__ import annotations

import argparse
import re
import sys
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional

from tqdm import tqdm


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")
_DURATION_RE = re.compile(r"^[0-9]+$")
_CLIP_PREFIX_RE = re.compile(r"^[A-Za-z0-9]+_\d{8}_\d{6}_(.+)$")

N_FIELDS = 5
MAX_REPORTED_ERRORS = 5


class ParseError(ValueError):
    """A row that does not follow the five-field chyron layout."""


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def program_from_clip_id(clip_id: str | None) -> str | None:
    """Extract a readable program name from an Internet Archive clip id.

    E.g. 'MSNBCW_20190301_020000_All_In_With_Chris_Hayes' →
         'All In With Chris Hayes'
    """
    if not clip_id:
        return None
    match = _CLIP_PREFIX_RE.match(clip_id)
    name = match.group(1) if match else clip_id
    return name.replace("_", " ").strip() or None


@dataclass(frozen=True)
class ChyronRecord:
    """One chyron caption as shown on screen."""
    timestamp: datetime
    station: str
    duration: int                 # seconds on screen
    clip_id: Optional[str]
    text: str

    @property
    def date(self) -> date:
        return self.timestamp.date()

    @property
    def program(self) -> Optional[str]:
        return program_from_clip_id(self.clip_id)


@dataclass
class IngestResult:
    """Records loaded from one or more files plus what was left behind."""
    records: list = field(default_factory=list)
    skipped_rows: int = 0
    failed_files: list = field(default_factory=list)   # (path, reason) pairs

    def extend(self, other: "IngestResult"):
        self.records.extend(other.records)
        self.skipped_rows += other.skipped_rows
        self.failed_files.extend(other.failed_files)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_timestamp(value: str) -> datetime:
    """Parse a 'YYYY-MM-DD HH:MM:SS' timestamp."""
    value = value.strip()
    if not _TIMESTAMP_RE.match(value):
        raise ParseError(f"timestamp {value!r} does not match YYYY-MM-DD HH:MM:SS")
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError as e:
        # Right shape, impossible value (month 13, Feb 30, ...)
        raise ParseError(f"invalid timestamp {value!r}: {e}") from e


def parse_duration(value: str) -> int:
    value = value.strip()
    if not _DURATION_RE.match(value):
        raise ParseError(f"duration {value!r} is not a non-negative integer")
    return int(value)


def parse_row(line: str) -> ChyronRecord:
    """Parse one tab-separated row into a ChyronRecord.

    The text is the last field, so any tabs inside it are kept.
    """
    fields = line.rstrip("\r\n").split("\t", N_FIELDS - 1)
    if len(fields) < N_FIELDS:
        raise ParseError(f"expected {N_FIELDS} tab-separated fields, got {len(fields)}")

    timestamp, station, duration, clip_id, text = fields
    station = station.strip()
    if not station:
        raise ParseError("empty station identifier")

    return ChyronRecord(
        timestamp=parse_timestamp(timestamp),
        station=station,
        duration=parse_duration(duration),
        clip_id=clip_id.strip() or None,
        text=text,
    )


# ---------------------------------------------------------------------------
# File loading
# ---------------------------------------------------------------------------

def load_chyron_file(path: str | Path) -> IngestResult:
    """Load a single extract, skipping (and counting) malformed rows.

    A file that cannot be opened is recorded in failed_files rather than
    raised, so one bad path does not lose the rest of a batch.
    """
    path = Path(path)
    result = IngestResult()

    try:
        f = open(path, "r", encoding="utf-8", errors="replace", newline="\n")
    except OSError as e:
        result.failed_files.append((str(path), str(e)))
        print(f"  ⚠ Cannot read {path}: {e}")
        return result

    with f:
        for line_no, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                result.records.append(parse_row(line))
            except ParseError as e:
                result.skipped_rows += 1
                if result.skipped_rows <= MAX_REPORTED_ERRORS:
                    print(f"  {path.name}:{line_no}: skipped row: {e}")

    if result.skipped_rows > MAX_REPORTED_ERRORS:
        print(f"  {path.name}: {result.skipped_rows} rows skipped in total")

    return result


def load_chyron_files(paths: Iterable[str | Path], progress: bool = True) -> IngestResult:
    """Load and concatenate several extracts into one record set."""
    paths = [Path(p) for p in paths]
    result = IngestResult()

    for path in tqdm(paths, desc="Loading chyron files", disable=not progress):
        result.extend(load_chyron_file(path))

    return result


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

def print_ingest_summary(result: IngestResult):
    """Print summary statistics for a loaded record set."""
    records = result.records

    print(f"\n{'='*60}")
    print(f"Ingestion Summary")
    print(f"{'='*60}")
    print(f"Records loaded:  {len(records):,}")
    print(f"Rows skipped:    {result.skipped_rows:,}")
    print(f"Files failed:    {len(result.failed_files)}")
    for path, reason in result.failed_files:
        print(f"  {path}: {reason}")

    if records:
        stations = Counter(r.station for r in records)
        print(f"\nStations:")
        for station, count in stations.most_common():
            print(f"  {station:>10}: {count:>8,}")

        timestamps = [r.timestamp for r in records]
        print(f"\nTime range:")
        print(f"  Earliest: {min(timestamps)}")
        print(f"  Latest:   {max(timestamps)}")
        print(f"  Days:     {len({r.date for r in records})}")

    print(f"{'='*60}\n")


def main():
    parser = argparse.ArgumentParser(description="Load and summarise chyron TSV extracts")
    parser.add_argument("files", nargs="+", help="Tab-separated chyron extract files")
    args = parser.parse_args()

    result = load_chyron_files(args.files)
    print_ingest_summary(result)

    if not result.records:
        sys.exit(1)


if __name__ == "__main__":
    main()
