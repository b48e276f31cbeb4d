"""
Time-Bucketed Coverage of a Topic Per Station.

Buckets chyrons by station and fixed time interval, and counts how many
(and how many seconds of) them mention a pattern against the full set.
Every station gets a row for every bucket in the date range, so hours
with no coverage appear as zeros instead of gaps.

Usage:
    python experiments/time_buckets.py data/*.tsv --pattern "brexit" --output results/
    python experiments/time_buckets.py data/*.tsv --pattern "mueller report" --literal \\
        --interval-hours 1 --rebucket-hours 2 --start 2019-03-15 --end 2019-03-31
"""

from __future__ import annotations

import argparse
import json
import re
import sys
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from pathlib import Path
from typing import Callable, Iterable, Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from scripts.clean_text import load_and_clean


EPOCH = datetime(1970, 1, 1)
END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class TimeBucket:
    station: str
    start: datetime
    matched_count: int = 0
    matched_duration: int = 0
    total_count: int = 0
    total_duration: int = 0


# ═══════════════════════════════════════════════════════
# Matching & Flooring
# ═══════════════════════════════════════════════════════

def make_text_matcher(pattern: str, regex: bool = True,
                      ignore_case: bool = True) -> Callable[[str], bool]:
    """Build a text predicate. An invalid regex raises re.error here."""
    if regex:
        compiled = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
        return lambda text: compiled.search(text) is not None

    if ignore_case:
        needle = pattern.casefold()
        return lambda text: needle in text.casefold()
    return lambda text: pattern in text


def _check_interval(interval: timedelta):
    if interval <= timedelta(0):
        raise ValueError(f"bucket interval must be positive, got {interval}")


def floor_timestamp(ts: datetime, interval: timedelta) -> datetime:
    """Floor ts onto an interval grid anchored at the Unix epoch."""
    _check_interval(interval)
    return ts - (ts - EPOCH) % interval


def bucket_starts(start: datetime, end: datetime, interval: timedelta) -> list[datetime]:
    """Every bucket start from floor(start) to floor(end), inclusive."""
    current = floor_timestamp(start, interval)
    last = floor_timestamp(end, interval)
    starts = []
    while current <= last:
        starts.append(current)
        current += interval
    return starts


# ═══════════════════════════════════════════════════════
# Aggregation
# ═══════════════════════════════════════════════════════

def bucket_records(records: Iterable, predicate: Callable[[str], bool], interval: timedelta,
                   start: datetime, end: datetime,
                   stations: Optional[Iterable[str]] = None) -> list[TimeBucket]:
    """Matched vs total counts and durations per (station, bucket).

    The output is the full stations x buckets cross product, zero-filled,
    sorted by station then bucket start. Records outside the range are
    ignored. Stations default to every station present in records.
    """
    _check_interval(interval)
    if end < start:
        raise ValueError(f"end {end} is before start {start}")

    records = list(records)
    starts = bucket_starts(start, end, interval)
    range_end = starts[-1] + interval

    matched = defaultdict(lambda: [0, 0])
    total = defaultdict(lambda: [0, 0])
    seen_stations = set()

    for record in records:
        seen_stations.add(record.station)
        key_start = floor_timestamp(record.timestamp, interval)
        if key_start < starts[0] or key_start >= range_end:
            continue
        key = (record.station, key_start)
        total[key][0] += 1
        total[key][1] += record.duration
        if predicate(record.text):
            matched[key][0] += 1
            matched[key][1] += record.duration

    stations = sorted(set(stations) if stations is not None else seen_stations)

    buckets = []
    for station in stations:
        for bucket_start in starts:
            key = (station, bucket_start)
            m_count, m_duration = matched.get(key, (0, 0))
            t_count, t_duration = total.get(key, (0, 0))
            buckets.append(TimeBucket(station, bucket_start, m_count, m_duration, t_count, t_duration))

    return buckets


def rebucket(buckets: Iterable[TimeBucket], interval: timedelta) -> list[TimeBucket]:
    """Sum finer buckets into coarser interval windows."""
    _check_interval(interval)
    sums = defaultdict(lambda: [0, 0, 0, 0])

    for bucket in buckets:
        acc = sums[(bucket.station, floor_timestamp(bucket.start, interval))]
        acc[0] += bucket.matched_count
        acc[1] += bucket.matched_duration
        acc[2] += bucket.total_count
        acc[3] += bucket.total_duration

    return [TimeBucket(station, start, *acc) for (station, start), acc in sorted(sums.items())]


def coverage_share(bucket: TimeBucket, by: str = "duration") -> Optional[float]:
    """Matched share of a bucket; None when the bucket holds no records."""
    if by == "duration":
        matched, total = bucket.matched_duration, bucket.total_duration
    elif by == "count":
        matched, total = bucket.matched_count, bucket.total_count
    else:
        raise ValueError(f"by must be 'duration' or 'count', got {by!r}")
    if total == 0:
        return None
    return matched / total


# ═══════════════════════════════════════════════════════
# Main
# ═══════════════════════════════════════════════════════

def _parse_date_arg(value: str, end_of_day: bool = False) -> datetime:
    """Parse a --start/--end value. A bare date as an end covers that whole day."""
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    try:
        day = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        pass
    else:
        return datetime.combine(day.date(), END_OF_DAY) if end_of_day else day
    raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD[ HH:MM:SS]")


def _parse_end_arg(value: str) -> datetime:
    return _parse_date_arg(value, end_of_day=True)


def station_totals(buckets: list[TimeBucket]) -> dict:
    totals = defaultdict(lambda: {"matched_count": 0, "matched_duration": 0,
                                  "total_count": 0, "total_duration": 0})
    for b in buckets:
        t = totals[b.station]
        t["matched_count"] += b.matched_count
        t["matched_duration"] += b.matched_duration
        t["total_count"] += b.total_count
        t["total_duration"] += b.total_duration
    for t in totals.values():
        t["duration_share"] = (round(t["matched_duration"] / t["total_duration"], 6)
                               if t["total_duration"] else None)
    return dict(totals)


def main():
    parser = argparse.ArgumentParser(description="Time-bucketed topic coverage per station")
    parser.add_argument("files", nargs="+", help="Tab-separated chyron extract files")
    parser.add_argument("--output", type=str, default="results")
    parser.add_argument("--pattern", type=str, required=True, help="Text to match in chyrons")
    parser.add_argument("--literal", action="store_true", help="Treat the pattern as plain text")
    parser.add_argument("--case-sensitive", action="store_true")
    parser.add_argument("--interval-hours", type=float, default=1.0)
    parser.add_argument("--rebucket-hours", type=float, default=None,
                        help="Re-aggregate into coarser windows (e.g. 2)")
    parser.add_argument("--start", type=_parse_date_arg, default=None)
    parser.add_argument("--end", type=_parse_end_arg, default=None)
    args = parser.parse_args()

    try:
        predicate = make_text_matcher(args.pattern, regex=not args.literal,
                                      ignore_case=not args.case_sensitive)
    except re.error as e:
        parser.error(f"invalid --pattern: {e}")

    if args.interval_hours <= 0:
        parser.error(f"--interval-hours must be positive, got {args.interval_hours}")
    if args.rebucket_hours is not None and args.rebucket_hours <= 0:
        parser.error(f"--rebucket-hours must be positive, got {args.rebucket_hours}")
    if args.start and args.end and args.end < args.start:
        parser.error(f"--end {args.end} is before --start {args.start}")

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("Loading chyrons...")
    records, report = load_and_clean(args.files)
    print(f"  {report['records']:,} records loaded, {report['skipped_rows']:,} rows skipped")
    if not records:
        print("  ✗ No records to analyse")
        sys.exit(1)

    start = args.start or min(r.timestamp for r in records)
    end = args.end or max(r.timestamp for r in records)
    interval = timedelta(hours=args.interval_hours)

    print(f"\nBucketing {start} → {end} every {interval}...")
    buckets = bucket_records(records, predicate, interval, start, end)
    if args.rebucket_hours is not None:
        buckets = rebucket(buckets, timedelta(hours=args.rebucket_hours))
        print(f"  Re-bucketed into {args.rebucket_hours}h windows")
    print(f"  {len(buckets):,} buckets")

    totals = station_totals(buckets)
    for station, t in sorted(totals.items()):
        share = t["duration_share"]
        share_str = f"{share:.2%}" if share is not None else "no data"
        print(f"  {station}: {t['matched_count']:,}/{t['total_count']:,} chyrons, "
              f"{share_str} of screen time")

    results = {
        "experiment": "Time-Bucketed Topic Coverage",
        "pattern": args.pattern,
        "regex": not args.literal,
        "interval_hours": args.rebucket_hours or args.interval_hours,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "ingest": report,
        "station_totals": totals,
        "buckets": [
            {
                "station": b.station,
                "start": b.start.isoformat(),
                "matched_count": b.matched_count,
                "matched_duration": b.matched_duration,
                "total_count": b.total_count,
                "total_duration": b.total_duration,
                "duration_share": coverage_share(b),
            }
            for b in buckets
        ],
    }

    output_file = output_dir / "time_buckets_results.json"
    with open(output_file, "w") as f:
        json.dump(results, f, indent=2)
    print(f"\n✓ Results saved to {output_file}")


if __name__ == "__main__":
    main()
