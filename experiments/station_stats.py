"""
Descriptive Statistics Per Station.

Record counts, on-screen durations, text lengths and daily coverage per
station, plus vocabulary richness per group. The first look at a month
of chyrons before any word-level comparison.

Usage:
    python experiments/station_stats.py data/*.tsv --output results/
"""

from __future__ import annotations

import argparse
import json
import statistics
import sys
from collections import Counter, defaultdict
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from scripts.clean_text import load_and_clean
from scripts.tokenize_text import tokenize_records


# ═══════════════════════════════════════════════════════
# Station Statistics
# ═══════════════════════════════════════════════════════

def compute_station_stats(records: list) -> dict:
    """Counts, durations and text lengths per station."""
    by_station = defaultdict(list)
    for record in records:
        by_station[record.station].append(record)

    stats = {}
    for station, recs in sorted(by_station.items()):
        durations = [r.duration for r in recs]
        days = {r.date for r in recs}
        stats[station] = {
            "n_records": len(recs),
            "total_duration": sum(durations),
            "mean_duration": round(statistics.mean(durations), 2),
            "median_duration": round(statistics.median(durations), 2),
            "duration_percentiles": {
                f"P{p}": round(float(np.percentile(durations, p)), 2)
                for p in [10, 25, 50, 75, 90, 99]
            },
            "distinct_texts": len({r.text for r in recs}),
            "mean_text_length": round(statistics.mean(len(r.text) for r in recs), 2),
            "days_covered": len(days),
            "records_per_day": round(len(recs) / len(days), 2),
        }

    return stats


def compute_daily_counts(records: list) -> dict:
    """{station: {date: record count}} with ISO date keys."""
    daily = defaultdict(Counter)
    for record in records:
        daily[record.station][record.date.isoformat()] += 1
    return {station: dict(sorted(counts.items())) for station, counts in sorted(daily.items())}


# ═══════════════════════════════════════════════════════
# Vocabulary Statistics
# ═══════════════════════════════════════════════════════

def compute_vocabulary_stats(tokens, top_n: int = 20) -> dict:
    """Vocabulary richness per group from (group, word) tokens."""
    freqs = defaultdict(Counter)
    for group, word in tokens:
        freqs[group][word] += 1

    results = {}
    for group, freq in sorted(freqs.items()):
        total = sum(freq.values())
        top = sorted(freq.items(), key=lambda x: (-x[1], x[0]))[:top_n]
        results[group] = {
            "total_tokens": total,
            "vocabulary_size": len(freq),
            "type_token_ratio": round(len(freq) / total, 6),
            "hapax_legomena": sum(1 for c in freq.values() if c == 1),
            "top_terms": [
                {"term": w, "count": c, "frequency": round(c / total, 6)}
                for w, c in top
            ],
        }

    return results


# ═══════════════════════════════════════════════════════
# Main
# ═══════════════════════════════════════════════════════

def main():
    parser = argparse.ArgumentParser(description="Descriptive statistics per station")
    parser.add_argument("files", nargs="+", help="Tab-separated chyron extract files")
    parser.add_argument("--output", type=str, default="results")
    parser.add_argument("--top-n", type=int, default=20)
    args = parser.parse_args()

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("Loading chyrons...")
    records, report = load_and_clean(args.files)
    print(f"  {report['records']:,} records loaded")
    if not records:
        print("  ✗ No records to analyse")
        sys.exit(1)

    print("\nComputing station statistics...")
    station_stats = compute_station_stats(records)
    for station, s in station_stats.items():
        print(f"  {station}: {s['n_records']:,} chyrons over {s['days_covered']} days, "
              f"median {s['median_duration']}s on screen")

    print("\nComputing vocabulary statistics...")
    vocab_stats = compute_vocabulary_stats(tokenize_records(records, "station"), top_n=args.top_n)
    for station, v in vocab_stats.items():
        print(f"  {station}: {v['total_tokens']:,} tokens, vocab={v['vocabulary_size']:,}, "
              f"TTR={v['type_token_ratio']:.4f}")

    results = {
        "experiment": "Descriptive Statistics Per Station",
        "ingest": report,
        "station_stats": station_stats,
        "daily_counts": compute_daily_counts(records),
        "vocabulary_stats": vocab_stats,
    }

    output_file = output_dir / "station_stats_results.json"
    with open(output_file, "w") as f:
        json.dump(results, f, indent=2)
    print(f"\n✓ Results saved to {output_file}")


if __name__ == "__main__":
    main()
