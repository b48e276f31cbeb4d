"""
Word Frequencies & Log-Odds Ratios Across Stations.

Counts words per group (station, program or date), turns the counts into
relative frequencies, and compares every pair of groups with a smoothed
log-odds ratio to find each group's most distinctive vocabulary.

Usage:
    python experiments/word_frequencies.py data/*.tsv --output results/
    python experiments/word_frequencies.py data/*.tsv --group-by program --pair CNNW FOXNEWSW
"""

from __future__ import annotations

import argparse
import json
import math
import sys
from collections import Counter, defaultdict
from dataclasses import dataclass
from itertools import combinations
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from scripts.clean_text import load_and_clean
from scripts.tokenize_text import tokenize_records


DEFAULT_MIN_FREQUENCY = 0.0001
DEFAULT_MIN_SUPPORT = 10


# ═══════════════════════════════════════════════════════
# Frequency Tables
# ═══════════════════════════════════════════════════════

class FrequencyTable:
    """Per-group word counts built from (group, word) tokens."""

    def __init__(self, counts: dict[str, Counter] | None = None):
        self.counts = defaultdict(Counter, counts or {})

    def groups(self) -> list[str]:
        return sorted(self.counts)

    def total(self, group: str) -> int:
        return sum(self.counts[group].values()) if group in self.counts else 0

    def frequency(self, group: str, word: str) -> float:
        total = self.total(group)
        return self.counts[group][word] / total if total else 0.0

    def most_common(self, group: str, n: int | None = None) -> list[tuple[str, int]]:
        """Words by descending count; ties broken alphabetically."""
        ranked = sorted(self.counts.get(group, {}).items(), key=lambda x: (-x[1], x[0]))
        return ranked if n is None else ranked[:n]


def count_words(tokens) -> FrequencyTable:
    table = FrequencyTable()
    for group, word in tokens:
        table.counts[group][word] += 1
    return table


def group_frequencies(tokens, min_frequency: float = DEFAULT_MIN_FREQUENCY) -> dict:
    """Sparse (group, word) -> count/total mapping.

    Words below min_frequency are left out rather than zero-filled. With
    min_frequency=0 each group's frequencies sum to 1.
    """
    table = tokens if isinstance(tokens, FrequencyTable) else count_words(tokens)
    freqs = {}

    for group in table.groups():
        total = table.total(group)
        for word, count in table.most_common(group):
            freq = count / total
            if freq < min_frequency:
                break
            freqs[(group, word)] = freq

    return freqs


# ═══════════════════════════════════════════════════════
# Log-Odds Ratio
# ═══════════════════════════════════════════════════════

@dataclass(frozen=True)
class LogOddsRatio:
    word: str
    count_a: int
    count_b: int
    ratio: float          # > 0: distinctive for group A, < 0: for group B


def log_odds_ratio(tokens, group_a: str, group_b: str,
                   min_support: int = DEFAULT_MIN_SUPPORT) -> list[LogOddsRatio]:
    """Add-one smoothed log ratio of each word's share in group A vs group B.

    Only words whose combined count in the two groups reaches min_support
    take part, and the smoothing denominators are summed over that shared
    vocabulary. A word missing from one group counts 0 there.
    """
    if min_support < 1:
        raise ValueError(f"min_support must be at least 1, got {min_support}")
    if group_a == group_b:
        raise ValueError(f"cannot compare group {group_a!r} with itself")

    table = tokens if isinstance(tokens, FrequencyTable) else count_words(tokens)
    counts_a = table.counts.get(group_a, Counter())
    counts_b = table.counts.get(group_b, Counter())

    vocab = [
        word for word in set(counts_a) | set(counts_b)
        if counts_a[word] + counts_b[word] >= min_support
    ]
    if not vocab:
        return []

    denom_a = sum(counts_a[w] + 1 for w in vocab)
    denom_b = sum(counts_b[w] + 1 for w in vocab)

    ratios = []
    for word in vocab:
        p_a = (counts_a[word] + 1) / denom_a
        p_b = (counts_b[word] + 1) / denom_b
        ratios.append(LogOddsRatio(word, counts_a[word], counts_b[word], math.log(p_a / p_b)))

    ratios.sort(key=lambda r: (-r.ratio, r.word))
    return ratios


def top_distinctive(ratios: list[LogOddsRatio], n: int = 15) -> dict:
    """The n words leaning hardest towards each side of zero."""
    side_a = sorted((r for r in ratios if r.ratio > 0), key=lambda r: (-abs(r.ratio), r.word))
    side_b = sorted((r for r in ratios if r.ratio < 0), key=lambda r: (-abs(r.ratio), r.word))
    return {"a": side_a[:n], "b": side_b[:n]}


# ═══════════════════════════════════════════════════════
# Main
# ═══════════════════════════════════════════════════════

def _ratio_rows(ratios: list[LogOddsRatio]) -> list[dict]:
    return [
        {"word": r.word, "count_a": r.count_a, "count_b": r.count_b, "log_ratio": round(r.ratio, 6)}
        for r in ratios
    ]


def compare_groups(table: FrequencyTable, group_a: str, group_b: str,
                   min_support: int, top_n: int) -> dict:
    ratios = log_odds_ratio(table, group_a, group_b, min_support=min_support)
    top = top_distinctive(ratios, n=top_n)
    return {
        "group_a": group_a,
        "group_b": group_b,
        "n_words": len(ratios),
        "distinctive_a": _ratio_rows(top["a"]),
        "distinctive_b": _ratio_rows(top["b"]),
    }


def main():
    parser = argparse.ArgumentParser(description="Word frequencies and log-odds ratios per group")
    parser.add_argument("files", nargs="+", help="Tab-separated chyron extract files")
    parser.add_argument("--output", type=str, default="results")
    parser.add_argument("--group-by", choices=["station", "program", "date"], default="station")
    parser.add_argument("--min-frequency", type=float, default=DEFAULT_MIN_FREQUENCY)
    parser.add_argument("--min-support", type=int, default=DEFAULT_MIN_SUPPORT)
    parser.add_argument("--top-n", type=int, default=15)
    parser.add_argument("--pair", nargs=2, metavar=("GROUP_A", "GROUP_B"), default=None,
                        help="Compare only this pair (default: every pair)")
    args = parser.parse_args()

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("Loading chyrons...")
    records, report = load_and_clean(args.files)
    print(f"  {report['records']:,} records loaded, {report['skipped_rows']:,} rows skipped, "
          f"{report['cleaning_failures']:,} cleaning failures")
    if not records:
        print("  ✗ No records to analyse")
        sys.exit(1)

    print(f"\nTokenizing by {args.group_by}...")
    table = count_words(tokenize_records(records, args.group_by))
    for group in table.groups():
        top3 = [w for w, _ in table.most_common(group, 3)]
        print(f"  {group}: {table.total(group):,} tokens, top: {', '.join(top3)}")

    print("\nComputing group frequencies...")
    freqs = group_frequencies(table, min_frequency=args.min_frequency)
    frequencies = defaultdict(list)
    for (group, word), freq in freqs.items():
        frequencies[group].append({"word": word, "count": table.counts[group][word],
                                   "frequency": round(freq, 6)})
    print(f"  {len(freqs):,} (group, word) pairs above {args.min_frequency}")

    print("\nComputing log-odds ratios...")
    pairs = [tuple(args.pair)] if args.pair else list(combinations(table.groups(), 2))
    comparisons = []
    for group_a, group_b in pairs:
        comparison = compare_groups(table, group_a, group_b, args.min_support, args.top_n)
        comparisons.append(comparison)
        lead_a = [r["word"] for r in comparison["distinctive_a"][:3]]
        lead_b = [r["word"] for r in comparison["distinctive_b"][:3]]
        print(f"  {group_a} vs {group_b}: {', '.join(lead_a)} | {', '.join(lead_b)}")

    results = {
        "experiment": "Word Frequencies & Log-Odds Ratios",
        "group_by": args.group_by,
        "ingest": report,
        "group_totals": {g: table.total(g) for g in table.groups()},
        "min_frequency": args.min_frequency,
        "frequencies": dict(frequencies),
        "min_support": args.min_support,
        "log_odds": comparisons,
    }

    output_file = output_dir / "word_frequencies_results.json"
    with open(output_file, "w") as f:
        json.dump(results, f, indent=2)
    print(f"\n✓ Results saved to {output_file}")


if __name__ == "__main__":
    main()
