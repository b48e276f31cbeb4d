#!/usr/bin/env python3
"""
Master orchestrator: runs the chyron analysis pipeline end-to-end.

Steps:
  1. Load & validate chyron extracts
  2. Descriptive statistics per station
  3. Word frequencies & log-odds ratios
  4. Time-bucketed topic coverage

Usage:
    python run_all.py                    # Run everything
    python run_all.py --from-step 3      # Resume from step 3 (word frequencies)
    python run_all.py --steps 1 4        # Run only specific steps
    python run_all.py --dry-run          # Check scripts and input files only
    python run_all.py --pattern brexit   # Topic for the time-bucket step

CHYRON_DATA_DIR and CHYRON_RESULTS_DIR (environment or .env) override the
default data/ and results/ directories.
"""

import argparse
import os
import subprocess
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


PROJECT_ROOT = Path(__file__).parent
DATA_DIR = Path(os.getenv("CHYRON_DATA_DIR", PROJECT_ROOT / "data"))
RESULTS_DIR = Path(os.getenv("CHYRON_RESULTS_DIR", PROJECT_ROOT / "results"))

DEFAULT_PATTERN = "mueller"


STEPS = {
    1: {
        "name": "Load Chyrons",
        "script": "scripts/load_chyrons.py",
        "args": [],
        "description": "Parses the TSV extracts and reports skipped rows and unreadable files.",
    },
    2: {
        "name": "Station Statistics",
        "script": "experiments/station_stats.py",
        "args": ["--output", str(RESULTS_DIR)],
        "description": "Record counts, durations, daily coverage and vocabulary per station.",
    },
    3: {
        "name": "Word Frequencies",
        "script": "experiments/word_frequencies.py",
        "args": ["--output", str(RESULTS_DIR), "--group-by", "station"],
        "description": "Per-station word frequencies and pairwise log-odds ratios.",
    },
    4: {
        "name": "Time Buckets",
        "script": "experiments/time_buckets.py",
        "args": ["--output", str(RESULTS_DIR), "--interval-hours", "1", "--rebucket-hours", "2"],
        "description": "Hourly topic coverage per station, zero-filled, smoothed into 2h windows.",
    },
}


def find_input_files(data_dir: Path = DATA_DIR) -> list[Path]:
    return sorted(p for p in data_dir.glob("*.tsv") if p.is_file())


def run_step(step_num: int, files: list[Path], pattern: str, dry_run: bool = False) -> bool:
    """Run a single pipeline step."""
    step = STEPS[step_num]

    print(f"\n{'═'*60}")
    print(f"  Step {step_num}: {step['name']}")
    print(f"  {step['description']}")
    print(f"{'═'*60}\n")

    script_path = PROJECT_ROOT / step["script"]
    if not script_path.exists():
        print(f"  ✗ Script not found: {script_path}")
        return False

    cmd = [sys.executable, str(script_path), *map(str, files), *step["args"]]
    if step_num == 4:
        cmd.extend(["--pattern", pattern])

    if dry_run:
        print(f"  Would run: {script_path.name} on {len(files)} file(s)")
        return True

    print(f"  Running: {script_path.name} on {len(files)} file(s)\n")

    start_time = time.time()

    try:
        result = subprocess.run(cmd, cwd=str(PROJECT_ROOT), text=True)
    except OSError as e:
        print(f"\n  ✗ Step {step_num} error: {e}")
        return False

    elapsed = time.time() - start_time

    if result.returncode == 0:
        print(f"\n  ✓ Step {step_num} completed in {elapsed:.1f}s")
        return True
    print(f"\n  ✗ Step {step_num} failed (exit code {result.returncode})")
    return False


def main():
    parser = argparse.ArgumentParser(
        description="Chyron Analysis Pipeline Orchestrator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Steps:
  1: Load Chyrons (TSV → validated records)
  2: Station Statistics
  3: Word Frequencies & Log-Odds Ratios
  4: Time-Bucketed Topic Coverage
        """,
    )
    parser.add_argument(
        "--from-step", type=int, default=1,
        help="Start from this step (default: 1)",
    )
    parser.add_argument(
        "--steps", type=int, nargs="+", default=None,
        help="Run only these specific steps",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Check scripts and input files without running anything",
    )
    parser.add_argument(
        "--pattern", type=str, default=DEFAULT_PATTERN,
        help=f"Regex for the time-bucket step (default: {DEFAULT_PATTERN!r})",
    )
    parser.add_argument(
        "--data-dir", type=Path, default=DATA_DIR,
        help=f"Directory of *.tsv extracts (default: {DATA_DIR})",
    )
    args = parser.parse_args()

    print("╔════════════════════════════════════════════════════════════╗")
    print("║  TV News Chyron Analysis Pipeline                          ║")
    print("╚════════════════════════════════════════════════════════════╝")

    files = find_input_files(args.data_dir)
    print(f"\nInput files: {len(files)} in {args.data_dir}")
    if not files:
        print(f"  ✗ No *.tsv files found in {args.data_dir}")
        sys.exit(1)

    if args.steps:
        steps_to_run = args.steps
    else:
        steps_to_run = [s for s in sorted(STEPS.keys()) if s >= args.from_step]

    print(f"Steps to run: {steps_to_run}")
    if args.dry_run:
        print("Mode: DRY RUN (nothing is executed)")

    results = {}
    total_start = time.time()

    for step_num in steps_to_run:
        if step_num not in STEPS:
            print(f"\n  ⚠ Unknown step: {step_num}")
            continue

        success = run_step(step_num, files, args.pattern, dry_run=args.dry_run)
        results[step_num] = success

        if not success:
            print(f"\n⚠ Pipeline stopped at step {step_num}. Fix the error and resume with:")
            print(f"  python run_all.py --from-step {step_num}")
            break

    total_elapsed = time.time() - total_start

    print(f"\n{'═'*60}")
    print(f"  Pipeline Summary ({total_elapsed:.0f}s total)")
    print(f"{'═'*60}")
    for step_num, success in results.items():
        status = "✓" if success else "✗"
        print(f"  {status} Step {step_num}: {STEPS[step_num]['name']}")

    failed = [s for s, ok in results.items() if not ok]
    if failed:
        print(f"\n  {len(failed)} step(s) failed: {failed}")
        sys.exit(1)
    print(f"\n  ✓ All steps completed successfully!")
    print(f"\n  Results: {RESULTS_DIR}")


if __name__ == "__main__":
    main()
