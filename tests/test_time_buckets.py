"""Tests for time-bucketed topic coverage."""

import argparse
import re
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from experiments.time_buckets import (
    TimeBucket,
    bucket_records,
    bucket_starts,
    coverage_share,
    floor_timestamp,
    _parse_date_arg,
    _parse_end_arg,
    main,
    make_text_matcher,
    rebucket,
    station_totals,
)
from scripts.load_chyrons import ChyronRecord


HOUR = timedelta(hours=1)


def rec(station, ts, duration, text):
    return ChyronRecord(datetime.strptime(ts, "%Y-%m-%d %H:%M:%S"), station, duration, None, text)


RECORDS = [
    rec("CNNW", "2019-03-15 00:30:00", 10, "NEW ZEALAND MOSQUE ATTACK"),
    rec("CNNW", "2019-03-15 00:45:00", 20, "BREXIT VOTE"),
    rec("CNNW", "2019-03-15 02:10:00", 5, "Zealand PM speaks"),
    rec("FOXNEWSW", "2019-03-15 01:05:00", 30, "BORDER WALL"),
    rec("FOXNEWSW", "2019-03-15 01:50:00", 15, "new zealand shooting"),
    rec("FOXNEWSW", "2019-03-16 09:00:00", 99, "NEW ZEALAND"),     # outside range
]


class TestTextMatcher:
    def test_regex_ignore_case(self):
        match = make_text_matcher(r"new\s+zealand")
        assert match("NEW ZEALAND MOSQUE")
        assert not match("Zealand")

    def test_literal(self):
        match = make_text_matcher("a.b", regex=False)
        assert match("xA.By")
        assert not match("aXb")

    def test_case_sensitive(self):
        match = make_text_matcher("Brexit", ignore_case=False)
        assert match("Brexit vote")
        assert not match("BREXIT VOTE")

    def test_invalid_pattern_fails_immediately(self):
        """Test that a bad regex is a configuration error at call time."""
        with pytest.raises(re.error):
            make_text_matcher("(unclosed")


class TestFlooring:
    def test_floor_hour(self):
        assert floor_timestamp(datetime(2019, 3, 15, 0, 30, 5), HOUR) == datetime(2019, 3, 15)

    def test_floor_two_hours_aligned_to_midnight(self):
        assert floor_timestamp(datetime(2019, 3, 15, 3, 59), 2 * HOUR) == datetime(2019, 3, 15, 2)

    def test_bucket_starts_inclusive(self):
        starts = bucket_starts(datetime(2019, 3, 15), datetime(2019, 3, 15, 2), HOUR)
        assert starts == [datetime(2019, 3, 15, h) for h in range(3)]

    def test_bad_interval(self):
        with pytest.raises(ValueError):
            floor_timestamp(datetime(2019, 3, 15), timedelta(0))


class TestBucketRecords:
    """Tests for zero-filled station x bucket aggregation."""

    def test_single_record_scenario(self):
        """One matching record at 00:30 over a three-hour range."""
        records = [rec("X", "2019-03-15 00:30:00", 10, "match me")]

        buckets = bucket_records(
            records, make_text_matcher("match"), HOUR,
            datetime(2019, 3, 15, 0), datetime(2019, 3, 15, 2),
        )

        assert buckets == [
            TimeBucket("X", datetime(2019, 3, 15, 0), 1, 10, 1, 10),
            TimeBucket("X", datetime(2019, 3, 15, 1), 0, 0, 0, 0),
            TimeBucket("X", datetime(2019, 3, 15, 2), 0, 0, 0, 0),
        ]

    def test_cross_product_size(self):
        buckets = bucket_records(
            RECORDS, make_text_matcher("zealand"), HOUR,
            datetime(2019, 3, 15, 0), datetime(2019, 3, 15, 5),
        )

        assert len(buckets) == 2 * 6
        assert all(b.matched_count <= b.total_count for b in buckets)
        assert all(b.matched_duration <= b.total_duration for b in buckets)

    def test_matched_and_totals(self):
        buckets = bucket_records(
            RECORDS, make_text_matcher("zealand"), HOUR,
            datetime(2019, 3, 15, 0), datetime(2019, 3, 15, 2),
        )
        by_key = {(b.station, b.start.hour): b for b in buckets}

        assert by_key[("CNNW", 0)] == TimeBucket("CNNW", datetime(2019, 3, 15, 0), 1, 10, 2, 30)
        assert by_key[("FOXNEWSW", 1)] == TimeBucket("FOXNEWSW", datetime(2019, 3, 15, 1), 1, 15, 2, 45)
        assert by_key[("CNNW", 2)].matched_duration == 5
        assert by_key[("FOXNEWSW", 0)].total_count == 0

    def test_out_of_range_records_ignored(self):
        buckets = bucket_records(
            RECORDS, make_text_matcher("zealand"), HOUR,
            datetime(2019, 3, 15, 0), datetime(2019, 3, 15, 23),
        )
        assert sum(b.total_duration for b in buckets if b.station == "FOXNEWSW") == 45

    def test_explicit_stations(self):
        buckets = bucket_records(
            RECORDS, make_text_matcher("zealand"), HOUR,
            datetime(2019, 3, 15, 0), datetime(2019, 3, 15, 1),
            stations=["MSNBCW", "CNNW"],
        )
        assert [b.station for b in buckets] == ["CNNW", "CNNW", "MSNBCW", "MSNBCW"]
        assert all(b.total_count == 0 for b in buckets if b.station == "MSNBCW")

    def test_end_before_start(self):
        with pytest.raises(ValueError):
            bucket_records(RECORDS, make_text_matcher("x"), HOUR,
                           datetime(2019, 3, 15, 5), datetime(2019, 3, 15, 0))


class TestRebucket:
    def test_sums_not_averages(self):
        hourly = bucket_records(
            RECORDS, make_text_matcher("zealand"), HOUR,
            datetime(2019, 3, 15, 0), datetime(2019, 3, 15, 3),
        )

        coarse = rebucket(hourly, 2 * HOUR)

        assert len(coarse) == 2 * 2
        first = coarse[0]
        assert (first.station, first.start) == ("CNNW", datetime(2019, 3, 15, 0))
        assert (first.matched_count, first.matched_duration) == (1, 10)
        assert (first.total_count, first.total_duration) == (2, 30)
        assert sum(b.total_duration for b in coarse) == sum(b.total_duration for b in hourly)


class TestCoverageShare:
    def test_share(self):
        assert coverage_share(TimeBucket("X", datetime(2019, 3, 15), 1, 10, 4, 40)) == 0.25
        assert coverage_share(TimeBucket("X", datetime(2019, 3, 15), 1, 10, 4, 40), by="count") == 0.25

    def test_no_data_is_none(self):
        """Test that 0/0 is reported as no data rather than 0%."""
        assert coverage_share(TimeBucket("X", datetime(2019, 3, 15))) is None

    def test_bad_measure(self):
        with pytest.raises(ValueError):
            coverage_share(TimeBucket("X", datetime(2019, 3, 15)), by="words")


class TestDateArguments:
    """Tests for --start/--end parsing."""

    def test_date_only_end_covers_whole_day(self):
        """Test that a record late on the end day is still counted."""
        records = [rec("X", "2019-03-31 20:00:00", 7, "brexit")]

        buckets = bucket_records(
            records, make_text_matcher("brexit"), HOUR,
            _parse_date_arg("2019-03-15"), _parse_end_arg("2019-03-31"),
        )

        assert sum(b.total_count for b in buckets) == 1
        assert buckets[-1].start == datetime(2019, 3, 31, 23)
        assert len(buckets) == 17 * 24

    def test_start_and_explicit_times(self):
        assert _parse_date_arg("2019-03-15") == datetime(2019, 3, 15)
        assert _parse_end_arg("2019-03-15") == datetime(2019, 3, 15, 23, 59, 59)
        assert _parse_end_arg("2019-03-15 06:00:00") == datetime(2019, 3, 15, 6)
        assert _parse_date_arg("2019-03-15T06:30:00") == datetime(2019, 3, 15, 6, 30)

    def test_invalid_date(self):
        with pytest.raises(argparse.ArgumentTypeError):
            _parse_date_arg("15/03/2019")


class TestCommandLine:
    """Tests for argument validation before any file is read."""

    @pytest.mark.parametrize("flags", [
        ["--interval-hours", "0"],
        ["--interval-hours", "-1"],
        ["--rebucket-hours", "0"],
        ["--rebucket-hours", "-2"],
        ["--start", "2019-03-20", "--end", "2019-03-15"],
    ])
    def test_bad_intervals_are_usage_errors(self, monkeypatch, tmp_path, flags):
        argv = ["time_buckets.py", str(tmp_path / "day.tsv"), "--pattern", "brexit",
                "--output", str(tmp_path), *flags]
        monkeypatch.setattr(sys, "argv", argv)

        with pytest.raises(SystemExit) as exc:
            main()

        assert exc.value.code == 2


class TestStationTotals:
    def test_totals_and_share(self):
        buckets = [
            TimeBucket("CNNW", datetime(2019, 3, 15, 0), 1, 10, 2, 40),
            TimeBucket("CNNW", datetime(2019, 3, 15, 1), 1, 10, 1, 10),
            TimeBucket("MSNBCW", datetime(2019, 3, 15, 0)),
        ]

        totals = station_totals(buckets)

        assert totals["CNNW"] == {
            "matched_count": 2, "matched_duration": 20,
            "total_count": 3, "total_duration": 50,
            "duration_share": 0.4,
        }
        assert totals["MSNBCW"]["duration_share"] is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
