"""Tests for display module."""

from unittest.mock import patch

from appcull.display import (
    format_age,
    last_used_style,
    show_applications,
    show_cache_status,
    show_protections,
    show_scan_problem,
)
from appcull.models import AppRecord, CacheInfo, ScanOutcome, ScanStatus


def make_record(**overrides) -> AppRecord:
    fields = dict(path="/Applications/Foo.app", display_name="Foo", size_human="1.0 MB", size_kb=1000)
    fields.update(overrides)
    return AppRecord(**fields)


class TestFormatAge:
    def test_seconds(self):
        assert format_age(45) == "45s"

    def test_minutes(self):
        assert format_age(120) == "2m"

    def test_hours(self):
        assert format_age(3 * 3600 + 12 * 60) == "3h 12m"

    def test_days(self):
        assert format_age(86400 + 3600) == "1d 1h"


class TestLastUsedStyle:
    def test_never_is_red(self):
        assert last_used_style(make_record()) == "red"

    def test_years_is_red(self):
        assert last_used_style(make_record(last_used_epoch=1, last_used="2 years ago")) == "red"

    def test_months_is_yellow(self):
        assert last_used_style(make_record(last_used_epoch=1, last_used="3 months ago")) == "yellow"

    def test_recent_is_green(self):
        assert last_used_style(make_record(last_used_epoch=1, last_used="Today")) == "green"


class TestShowApplications:
    def test_prints_table(self):
        with patch("appcull.display.console") as mock_console:
            show_applications([make_record()])
            assert mock_console.print.call_count >= 2

    def test_limit_note(self):
        records = [make_record(path=f"/Applications/App{i}.app", display_name=f"App{i}") for i in range(3)]
        with patch("appcull.display.console") as mock_console:
            show_applications(records, limit=2)
        printed = [str(c.args[0]) for c in mock_console.print.call_args_list if c.args]
        assert any("Showing 2 of 3" in p for p in printed)


class TestShowScanProblem:
    def test_not_found(self):
        with patch("appcull.display.console") as mock_console:
            show_scan_problem(ScanOutcome(status=ScanStatus.NOT_FOUND))
        assert "No applications found" in mock_console.print.call_args_list[0].args[0]

    def test_empty_cache(self):
        with patch("appcull.display.console") as mock_console:
            show_scan_problem(ScanOutcome(status=ScanStatus.EMPTY_CACHE))
        assert "No applications available" in mock_console.print.call_args_list[0].args[0]


class TestShowCacheStatus:
    def test_missing(self):
        with patch("appcull.display.console") as mock_console:
            show_cache_status(CacheInfo(path="/tmp/cache", ttl_seconds=86400))
        printed = " ".join(c.args[0] for c in mock_console.print.call_args_list)
        assert "missing" in printed

    def test_fresh(self):
        info = CacheInfo(path="/tmp/cache", exists=True, age_seconds=60, ttl_seconds=86400, fresh=True, record_count=4)
        with patch("appcull.display.console") as mock_console:
            show_cache_status(info)
        printed = " ".join(c.args[0] for c in mock_console.print.call_args_list)
        assert "fresh" in printed
        assert "Entries: 4" in printed


class TestShowProtections:
    def test_lists_patterns(self):
        with patch("appcull.display.console") as mock_console:
            show_protections({"system_patterns": ["com.apple.*"], "protected_bundle_ids": []})
        printed = " ".join(str(c.args[0]) for c in mock_console.print.call_args_list if c.args)
        assert "com.apple.*" in printed
        assert "(none)" in printed
