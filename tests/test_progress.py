"""
Tests for ffmpeg progress parsing.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from ffdriver.execution import ProgressMonitor, parse_elapsed_seconds


PROGRESS_LINE = "frame=  240 fps=120 q=28.0 size=    1024kB time=00:00:10.00 bitrate= 838.9kbits/s"


class TestParseElapsedSeconds:
    """Timestamp extraction."""

    def test_parses_first_timestamp(self):
        assert parse_elapsed_seconds(PROGRESS_LINE) == 10

    def test_hours_and_minutes(self):
        assert parse_elapsed_seconds("frame=1 time=01:02:03.50") == 3723

    def test_no_timestamp(self):
        assert parse_elapsed_seconds("frame=  240 fps=120") is None


class TestProgressMonitor:
    """Percentage computation and callback delivery."""

    def test_ten_seconds_of_hundred(self):
        callback = MagicMock()
        monitor = ProgressMonitor(target_duration=100, on_progress=callback)

        assert monitor.feed(PROGRESS_LINE) == 10.0
        callback.assert_called_once_with(10.0)
        assert monitor.last_percentage == 10.0

    def test_rounds_to_two_decimals(self):
        callback = MagicMock()
        monitor = ProgressMonitor(target_duration=30, on_progress=callback)

        monitor.feed("frame=  240 time=00:00:10.00")

        callback.assert_called_once_with(33.33)

    def test_accepts_timedelta_target(self):
        callback = MagicMock()
        monitor = ProgressMonitor(target_duration=timedelta(seconds=200), on_progress=callback)

        monitor.feed(PROGRESS_LINE)

        callback.assert_called_once_with(5.0)

    def test_not_clamped_above_hundred(self):
        callback = MagicMock()
        monitor = ProgressMonitor(target_duration=5, on_progress=callback)

        monitor.feed(PROGRESS_LINE)

        callback.assert_called_once_with(200.0)

    @pytest.mark.parametrize("line", [
        "  Duration: 00:01:40.00, start: 0.000000, bitrate: 2500 kb/s",
        "frame=  240 fps=120 q=28.0 size=    1024kB time=N/A bitrate=N/A",
        "",
    ])
    def test_non_progress_lines_are_ignored(self, line):
        """Lines without the marker or without a timestamp emit nothing."""
        callback = MagicMock()
        monitor = ProgressMonitor(target_duration=100, on_progress=callback)

        assert monitor.feed(line) is None
        callback.assert_not_called()

    @pytest.mark.parametrize("target", [None, 0, -5])
    def test_disabled_without_positive_target(self, target):
        callback = MagicMock()
        monitor = ProgressMonitor(target_duration=target, on_progress=callback)

        assert not monitor.enabled
        assert monitor.feed(PROGRESS_LINE) is None
        callback.assert_not_called()

    def test_disabled_without_callback(self):
        monitor = ProgressMonitor(target_duration=100)

        assert not monitor.enabled
        assert monitor.feed(PROGRESS_LINE) is None

    def test_emits_in_feed_order(self):
        seen = []
        monitor = ProgressMonitor(target_duration=100, on_progress=seen.append)

        for seconds in (10, 20, 15):
            monitor.feed(f"frame= 1 time=00:00:{seconds:02d}.00")

        assert seen == [10.0, 20.0, 15.0]
