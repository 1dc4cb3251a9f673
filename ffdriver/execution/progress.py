"""
FFmpeg progress parsing.

FFmpeg writes progress to stderr in this format:
    frame=   24 fps= 12 q=28.0 size=       0kB time=00:00:01.00 bitrate=   0.0kbits/s

We parse:
- Lines containing the progress marker ("frame")
- The first HH:MM:SS timestamp on such a line → elapsed seconds
- Elapsed against the known target duration → percentage

Percentages are not clamped: an elapsed time beyond the target duration
yields values above 100.
"""

import re
from datetime import timedelta
from typing import Callable, Optional, Union


PROGRESS_MARKER = "frame"

# Two digits each: matches 00:00:01 inside time=00:00:01.00
TIMESTAMP_PATTERN = re.compile(r"(\d{2}):(\d{2}):(\d{2})")

ProgressCallback = Callable[[float], None]


def parse_elapsed_seconds(line: str) -> Optional[int]:
    """
    Extract the first HH:MM:SS timestamp of a line as seconds.

    Returns:
        Elapsed seconds, or None if the line has no timestamp
    """
    match = TIMESTAMP_PATTERN.search(line)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3))
    return hours * 3600 + minutes * 60 + seconds


def to_seconds(duration: Union[float, int, timedelta, None]) -> Optional[float]:
    """Normalize a target duration to float seconds."""
    if duration is None:
        return None
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


class ProgressMonitor:
    """
    Turn ffmpeg stderr lines into progress percentages.

    Fed one line at a time, in emission order, by the process supervisor.

    Usage:
        monitor = ProgressMonitor(target_duration=120.0, on_progress=print)
        for line in ffmpeg_stderr:
            monitor.feed(line)
    """

    def __init__(
        self,
        target_duration: Union[float, int, timedelta, None] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """
        Args:
            target_duration: Expected total length in seconds
            on_progress: Called with the percentage of each progress line
        """
        self.target_duration = to_seconds(target_duration)
        self.on_progress = on_progress
        self.last_percentage: Optional[float] = None

    @property
    def enabled(self) -> bool:
        """Parsing runs only with a callback and a positive target duration."""
        return (
            self.on_progress is not None
            and self.target_duration is not None
            and self.target_duration > 0
        )

    def feed(self, line: str) -> Optional[float]:
        """
        Parse one diagnostic line.

        Returns:
            The emitted percentage, or None if the line carried no progress
        """
        if not self.enabled:
            return None

        if PROGRESS_MARKER not in line:
            return None

        elapsed = parse_elapsed_seconds(line)
        if elapsed is None:
            return None

        percentage = round(elapsed / self.target_duration * 100, 2)
        self.last_percentage = percentage
        self.on_progress(percentage)
        return percentage
