"""
Pytest configuration for the ffdriver test suite.

Provides a fake subprocess.Popen that imitates ffmpeg: it emits canned
stderr lines, records stdin writes, and writes the output file (the last
command token) when waited on.
"""

import stat
from pathlib import Path
from typing import Callable, List, Optional
from unittest.mock import patch

import pytest

from ffdriver.config import ENV_CONFIG_PATH, ENV_FFMPEG_PATH, FFmpegOptions


# Configure pytest
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "subprocess: spawns a real Python subprocess posing as ffmpeg"
    )


SAMPLE_PROGRESS_LINES = [
    "ffmpeg version 6.1 Copyright (c) 2000-2023 the FFmpeg developers",
    "Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'in.mp4':",
    "  Duration: 00:01:40.00, start: 0.000000, bitrate: 2500 kb/s",
    "frame=  240 fps=120 q=28.0 size=    1024kB time=00:00:10.00 bitrate= 838.9kbits/s speed=5.0x",
    "frame=  480 fps=120 q=28.0 size=    2048kB time=00:00:20.00 bitrate= 838.9kbits/s speed=5.0x",
    "frame= 2400 fps=120 q=-1.0 Lsize=   10240kB time=00:01:40.00 bitrate= 838.9kbits/s speed=5.0x",
]


class FakeStdin:
    """Records everything written to ffmpeg's stdin."""

    def __init__(self):
        self.writes: List[str] = []
        self.closed = False

    def write(self, data: str) -> int:
        if self.closed:
            raise BrokenPipeError("stdin closed")
        self.writes.append(data)
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True


class FakeStderr:
    """Iterable stderr pipe yielding newline-terminated lines."""

    def __init__(self, lines: List[str]):
        self._lines = [line + "\n" for line in lines]
        self.closed = False

    def __iter__(self):
        return iter(self._lines)

    def close(self) -> None:
        self.closed = True


class FakeFFmpegProcess:
    """Stand-in for subprocess.Popen running ffmpeg."""

    pid = 4242

    def __init__(
        self,
        command: List[str],
        stderr_lines: List[str],
        exit_code: int,
        output_bytes: Optional[bytes],
        on_wait: Optional[Callable[[], None]] = None,
    ):
        self.command = command
        self.stdin = FakeStdin()
        self.stderr = FakeStderr(stderr_lines)
        self.returncode: Optional[int] = None
        self.killed = False
        self._exit_code = exit_code
        self._output_bytes = output_bytes
        self._on_wait = on_wait

    def wait(self, timeout=None) -> int:
        if self.returncode is not None:
            return self.returncode
        if self._on_wait is not None:
            self._on_wait()
        if self._output_bytes is not None:
            Path(self.command[-1]).write_bytes(self._output_bytes)
        self.returncode = self._exit_code
        return self.returncode

    def poll(self) -> Optional[int]:
        return self.returncode

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9


class FakePopen:
    """
    Configurable replacement for subprocess.Popen.

    Attributes set by tests:
        stderr_lines: Lines emitted on stderr
        exit_code: Process exit code
        output_bytes: Bytes written to the output (None = no output file)
        failing_calls: Call indexes that produce no output
        on_wait: Hook run inside wait(), while the supervisor is RUNNING
        launch_error: Exception raised instead of starting
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self.kwargs: List[dict] = []
        self.processes: List[FakeFFmpegProcess] = []

        self.stderr_lines: List[str] = list(SAMPLE_PROGRESS_LINES)
        self.exit_code = 0
        self.output_bytes: Optional[bytes] = b"\x00\x00\x00\x18ftypmp42"
        self.failing_calls: set = set()
        self.on_wait: Optional[Callable[[], None]] = None
        self.launch_error: Optional[Exception] = None

    def __call__(self, command, **kwargs):
        self.calls.append(list(command))
        self.kwargs.append(kwargs)

        if self.launch_error is not None:
            raise self.launch_error

        failing = len(self.calls) - 1 in self.failing_calls
        process = FakeFFmpegProcess(
            command=list(command),
            stderr_lines=self.stderr_lines,
            exit_code=1 if failing else self.exit_code,
            output_bytes=None if failing else self.output_bytes,
            on_wait=self.on_wait,
        )
        self.processes.append(process)
        return process


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep developer environment overrides out of the tests."""
    monkeypatch.delenv(ENV_FFMPEG_PATH, raising=False)
    monkeypatch.delenv(ENV_CONFIG_PATH, raising=False)


@pytest.fixture
def fake_popen():
    """Patch Popen in the supervisor with a FakePopen."""
    factory = FakePopen()
    with patch("ffdriver.execution.supervisor.subprocess.Popen", factory):
        yield factory


@pytest.fixture
def ffmpeg_binary(tmp_path) -> Path:
    """An executable file standing in for the ffmpeg binary."""
    binary = tmp_path / "bin" / "ffmpeg"
    binary.parent.mkdir()
    binary.write_text("#!/bin/sh\nexit 0\n")
    binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return binary


@pytest.fixture
def options(ffmpeg_binary) -> FFmpegOptions:
    return FFmpegOptions(ffmpeg_binary=str(ffmpeg_binary))


@pytest.fixture
def media_dir(tmp_path) -> Path:
    """Directory with small placeholder media files."""
    directory = tmp_path / "media"
    directory.mkdir()
    for name in ("input.mp4", "second.mp4", "input.mov", "audio.mp3", "poster.png"):
        (directory / name).write_bytes(b"media")
    return directory

