"""
ffdriver error types.

All errors inherit from FFmpegError for easy catching.

Taxonomy:
- CompositionError: argument container is not executable (raised before spawn)
- FFmpegNotFoundError: no ffmpeg binary could be located
- LaunchError: the binary exists in config but could not be started
- ProcessError: ffmpeg ran but produced no usable output
- OperationError: a named recipe (join, snapshot, ...) failed
"""

from typing import Optional


class FFmpegError(Exception):
    """Base exception for all ffdriver failures."""

    pass


class CompositionError(FFmpegError):
    """
    Argument container cannot be turned into a command.

    Raised when:
    - No input source (input or concat) was added
    - Both an input and a concat source were added
    - No output destination was added

    Always raised before any subprocess is spawned.
    """

    pass


class FFmpegNotFoundError(FFmpegError):
    """Raised when the ffmpeg executable cannot be located."""

    def __init__(self, searched: Optional[list] = None):
        self.searched = searched or []
        message = "ffmpeg not found. Install ffmpeg or set FFDRIVER_FFMPEG_PATH."
        if self.searched:
            message += f" Searched: {', '.join(str(p) for p in self.searched)}"
        super().__init__(message)


class LaunchError(FFmpegError):
    """
    The ffmpeg process could not be started.

    Missing binary, permissions, bad interpreter. No subprocess
    resources exist when this is raised.
    """

    def __init__(self, executable: str, reason: str):
        self.executable = executable
        self.reason = reason
        super().__init__(f"Failed to launch {executable}: {reason}")


class ProcessError(FFmpegError):
    """
    ffmpeg exited without producing a valid output file.

    The output is missing or zero bytes. ffmpeg frequently reports
    failures only on stderr, so the exit code alone is not trusted.
    The full stderr text is attached as `diagnostics`.
    """

    def __init__(
        self,
        output_path: str,
        diagnostics: str = "",
        exit_code: Optional[int] = None,
    ):
        self.output_path = output_path
        self.diagnostics = diagnostics
        self.exit_code = exit_code

        message = f"ffmpeg produced no output at {output_path}"
        if exit_code is not None:
            message += f" (exit code: {exit_code})"
        if diagnostics:
            message += f"\n{diagnostics}"
        super().__init__(message)


class OperationError(FFmpegError):
    """Raised when a named operation (convert, join, mute, ...) fails."""

    def __init__(self, operation: str, message: str, cause: Optional[Exception] = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"[{operation}] {message}")
