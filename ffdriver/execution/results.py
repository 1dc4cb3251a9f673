"""
Invocation result models.

Structured representation of one ffmpeg invocation outcome.
Results are machine-readable and human-readable.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..errors import LaunchError, ProcessError


class InvocationStatus(str, Enum):
    """
    Invocation outcome classification.

    SUCCEEDED: Process exited and the output file is non-empty
    FAILED: Launch failed, or the output is missing / zero bytes
    CANCELLED: Stop was requested and the output still validated
    """

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class FailureType(str, Enum):
    """Why a FAILED invocation failed."""

    LAUNCH = "launch"
    """The executable could not be started."""

    PROCESS = "process"
    """The process ran but produced no valid output."""


class InvocationResult(BaseModel):
    """
    Result of a single ffmpeg invocation.

    Diagnostics (the full stderr text) are only attached on failure.
    """

    model_config = ConfigDict(extra="forbid")

    status: InvocationStatus
    """Final invocation status."""

    command: List[str] = Field(default_factory=list)
    """Full command (executable + tokens)."""

    output_path: str
    """Declared output file."""

    exit_code: Optional[int] = None
    """Process exit code (None if the process never started)."""

    failure_type: Optional[FailureType] = None

    failure_reason: Optional[str] = None
    """Human-readable failure reason."""

    diagnostics: str = ""
    """Accumulated stderr text, verbatim (failures only)."""

    cancel_requested: bool = False

    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        """True for SUCCEEDED and CANCELLED-with-valid-output."""
        return self.status in (InvocationStatus.SUCCEEDED, InvocationStatus.CANCELLED)

    def duration_seconds(self) -> Optional[float]:
        """Wall-clock duration of the invocation in seconds."""
        if self.completed_at is None:
            return None
        delta = self.completed_at - self.started_at
        return delta.total_seconds()

    def summary(self) -> str:
        """Human-readable summary of the invocation."""
        duration_str = ""
        duration = self.duration_seconds()
        if duration is not None:
            duration_str = f" ({duration:.1f}s)"

        if self.status == InvocationStatus.SUCCEEDED:
            return f"SUCCEEDED{duration_str}: {self.output_path}"

        if self.status == InvocationStatus.CANCELLED:
            return f"CANCELLED{duration_str}: {self.output_path}"

        return f"FAILED{duration_str}: {self.output_path} - {self.failure_reason}"

    def raise_for_status(self) -> None:
        """
        Raise the matching error for a FAILED result.

        Raises:
            LaunchError: The executable could not be started
            ProcessError: ffmpeg produced no valid output
        """
        if self.status != InvocationStatus.FAILED:
            return

        if self.failure_type == FailureType.LAUNCH:
            executable = self.command[0] if self.command else "ffmpeg"
            raise LaunchError(executable, self.failure_reason or "unknown error")

        raise ProcessError(
            output_path=self.output_path,
            diagnostics=self.diagnostics,
            exit_code=self.exit_code,
        )
