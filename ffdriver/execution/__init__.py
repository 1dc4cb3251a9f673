"""
Process supervision and progress parsing for ffmpeg invocations.
"""

from .progress import (
    PROGRESS_MARKER,
    TIMESTAMP_PATTERN,
    ProgressMonitor,
    parse_elapsed_seconds,
)
from .results import (
    FailureType,
    InvocationResult,
    InvocationStatus,
)
from .supervisor import (
    QUIT_TOKEN,
    ProcessSupervisor,
    SupervisorState,
)

__all__ = [
    # Progress
    "PROGRESS_MARKER",
    "TIMESTAMP_PATTERN",
    "ProgressMonitor",
    "parse_elapsed_seconds",
    # Results
    "FailureType",
    "InvocationResult",
    "InvocationStatus",
    # Supervision
    "QUIT_TOKEN",
    "ProcessSupervisor",
    "SupervisorState",
]
