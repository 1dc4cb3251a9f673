"""
ffdriver - typed ffmpeg command composition and process supervision.
"""

from .arguments import ArgumentBuilder, ArgumentContainer
from .config import FFmpegOptions, find_ffmpeg, load_options
from .errors import (
    CompositionError,
    FFmpegError,
    FFmpegNotFoundError,
    LaunchError,
    OperationError,
    ProcessError,
)
from .execution import InvocationResult, InvocationStatus, ProcessSupervisor
from .ffmpeg import FFMpeg
from .models import MediaSource

__version__ = "0.1.0"

__all__ = [
    "ArgumentBuilder",
    "ArgumentContainer",
    "CompositionError",
    "FFMpeg",
    "FFmpegError",
    "FFmpegNotFoundError",
    "FFmpegOptions",
    "InvocationResult",
    "InvocationStatus",
    "LaunchError",
    "MediaSource",
    "OperationError",
    "ProcessError",
    "ProcessSupervisor",
    "find_ffmpeg",
    "load_options",
]
