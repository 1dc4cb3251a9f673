"""
Argument composition model.

Typed argument atoms, the per-invocation container, and the builder that
turns a container into an ffmpeg token list.
"""

from .atoms import (
    HARDWARE_SENTINEL,
    Argument,
    ArgumentKind,
    AudioCodecArgument,
    BitstreamFilterArgument,
    ConcatArgument,
    CopyArgument,
    DisableChannelArgument,
    ForceFormatArgument,
    FrameOutputCountArgument,
    FrameRateArgument,
    HardwareAccelArgument,
    HardwareVideoCodecArgument,
    InputArgument,
    LoopArgument,
    OutputArgument,
    OverrideArgument,
    ScaleArgument,
    SeekArgument,
    ShortestArgument,
    SizeArgument,
    SpeedArgument,
    StartNumberArgument,
    ThreadsArgument,
    VideoCodecArgument,
    VideoIntelCodecArgument,
    VideoNVCodecArgument,
)
from .builder import RENDER_ORDER, ArgumentBuilder, build_arguments, validate_container
from .container import ArgumentContainer, ArgumentNotFoundError

__all__ = [
    # Atoms
    "HARDWARE_SENTINEL",
    "Argument",
    "ArgumentKind",
    "AudioCodecArgument",
    "BitstreamFilterArgument",
    "ConcatArgument",
    "CopyArgument",
    "DisableChannelArgument",
    "ForceFormatArgument",
    "FrameOutputCountArgument",
    "FrameRateArgument",
    "HardwareAccelArgument",
    "HardwareVideoCodecArgument",
    "InputArgument",
    "LoopArgument",
    "OutputArgument",
    "OverrideArgument",
    "ScaleArgument",
    "SeekArgument",
    "ShortestArgument",
    "SizeArgument",
    "SpeedArgument",
    "StartNumberArgument",
    "ThreadsArgument",
    "VideoCodecArgument",
    "VideoIntelCodecArgument",
    "VideoNVCodecArgument",
    # Container and builder
    "ArgumentContainer",
    "ArgumentNotFoundError",
    "ArgumentBuilder",
    "RENDER_ORDER",
    "build_arguments",
    "validate_container",
]
