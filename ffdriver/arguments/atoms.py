"""
Argument atoms.

Each atom is an immutable value that renders one fragment of an ffmpeg
command line. Atoms form a closed set: every atom class declares exactly
one ArgumentKind, and a container holds at most one atom per kind.

Rendering is total and side-effect free. Values are validated by the
caller (ranges, file existence); atoms only format them.

Usage:
    arg = VideoCodecArgument(VideoCodec.LIBX264, 2400)
    arg.tokens()   # ['-c:v', 'libx264', '-b:v', '2400k']
    arg.render()   # '-c:v libx264 -b:v 2400k'
"""

import os
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import ClassVar, List, Optional, Tuple, Union

from ..enums import (
    AudioCodec,
    AudioQuality,
    BitstreamFilter,
    Channel,
    HardwareAccelerator,
    Speed,
    VideoCodec,
)


PathLike = Union[str, "os.PathLike[str]"]

# Video codec value that always renders through the hardware path
HARDWARE_SENTINEL = VideoCodec.H264_CUVID


class ArgumentKind(str, Enum):
    """
    Closed set of argument kinds.

    The kind is the container key: one argument per kind.
    """

    HARDWARE_ACCEL = "hardware_accel"
    INPUT = "input"
    CONCAT = "concat"
    SEEK = "seek"
    THREADS = "threads"
    SIZE = "size"
    SCALE = "scale"
    FRAME_RATE = "frame_rate"
    START_NUMBER = "start_number"
    LOOP = "loop"
    VIDEO_CODEC = "video_codec"
    VIDEO_CODEC_NVIDIA = "video_codec_nvidia"
    VIDEO_CODEC_INTEL = "video_codec_intel"
    HARDWARE_VIDEO_CODEC = "hardware_video_codec"
    SPEED = "speed"
    AUDIO_CODEC = "audio_codec"
    COPY = "copy"
    DISABLE_CHANNEL = "disable_channel"
    BITSTREAM_FILTER = "bitstream_filter"
    FRAME_OUTPUT_COUNT = "frame_output_count"
    SHORTEST = "shortest"
    FORCE_FORMAT = "force_format"
    OVERRIDE = "override"
    OUTPUT = "output"


def _value(item: Union[Enum, str, int]) -> str:
    """Enum members render as their value, everything else via str()."""
    if isinstance(item, Enum):
        return str(item.value)
    return str(item)


def _video_tokens(codec: Union[VideoCodec, str], bitrate: int = 0) -> List[str]:
    tokens = ["-c:v", _value(codec)]
    if bitrate > 0:
        tokens.extend(["-b:v", f"{bitrate}k"])
    return tokens


def _hardware_video_tokens(codec: Union[VideoCodec, str]) -> List[str]:
    # Hardware decode/encode path: bitrate is owned by the device profile
    return ["-c:v", _value(codec)]


def _format_timestamp(value: Union[float, int, timedelta]) -> str:
    """Format seconds as HH:MM:SS.mmm."""
    if isinstance(value, timedelta):
        total_ms = round(value.total_seconds() * 1000)
    else:
        total_ms = round(float(value) * 1000)
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


@dataclass(frozen=True)
class Argument(ABC):
    """Base class for all argument atoms."""

    kind: ClassVar[ArgumentKind]

    @abstractmethod
    def tokens(self) -> List[str]:
        """Command-line tokens contributed by this argument."""
        pass

    def render(self) -> str:
        """Shell-quoted text form of tokens(), for display and logs."""
        return shlex.join(self.tokens())


# ============================================================================
# I/O
# ============================================================================

@dataclass(frozen=True, init=False)
class InputArgument(Argument):
    """
    Input source.

    Accepts one or two paths (e.g. a video paired with a separate audio
    file) or a remote URI. Each path renders its own -i flag.
    """

    kind: ClassVar[ArgumentKind] = ArgumentKind.INPUT
    paths: Tuple[str, ...]

    def __init__(self, *paths: PathLike):
        if not paths:
            raise ValueError("InputArgument requires at least one path")
        object.__setattr__(self, "paths", tuple(os.fspath(p) for p in paths))

    def tokens(self) -> List[str]:
        tokens: List[str] = []
        for path in self.paths:
            tokens.extend(["-i", path])
        return tokens


@dataclass(frozen=True)
class ConcatArgument(Argument):
    """Ordered list of intermediate files joined into one concat: pseudo-input."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.CONCAT
    paths: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "paths", tuple(os.fspath(p) for p in self.paths))

    def tokens(self) -> List[str]:
        return ["-i", "concat:" + "|".join(self.paths)]


@dataclass(frozen=True)
class OutputArgument(Argument):
    """Output destination. Always rendered last."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.OUTPUT
    path: str

    def __post_init__(self):
        object.__setattr__(self, "path", os.fspath(self.path))

    def tokens(self) -> List[str]:
        return [self.path]


@dataclass(frozen=True)
class OverrideArgument(Argument):
    """Overwrite the output file without asking (-y)."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.OVERRIDE

    def tokens(self) -> List[str]:
        return ["-y"]


@dataclass(frozen=True)
class HardwareAccelArgument(Argument):
    """Hardware acceleration marker. Must precede the input."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.HARDWARE_ACCEL
    accelerator: Union[HardwareAccelerator, str] = HardwareAccelerator.CUVID

    def tokens(self) -> List[str]:
        return ["-hwaccel", _value(self.accelerator)]


# ============================================================================
# CODECS
# ============================================================================

@dataclass(frozen=True)
class VideoCodecArgument(Argument):
    """
    Software video codec with optional bitrate (kbit/s).

    The hardware sentinel codec (h264_cuvid) overrides this rendering and
    renders exactly like HardwareVideoCodecArgument.
    """

    kind: ClassVar[ArgumentKind] = ArgumentKind.VIDEO_CODEC
    codec: Union[VideoCodec, str]
    bitrate: int = 0

    def tokens(self) -> List[str]:
        if _value(self.codec) == HARDWARE_SENTINEL.value:
            return _hardware_video_tokens(HARDWARE_SENTINEL)
        return _video_tokens(self.codec, self.bitrate)


@dataclass(frozen=True)
class VideoNVCodecArgument(Argument):
    """NVIDIA NVENC video codec."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.VIDEO_CODEC_NVIDIA
    codec: Union[VideoCodec, str] = VideoCodec.H264_NVENC
    bitrate: int = 0

    def tokens(self) -> List[str]:
        return _video_tokens(self.codec, self.bitrate)


@dataclass(frozen=True)
class VideoIntelCodecArgument(Argument):
    """Intel Quick Sync video codec."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.VIDEO_CODEC_INTEL
    codec: Union[VideoCodec, str] = VideoCodec.H264_QSV
    bitrate: int = 0

    def tokens(self) -> List[str]:
        return _video_tokens(self.codec, self.bitrate)


@dataclass(frozen=True)
class HardwareVideoCodecArgument(Argument):
    """Dedicated hardware codec path (no bitrate flag)."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.HARDWARE_VIDEO_CODEC
    codec: Union[VideoCodec, str] = HARDWARE_SENTINEL

    def tokens(self) -> List[str]:
        return _hardware_video_tokens(self.codec)


@dataclass(frozen=True)
class AudioCodecArgument(Argument):
    """Audio codec with bitrate taken from the quality level."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.AUDIO_CODEC
    codec: Union[AudioCodec, str] = AudioCodec.AAC
    quality: Union[AudioQuality, int] = AudioQuality.NORMAL

    def tokens(self) -> List[str]:
        return ["-c:a", _value(self.codec), "-b:a", f"{int(self.quality)}k"]


@dataclass(frozen=True)
class SpeedArgument(Argument):
    """Encoder speed preset."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.SPEED
    speed: Union[Speed, str] = Speed.SUPER_FAST

    def tokens(self) -> List[str]:
        return ["-preset", _value(self.speed)]


# ============================================================================
# PLACEMENT / GEOMETRY
# ============================================================================

@dataclass(frozen=True)
class SeekArgument(Argument):
    """Seek offset, in seconds or as a timedelta."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.SEEK
    position: Union[float, int, timedelta]

    def tokens(self) -> List[str]:
        return ["-ss", _format_timestamp(self.position)]


@dataclass(frozen=True)
class SizeArgument(Argument):
    """Frame size (-s WxH)."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.SIZE
    width: int
    height: int

    def tokens(self) -> List[str]:
        return ["-s", f"{self.width}x{self.height}"]


@dataclass(frozen=True)
class ScaleArgument(Argument):
    """Scale video filter."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.SCALE
    width: int
    height: int

    def tokens(self) -> List[str]:
        return ["-vf", f"scale={self.width}:{self.height}"]


@dataclass(frozen=True)
class FrameRateArgument(Argument):
    kind: ClassVar[ArgumentKind] = ArgumentKind.FRAME_RATE
    fps: float

    def tokens(self) -> List[str]:
        return ["-r", f"{self.fps:g}"]


@dataclass(frozen=True)
class StartNumberArgument(Argument):
    """First index of an image sequence."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.START_NUMBER
    start: int

    def tokens(self) -> List[str]:
        return ["-start_number", str(self.start)]


@dataclass(frozen=True)
class LoopArgument(Argument):
    kind: ClassVar[ArgumentKind] = ArgumentKind.LOOP
    count: int

    def tokens(self) -> List[str]:
        return ["-loop", str(self.count)]


@dataclass(frozen=True)
class FrameOutputCountArgument(Argument):
    """Stop after writing this many video frames."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.FRAME_OUTPUT_COUNT
    frames: int

    def tokens(self) -> List[str]:
        return ["-vframes", str(self.frames)]


# ============================================================================
# STREAM CONTROL
# ============================================================================

_CHANNEL_SUFFIX = {
    Channel.VIDEO: ":v",
    Channel.AUDIO: ":a",
    Channel.BOTH: "",
}


@dataclass(frozen=True)
class CopyArgument(Argument):
    """Stream copy instead of re-encode."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.COPY
    channel: Channel = Channel.BOTH

    def tokens(self) -> List[str]:
        return [f"-c{_CHANNEL_SUFFIX[Channel(self.channel)]}", "copy"]


@dataclass(frozen=True)
class DisableChannelArgument(Argument):
    """Drop a channel from the output (-vn / -an)."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.DISABLE_CHANNEL
    channel: Channel

    def tokens(self) -> List[str]:
        channel = Channel(self.channel)
        if channel == Channel.VIDEO:
            return ["-vn"]
        if channel == Channel.AUDIO:
            return ["-an"]
        return ["-vn", "-an"]


@dataclass(frozen=True)
class BitstreamFilterArgument(Argument):
    kind: ClassVar[ArgumentKind] = ArgumentKind.BITSTREAM_FILTER
    channel: Channel
    filter: Union[BitstreamFilter, str]

    def tokens(self) -> List[str]:
        return [f"-bsf{_CHANNEL_SUFFIX[Channel(self.channel)]}", _value(self.filter)]


@dataclass(frozen=True)
class ShortestArgument(Argument):
    """Finish encoding when the shortest input ends."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.SHORTEST
    enabled: bool = True

    def tokens(self) -> List[str]:
        return ["-shortest"] if self.enabled else []


# ============================================================================
# STRUCTURAL
# ============================================================================

@dataclass(frozen=True)
class ThreadsArgument(Argument):
    """
    Encoder thread count.

    multithreaded=True uses every CPU core, False pins to one thread.
    An explicit count wins over both.
    """

    kind: ClassVar[ArgumentKind] = ArgumentKind.THREADS
    multithreaded: bool = True
    count: Optional[int] = None

    def tokens(self) -> List[str]:
        if self.count is not None:
            threads = self.count
        elif self.multithreaded:
            threads = os.cpu_count() or 1
        else:
            threads = 1
        return ["-threads", str(threads)]


@dataclass(frozen=True)
class ForceFormatArgument(Argument):
    """Force the output container format (-f)."""

    kind: ClassVar[ArgumentKind] = ArgumentKind.FORCE_FORMAT
    format: Union[VideoCodec, str]

    def tokens(self) -> List[str]:
        return ["-f", _value(self.format)]
