"""
Enumerations shared by the argument model and the recipes.

Enum values are the exact spellings ffmpeg expects on the command line
unless noted otherwise.
"""

from enum import Enum, IntEnum


class VideoCodec(str, Enum):
    """
    Video codecs and formats understood by the argument model.

    H264_CUVID is a hardware (NVDEC) codec. Any video codec argument
    carrying it renders through the hardware path.
    """

    LIBX264 = "libx264"
    LIBVPX = "libvpx"
    LIBTHEORA = "libtheora"
    PNG = "png"
    MPEGTS = "mpegts"
    H264_NVENC = "h264_nvenc"
    H264_QSV = "h264_qsv"
    H264_CUVID = "h264_cuvid"


class AudioCodec(str, Enum):
    """Audio codecs."""

    AAC = "aac"
    LIBVORBIS = "libvorbis"


class BitstreamFilter(str, Enum):
    """Bitstream filters used when remuxing."""

    H264_MP4TOANNEXB = "h264_mp4toannexb"
    AAC_ADTSTOASC = "aac_adtstoasc"


class Channel(str, Enum):
    """Stream channel selector."""

    AUDIO = "audio"
    VIDEO = "video"
    BOTH = "both"


class Speed(str, Enum):
    """x264-style encoder speed presets (faster = lower quality)."""

    VERY_SLOW = "veryslow"
    SLOWER = "slower"
    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"
    FASTER = "faster"
    VERY_FAST = "veryfast"
    SUPER_FAST = "superfast"
    ULTRA_FAST = "ultrafast"


class AudioQuality(IntEnum):
    """Audio bitrate in kbit/s."""

    ULTRA = 384
    HD = 192
    NORMAL = 128
    LOW = 64


class VideoSize(IntEnum):
    """Target output height in pixels. ORIGINAL keeps the source size."""

    FULL_HD = 1080
    HD = 720
    ED = 480
    LD = 360
    ORIGINAL = -1


class VideoType(str, Enum):
    """Output container produced by the convert recipe (value is the extension)."""

    MP4 = ".mp4"
    OGV = ".ogv"
    TS = ".ts"


class EncoderType(str, Enum):
    """Which encoder family the convert recipe targets."""

    SOFTWARE = "software"
    HARDWARE_NVIDIA = "hardware_nvidia"
    HARDWARE_INTEL = "hardware_intel"


class HardwareAccelerator(str, Enum):
    """Values for the -hwaccel input flag."""

    CUVID = "cuvid"
    CUDA = "cuda"
    QSV = "qsv"
    VAAPI = "vaapi"
