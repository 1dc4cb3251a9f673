"""
ArgumentBuilder: serialize an ArgumentContainer into ffmpeg tokens.

Order matters for ffmpeg:
1. Input options: hardware acceleration marker (must precede the input),
   loop, frame rate and image sequence start number
2. Input source (input files or concat pseudo-input)
3. Placement / geometry
4. Stream copy (a later -c:v / -c:a overrides it per stream)
5. Codecs and encoder tuning
6. Channel control and structural options
7. Output file (always last)

The builder is pure: building the same container twice yields the same
tokens. It does not detect conflicting values (two codec variants, etc.)
beyond the one-per-kind rule of the container.
"""

from typing import FrozenSet, List, Tuple

from ..errors import CompositionError
from .atoms import HARDWARE_SENTINEL, ArgumentKind
from .container import ArgumentContainer


# Input options: apply to the input that follows them
PRE_INPUT_KINDS: Tuple[ArgumentKind, ...] = (
    ArgumentKind.HARDWARE_ACCEL,
    ArgumentKind.LOOP,
    ArgumentKind.FRAME_RATE,
    ArgumentKind.START_NUMBER,
)

INPUT_KINDS: Tuple[ArgumentKind, ...] = (
    ArgumentKind.INPUT,
    ArgumentKind.CONCAT,
)

BODY_KINDS: Tuple[ArgumentKind, ...] = (
    ArgumentKind.SEEK,
    ArgumentKind.THREADS,
    ArgumentKind.SIZE,
    ArgumentKind.SCALE,
    ArgumentKind.COPY,
    ArgumentKind.VIDEO_CODEC,
    ArgumentKind.VIDEO_CODEC_NVIDIA,
    ArgumentKind.VIDEO_CODEC_INTEL,
    ArgumentKind.HARDWARE_VIDEO_CODEC,
    ArgumentKind.SPEED,
    ArgumentKind.AUDIO_CODEC,
    ArgumentKind.DISABLE_CHANNEL,
    ArgumentKind.BITSTREAM_FILTER,
    ArgumentKind.FRAME_OUTPUT_COUNT,
    ArgumentKind.SHORTEST,
    ArgumentKind.FORCE_FORMAT,
    ArgumentKind.OVERRIDE,
)

OUTPUT_KINDS: Tuple[ArgumentKind, ...] = (
    ArgumentKind.OUTPUT,
)

RENDER_ORDER: Tuple[ArgumentKind, ...] = PRE_INPUT_KINDS + INPUT_KINDS + BODY_KINDS + OUTPUT_KINDS

# Codec kinds that offload encoding to a hardware device
HARDWARE_CODEC_KINDS: FrozenSet[ArgumentKind] = frozenset({
    ArgumentKind.VIDEO_CODEC_NVIDIA,
    ArgumentKind.VIDEO_CODEC_INTEL,
    ArgumentKind.HARDWARE_VIDEO_CODEC,
})

# Software encoder flags that hardware encoders reject
SOFTWARE_ONLY_KINDS: FrozenSet[ArgumentKind] = frozenset({
    ArgumentKind.SPEED,
})


def validate_container(container: ArgumentContainer) -> None:
    """
    Check a container is executable.

    Raises:
        CompositionError: Missing/duplicated input source or missing output
    """
    has_input = ArgumentKind.INPUT in container
    has_concat = ArgumentKind.CONCAT in container

    if has_input and has_concat:
        raise CompositionError("Container has both an input and a concat source; use one")
    if not (has_input or has_concat):
        raise CompositionError("Container has no input source")
    if not container.has_output():
        raise CompositionError("Container has no output destination")


def _uses_hardware_codec(container: ArgumentContainer) -> bool:
    if any(kind in container for kind in HARDWARE_CODEC_KINDS):
        return True
    video_codec = container.find(ArgumentKind.VIDEO_CODEC)
    return video_codec is not None and video_codec.codec == HARDWARE_SENTINEL


def _suppressed_kinds(container: ArgumentContainer) -> FrozenSet[ArgumentKind]:
    if _uses_hardware_codec(container):
        return SOFTWARE_ONLY_KINDS
    return frozenset()


def build_arguments(container: ArgumentContainer) -> List[str]:
    """
    Build the ffmpeg token list for a container (without the executable).

    Args:
        container: Populated argument container

    Returns:
        Ordered list of tokens

    Raises:
        CompositionError: If the container is not executable
    """
    validate_container(container)

    suppressed = _suppressed_kinds(container)
    tokens: List[str] = []

    for kind in RENDER_ORDER:
        if kind in suppressed:
            continue
        argument = container.find(kind)
        if argument is None:
            continue
        tokens.extend(argument.tokens())

    return tokens


class ArgumentBuilder:
    """Object form of build_arguments(), held by the FFMpeg facade."""

    def build(self, container: ArgumentContainer) -> List[str]:
        return build_arguments(container)
