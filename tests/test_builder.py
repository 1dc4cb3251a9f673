"""
Tests for ArgumentBuilder ordering and container validation.
"""

import pytest

from ffdriver.arguments import (
    HARDWARE_SENTINEL,
    RENDER_ORDER,
    ArgumentBuilder,
    ArgumentContainer,
    ArgumentKind,
    AudioCodecArgument,
    ConcatArgument,
    CopyArgument,
    FrameRateArgument,
    HardwareAccelArgument,
    HardwareVideoCodecArgument,
    InputArgument,
    LoopArgument,
    OutputArgument,
    OverrideArgument,
    ScaleArgument,
    SeekArgument,
    SpeedArgument,
    StartNumberArgument,
    ThreadsArgument,
    VideoCodecArgument,
    VideoIntelCodecArgument,
    VideoNVCodecArgument,
    build_arguments,
    validate_container,
)
from ffdriver.enums import AudioCodec, AudioQuality, Speed, VideoCodec
from ffdriver.errors import CompositionError


class TestBuildOrder:
    """Tokens come out in protocol order regardless of insertion order."""

    def test_minimal_encode(self):
        container = ArgumentContainer(
            InputArgument("A"),
            VideoCodecArgument(VideoCodec.LIBX264, 2400),
            OutputArgument("B"),
        )
        assert build_arguments(container) == ["-i", "A", "-c:v", "libx264", "-b:v", "2400k", "B"]

    def test_insertion_order_is_irrelevant(self):
        container = ArgumentContainer(
            OutputArgument("B"),
            VideoCodecArgument(VideoCodec.LIBX264, 2400),
            InputArgument("A"),
        )
        assert build_arguments(container) == ["-i", "A", "-c:v", "libx264", "-b:v", "2400k", "B"]

    def test_hardware_accel_precedes_input(self):
        container = ArgumentContainer(
            InputArgument("in.mp4"),
            VideoNVCodecArgument(VideoCodec.H264_NVENC, 2400),
            OutputArgument("out.mp4"),
            HardwareAccelArgument(),
        )
        tokens = build_arguments(container)

        assert tokens[:4] == ["-hwaccel", "cuvid", "-i", "in.mp4"]

    def test_input_options_precede_input(self):
        """Loop, frame rate and start number apply to the input that follows."""
        container = ArgumentContainer(
            InputArgument("%09d.png"),
            FrameRateArgument(24),
            StartNumberArgument(0),
            OutputArgument("out.mp4"),
        )
        assert build_arguments(container) == [
            "-r", "24", "-start_number", "0", "-i", "%09d.png", "out.mp4"
        ]

    def test_loop_precedes_input(self):
        container = ArgumentContainer(
            InputArgument("poster.png", "audio.mp3"),
            LoopArgument(1),
            OutputArgument("out.mp4"),
        )
        assert build_arguments(container)[:4] == ["-loop", "1", "-i", "poster.png"]

    def test_output_is_always_last(self):
        container = ArgumentContainer(
            OutputArgument("out.mp4"),
            OverrideArgument(),
            InputArgument("in.mp4"),
            SeekArgument(5),
            CopyArgument(),
        )
        tokens = build_arguments(container)

        assert tokens[-1] == "out.mp4"
        assert tokens.count("out.mp4") == 1

    def test_full_software_conversion(self):
        container = ArgumentContainer(
            InputArgument("in.mov"),
            ThreadsArgument(count=2),
            ScaleArgument(1280, 720),
            VideoCodecArgument(VideoCodec.LIBX264, 2400),
            SpeedArgument(Speed.FAST),
            AudioCodecArgument(AudioCodec.AAC, AudioQuality.NORMAL),
            OutputArgument("out.mp4"),
        )
        assert build_arguments(container) == [
            "-i", "in.mov",
            "-threads", "2",
            "-vf", "scale=1280:720",
            "-c:v", "libx264", "-b:v", "2400k",
            "-preset", "fast",
            "-c:a", "aac", "-b:a", "128k",
            "out.mp4",
        ]

    def test_concat_is_the_input_source(self):
        container = ArgumentContainer(
            ConcatArgument(("a.ts", "b.ts")),
            CopyArgument(),
            OutputArgument("joined.mp4"),
        )
        assert build_arguments(container) == ["-i", "concat:a.ts|b.ts", "-c", "copy", "joined.mp4"]

    def test_build_is_idempotent(self):
        container = ArgumentContainer(
            InputArgument("in.mp4"),
            VideoCodecArgument(VideoCodec.LIBX264),
            OutputArgument("out.mp4"),
        )
        builder = ArgumentBuilder()

        assert builder.build(container) == builder.build(container)
        assert len(container) == 3

    def test_render_order_covers_every_kind(self):
        """Every kind renders at exactly one position."""
        assert len(RENDER_ORDER) == len(set(RENDER_ORDER))
        assert set(RENDER_ORDER) == set(ArgumentKind)

    def test_render_order_bookends(self):
        assert RENDER_ORDER[0] == ArgumentKind.HARDWARE_ACCEL
        assert RENDER_ORDER[-1] == ArgumentKind.OUTPUT


class TestHardwareCodecs:
    """Hardware encoders drop software-only flags."""

    @pytest.mark.parametrize("codec_argument", [
        VideoNVCodecArgument(VideoCodec.H264_NVENC, 2400),
        VideoIntelCodecArgument(VideoCodec.H264_QSV, 2400),
        HardwareVideoCodecArgument(),
    ])
    def test_speed_suppressed(self, codec_argument):
        container = ArgumentContainer(
            InputArgument("in.mp4"),
            codec_argument,
            SpeedArgument(Speed.FAST),
            OutputArgument("out.mp4"),
        )
        tokens = build_arguments(container)

        assert "-preset" not in tokens
        # Suppression does not mutate the container
        assert ArgumentKind.SPEED in container

    def test_speed_kept_for_software(self):
        container = ArgumentContainer(
            InputArgument("in.mp4"),
            VideoCodecArgument(VideoCodec.LIBX264),
            SpeedArgument(Speed.FAST),
            OutputArgument("out.mp4"),
        )
        assert "-preset" in build_arguments(container)

    def test_sentinel_codec_matches_hardware_codec(self):
        """Same position, same tokens: the sentinel takes the hardware path."""
        software = ArgumentContainer(
            InputArgument("in.mp4"),
            VideoCodecArgument(HARDWARE_SENTINEL, 2400),
            OutputArgument("out.mp4"),
        )
        hardware = ArgumentContainer(
            InputArgument("in.mp4"),
            HardwareVideoCodecArgument(HARDWARE_SENTINEL),
            OutputArgument("out.mp4"),
        )
        assert build_arguments(software) == build_arguments(hardware)
        assert build_arguments(software) == ["-i", "in.mp4", "-c:v", "h264_cuvid", "out.mp4"]

    def test_sentinel_codec_suppresses_speed(self):
        container = ArgumentContainer(
            InputArgument("in.mp4"),
            VideoCodecArgument(HARDWARE_SENTINEL),
            SpeedArgument(Speed.FAST),
            OutputArgument("out.mp4"),
        )
        assert "-preset" not in build_arguments(container)


class TestValidation:
    """Non-executable containers raise CompositionError."""

    def test_missing_output(self):
        container = ArgumentContainer(InputArgument("in.mp4"))

        with pytest.raises(CompositionError, match="output"):
            build_arguments(container)

    def test_missing_input(self):
        container = ArgumentContainer(VideoCodecArgument(VideoCodec.LIBX264), OutputArgument("out.mp4"))

        with pytest.raises(CompositionError, match="input"):
            build_arguments(container)

    def test_input_and_concat_conflict(self):
        container = ArgumentContainer(
            InputArgument("in.mp4"),
            ConcatArgument(("a.ts",)),
            OutputArgument("out.mp4"),
        )
        with pytest.raises(CompositionError, match="both"):
            validate_container(container)

    def test_empty_container(self):
        with pytest.raises(CompositionError):
            ArgumentBuilder().build(ArgumentContainer())
