"""
FFmpeg facade.

Binds a resolved ffmpeg binary to the argument builder and the process
supervisor, and offers named recipes (convert, snapshot, join, ...) built
from argument containers.

Design rules:
- Invocations are strictly sequential: at most one supervisor at a time
- run() returns the InvocationResult; convert() and the recipes raise
- Recipes never overwrite an existing output (no -y, ffmpeg would prompt)
- Temporary files of multi-step recipes are removed on every path
- No probing: durations and dimensions come from MediaSource
"""

import logging
import shutil
import threading
from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union
from urllib.parse import urlparse

from .arguments import (
    ArgumentBuilder,
    ArgumentContainer,
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
    InputArgument,
    LoopArgument,
    OutputArgument,
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
from .config import FFmpegOptions, find_ffmpeg
from .enums import (
    AudioCodec,
    AudioQuality,
    BitstreamFilter,
    Channel,
    EncoderType,
    Speed,
    VideoCodec,
    VideoSize,
    VideoType,
)
from .errors import CompositionError, FFmpegError, OperationError
from .execution import InvocationResult, ProcessSupervisor
from .execution.progress import ProgressCallback
from .models import MediaSource

logger = logging.getLogger(__name__)


# Video bitrate (kbit/s) used by the encoding recipes
DEFAULT_VIDEO_BITRATE = 2400

PNG_EXTENSION = ".png"
MP3_EXTENSION = ".mp3"
MP4_EXTENSION = ".mp4"
TS_EXTENSION = ".ts"

# Zero-padded index used for temporary image sequence names
SEQUENCE_PATTERN = "%09d"

SourceLike = Union[MediaSource, str, Path]
PathLike = Union[str, Path]
Duration = Union[float, int, timedelta, None]


def _as_source(source: SourceLike) -> MediaSource:
    if isinstance(source, MediaSource):
        return source
    return MediaSource(path=str(source))


def even_output_size(source: MediaSource, size: VideoSize) -> Tuple[int, int]:
    """
    Output dimensions for a target height, width forced even.

    VideoSize.ORIGINAL keeps the source dimensions.
    """
    if not source.has_dimensions:
        raise ValueError(f"Source dimensions unknown: {source.path}")

    size = VideoSize(size)
    scale = 1.0 if size == VideoSize.ORIGINAL else source.height / int(size)

    width = int(source.width / scale)
    height = int(source.height / scale)
    if width % 2 != 0:
        width += 1
    return width, height


def snapshot_size(
    source: MediaSource,
    size: Optional[Tuple[int, int]] = None,
) -> Optional[Tuple[int, int]]:
    """
    Resolve a requested thumbnail size.

    None or (0, 0) means source size. A single 0 side is derived from the
    source aspect ratio. Returns None when nothing can be resolved.
    """
    if size is None or size == (0, 0):
        if not source.has_dimensions:
            return None
        return source.width, source.height

    width, height = size
    if width and height:
        return width, height

    if not source.has_dimensions:
        raise ValueError(f"Cannot derive snapshot size without source dimensions: {source.path}")

    if width == 0:
        width = int(source.width * height / source.height)
    else:
        height = int(source.height * width / source.width)
    return width, height


class FFMpeg:
    """
    One ffmpeg binary, one invocation at a time.

    Usage:
        ffmpeg = FFMpeg(on_progress=lambda pct: print(f"{pct}%"))
        output = ffmpeg.convert_video(
            MediaSource(path="in.mov", duration_seconds=60, width=1920, height=1080),
            "out.mp4",
            size=VideoSize.HD,
        )

    stop() may be called from another thread while a recipe is running.
    """

    def __init__(
        self,
        options: Optional[FFmpegOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """
        Raises:
            FFmpegNotFoundError: If no ffmpeg binary can be located
        """
        self.options = options or FFmpegOptions()
        self.on_progress = on_progress
        self.executable = find_ffmpeg(self.options)
        self.builder = ArgumentBuilder()

        self._lock = threading.Lock()
        self._supervisor: Optional[ProcessSupervisor] = None

        logger.debug(f"[FFmpeg] Using binary: {self.executable}")

    # ------------------------------------------------------------------
    # Core invocation
    # ------------------------------------------------------------------

    @property
    def is_working(self) -> bool:
        with self._lock:
            return self._supervisor is not None and self._supervisor.is_running

    def build_arguments(self, container: ArgumentContainer) -> List[str]:
        return self.builder.build(container)

    def run(self, container: ArgumentContainer, target_duration: Duration = None) -> InvocationResult:
        """
        Build and execute one invocation.

        An existing output is refused unless the container carries
        OverrideArgument; with it, the old file is removed before launch so
        the output check only ever sees what this invocation wrote.

        Returns:
            InvocationResult (FAILED results are returned, not raised)

        Raises:
            CompositionError: Container is not executable, or its output
                exists without OverrideArgument (nothing spawned)
            RuntimeError: Another invocation is already in progress
        """
        arguments = self.build_arguments(container)
        output_path = Path(container.get(ArgumentKind.OUTPUT).path)
        overwrite = ArgumentKind.OVERRIDE in container

        # Without -y ffmpeg would prompt on stdin and never exit
        if output_path.exists() and not overwrite:
            raise CompositionError(
                f"Output file already exists: {output_path} (add OverrideArgument to replace it)"
            )

        supervisor = ProcessSupervisor(
            executable=self.executable,
            arguments=arguments,
            output_path=output_path,
            target_duration=target_duration,
            on_progress=self.on_progress,
        )

        with self._lock:
            if self._supervisor is not None:
                raise RuntimeError("An ffmpeg invocation is already in progress")
            self._supervisor = supervisor

        try:
            if overwrite and output_path.is_file():
                logger.info(f"[FFmpeg] Removing existing output before overwrite: {output_path}")
                output_path.unlink()
            return supervisor.run()
        finally:
            with self._lock:
                self._supervisor = None

    def convert(self, container: ArgumentContainer, target_duration: Duration = None) -> Path:
        """
        Execute a caller-built container.

        Returns:
            Path of the produced output

        Raises:
            CompositionError, LaunchError, ProcessError
        """
        result = self.run(container, target_duration)
        result.raise_for_status()
        return Path(result.output_path)

    def stop(self) -> bool:
        """Request a graceful stop of the current invocation."""
        with self._lock:
            supervisor = self._supervisor

        if supervisor is None:
            return False
        return supervisor.cancel()

    # ------------------------------------------------------------------
    # Recipes
    # ------------------------------------------------------------------

    def convert_video(
        self,
        source: SourceLike,
        output: PathLike,
        encoder_type: EncoderType = EncoderType.SOFTWARE,
        video_type: VideoType = VideoType.MP4,
        speed: Speed = Speed.SUPER_FAST,
        size: VideoSize = VideoSize.ORIGINAL,
        audio_quality: AudioQuality = AudioQuality.NORMAL,
        multithreaded: bool = False,
    ) -> Path:
        """
        Convert a video to MP4, OGV or TS.

        Supported combinations: software MP4/OGV/TS, NVIDIA MP4, Intel MP4.
        TS is a stream copy and needs no dimensions; the others scale to
        `size` with an even output width.

        Raises:
            NotImplementedError: Unsupported encoder / type combination
            OperationError: Invalid paths or ffmpeg failure
        """
        operation = "convert"
        source = _as_source(source)
        output = Path(output)
        encoder_type = EncoderType(encoder_type)
        video_type = VideoType(video_type)

        self._check_conversion(operation, source, output)
        self._check_extension(operation, output, video_type.value)

        container = ArgumentContainer(InputArgument(source.path))

        if encoder_type == EncoderType.SOFTWARE and video_type == VideoType.TS:
            container.add(
                CopyArgument(),
                BitstreamFilterArgument(Channel.VIDEO, BitstreamFilter.H264_MP4TOANNEXB),
                ForceFormatArgument(VideoCodec.MPEGTS),
            )
        elif encoder_type == EncoderType.SOFTWARE and video_type in (VideoType.MP4, VideoType.OGV):
            video_codec, audio_codec = (
                (VideoCodec.LIBX264, AudioCodec.AAC) if video_type == VideoType.MP4
                else (VideoCodec.LIBTHEORA, AudioCodec.LIBVORBIS)
            )
            container.add(
                ThreadsArgument(multithreaded),
                ScaleArgument(*self._output_size(operation, source, size)),
                VideoCodecArgument(video_codec, DEFAULT_VIDEO_BITRATE),
                SpeedArgument(speed),
                AudioCodecArgument(audio_codec, audio_quality),
            )
        elif encoder_type == EncoderType.HARDWARE_NVIDIA and video_type == VideoType.MP4:
            container.add(
                HardwareAccelArgument(),
                VideoNVCodecArgument(VideoCodec.H264_NVENC, DEFAULT_VIDEO_BITRATE),
                ThreadsArgument(False),
                ScaleArgument(*self._output_size(operation, source, size)),
                AudioCodecArgument(AudioCodec.AAC, audio_quality),
            )
        elif encoder_type == EncoderType.HARDWARE_INTEL and video_type == VideoType.MP4:
            container.add(
                VideoIntelCodecArgument(VideoCodec.H264_QSV, DEFAULT_VIDEO_BITRATE),
                ThreadsArgument(False),
                ScaleArgument(*self._output_size(operation, source, size)),
                AudioCodecArgument(AudioCodec.AAC, audio_quality),
            )
        else:
            raise NotImplementedError(
                f"{video_type.name} is not supported for {encoder_type.value} encoding"
            )

        container.add(OutputArgument(output))
        return self._execute(
            operation,
            container,
            f"The video could not be converted to {video_type.name}",
            target_duration=source.duration_seconds,
        )

    def snapshot(
        self,
        source: SourceLike,
        output: PathLike,
        size: Optional[Tuple[int, int]] = None,
        capture_time: Duration = None,
    ) -> Path:
        """
        Save a single PNG frame.

        The output extension is forced to .png. Capture defaults to one
        third of the source duration (start of file when unknown).
        """
        operation = "snapshot"
        source = _as_source(source)
        output = Path(output)
        if output.suffix.lower() != PNG_EXTENSION:
            output = output.with_suffix(PNG_EXTENSION)

        if capture_time is None:
            capture_time = (source.duration_seconds or 0) / 3

        self._check_conversion(operation, source, output)

        try:
            resolved_size = snapshot_size(source, size)
        except ValueError as e:
            raise OperationError(operation, str(e), cause=e) from e

        container = ArgumentContainer(
            InputArgument(source.path),
            VideoCodecArgument(VideoCodec.PNG),
            FrameOutputCountArgument(1),
            SeekArgument(capture_time),
        )
        if resolved_size is not None:
            container.add(SizeArgument(*resolved_size))
        container.add(OutputArgument(output))

        return self._execute(operation, container, "Could not take snapshot")

    def poster_with_audio(self, image: PathLike, audio: PathLike, output: PathLike) -> Path:
        """Loop a still image over an audio track into an MP4."""
        operation = "poster_with_audio"
        output = Path(output)

        self._require_inputs(operation, image, audio)
        self._require_new_output(operation, output)
        self._check_extension(operation, output, MP4_EXTENSION)

        container = ArgumentContainer(
            LoopArgument(1),
            InputArgument(image, audio),
            VideoCodecArgument(VideoCodec.LIBX264, DEFAULT_VIDEO_BITRATE),
            AudioCodecArgument(AudioCodec.AAC, AudioQuality.NORMAL),
            ShortestArgument(True),
            OutputArgument(output),
        )
        return self._execute(
            operation, container, "An error occurred while adding the audio file to the image"
        )

    def join(self, output: PathLike, *sources: SourceLike) -> Path:
        """
        Concatenate videos.

        Each source is remuxed to an MPEG-TS intermediate, the intermediates
        are joined with the concat protocol, then removed.
        """
        operation = "join"
        output = Path(output)
        sources = [_as_source(s) for s in sources]

        if not sources:
            raise OperationError(operation, "At least one source is required")

        self._require_new_output(operation, output)
        self._require_inputs(operation, *(s.path for s in sources))

        intermediates: List[Path] = []
        try:
            for source in sources:
                destination = self._temp_path(source.file).with_suffix(TS_EXTENSION)
                self._require_new_output(operation, destination)
                intermediates.append(destination)
                self.convert_video(source, destination, video_type=VideoType.TS)

            container = ArgumentContainer(
                ConcatArgument(tuple(str(p) for p in intermediates)),
                CopyArgument(),
                BitstreamFilterArgument(Channel.AUDIO, BitstreamFilter.AAC_ADTSTOASC),
                OutputArgument(output),
            )
            return self._execute(operation, container, "Could not join the provided video files")
        finally:
            self._cleanup(intermediates)

    def join_image_sequence(
        self,
        output: PathLike,
        *images: SourceLike,
        frame_rate: float = 30,
    ) -> Path:
        """
        Encode still images into a video, in the given order.

        Images are copied to zero-padded temporary names so ffmpeg can read
        them as a numbered sequence; the copies are removed afterwards.
        """
        operation = "join_image_sequence"
        output = Path(output)
        images = [_as_source(i) for i in images]

        if not images:
            raise OperationError(operation, "At least one image is required")

        self._require_new_output(operation, output)
        self._require_inputs(operation, *(i.path for i in images))

        first = images[0]
        extension = first.file.suffix
        directory = self._temp_path(first.file).parent

        copies: List[Path] = []
        try:
            for index, image in enumerate(images):
                destination = directory / f"{SEQUENCE_PATTERN % index}{extension}"
                if destination.exists():
                    raise OperationError(
                        operation, f"Temporary sequence file already exists: {destination}"
                    )
                shutil.copyfile(image.path, destination)
                copies.append(destination)

            container = ArgumentContainer(
                FrameRateArgument(frame_rate),
                StartNumberArgument(0),
                InputArgument(directory / f"{SEQUENCE_PATTERN}{extension}"),
                FrameOutputCountArgument(len(images)),
                VideoCodecArgument(VideoCodec.LIBX264),
            )
            if first.has_dimensions:
                container.add(SizeArgument(first.width, first.height))
            container.add(OutputArgument(output))

            return self._execute(operation, container, "Could not join the provided image sequence")
        finally:
            self._cleanup(copies)

    def save_m3u8_stream(self, uri: str, output: PathLike) -> Path:
        """
        Record an HLS stream to an MP4.

        Raises:
            ValueError: The URI is not http(s)
        """
        operation = "save_m3u8_stream"
        output = Path(output)

        scheme = urlparse(uri).scheme
        if scheme not in ("http", "https"):
            raise ValueError(f"Uri: {uri}, does not point to a valid http(s) stream")

        self._require_new_output(operation, output)
        self._check_extension(operation, output, MP4_EXTENSION)

        container = ArgumentContainer(InputArgument(uri), OutputArgument(output))
        return self._execute(operation, container, f"Saving the {uri} stream failed")

    def mute(self, source: SourceLike, output: PathLike) -> Path:
        """Copy a video without its audio."""
        operation = "mute"
        source = _as_source(source)
        output = Path(output)

        self._check_conversion(operation, source, output)
        self._check_extension(operation, output, source.extension)

        container = ArgumentContainer(
            InputArgument(source.path),
            CopyArgument(),
            DisableChannelArgument(Channel.AUDIO),
            OutputArgument(output),
        )
        return self._execute(operation, container, "Could not mute the requested video")

    def extract_audio(self, source: SourceLike, output: PathLike) -> Path:
        """Write the audio of a video to an MP3."""
        operation = "extract_audio"
        source = _as_source(source)
        output = Path(output)

        self._check_conversion(operation, source, output)
        self._check_extension(operation, output, MP3_EXTENSION)

        container = ArgumentContainer(
            InputArgument(source.path),
            DisableChannelArgument(Channel.VIDEO),
            OutputArgument(output),
        )
        return self._execute(
            operation,
            container,
            "Could not extract the audio from the requested video",
            target_duration=source.duration_seconds,
        )

    def replace_audio(
        self,
        source: SourceLike,
        audio: PathLike,
        output: PathLike,
        stop_at_shortest: bool = False,
    ) -> Path:
        """Pair the video of `source` with a new audio track (re-encoded AAC)."""
        operation = "replace_audio"
        source = _as_source(source)
        output = Path(output)

        self._check_conversion(operation, source, output)
        self._require_inputs(operation, audio)
        self._check_extension(operation, output, source.extension)

        container = ArgumentContainer(
            InputArgument(source.path, audio),
            CopyArgument(),
            AudioCodecArgument(AudioCodec.AAC, AudioQuality.HD),
            ShortestArgument(stop_at_shortest),
            OutputArgument(output),
        )
        return self._execute(
            operation,
            container,
            "Could not replace the video audio",
            target_duration=source.duration_seconds,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _execute(
        self,
        operation: str,
        container: ArgumentContainer,
        message: str,
        target_duration: Duration = None,
    ) -> Path:
        """Run a recipe container; wrap any failure in OperationError."""
        result = self.run(container, target_duration)
        logger.info(f"[FFmpeg] {operation}: {result.summary()}")

        try:
            result.raise_for_status()
        except FFmpegError as e:
            raise OperationError(operation, f"{message}: {result.failure_reason}", cause=e) from e

        return Path(result.output_path)

    def _output_size(
        self, operation: str, source: MediaSource, size: VideoSize
    ) -> Tuple[int, int]:
        try:
            return even_output_size(source, size)
        except ValueError as e:
            raise OperationError(operation, str(e), cause=e) from e

    def _temp_path(self, path: Path) -> Path:
        """Where an intermediate derived from `path` is written."""
        if self.options.temp_directory:
            temp_directory = Path(self.options.temp_directory)
            temp_directory.mkdir(parents=True, exist_ok=True)
            return temp_directory / path.name
        return path

    def _check_conversion(self, operation: str, source: MediaSource, output: Path) -> None:
        self._require_inputs(operation, source.path)
        self._require_new_output(operation, output)

    @staticmethod
    def _require_inputs(operation: str, *paths: PathLike) -> None:
        for path in paths:
            if not Path(path).is_file():
                raise OperationError(operation, f"Input file not found: {path}")

    @staticmethod
    def _require_new_output(operation: str, output: Path) -> None:
        if output.exists():
            raise OperationError(operation, f"Output file already exists: {output}")

    @staticmethod
    def _check_extension(operation: str, output: Path, expected: str) -> None:
        if output.suffix.lower() != expected.lower():
            raise OperationError(
                operation, f"Output extension must be {expected}, got: {output.suffix or '(none)'}"
            )

    @staticmethod
    def _cleanup(paths: Sequence[Path]) -> None:
        for path in paths:
            try:
                if path.is_file():
                    path.unlink()
            except OSError as e:
                logger.warning(f"[FFmpeg] Could not remove temporary file {path}: {e}")
