#!/usr/bin/env python3
"""
ffdriver CLI - Thin entrypoint for composing and running ffmpeg commands.

Commands:
- command: print the ffmpeg command a set of options composes to
- convert: run it, reporting progress on stderr

Design Principles:
==================
- CLI is a dispatcher only
- Surface errors verbatim from the execution layer
- Exit non-zero on failure
- No interactive prompts

Exit Codes:
===========
- 0: Success (including a cancelled run whose output is valid)
- 1: Composition error (bad options, incomplete command)
- 2: Process error (ffmpeg produced no valid output)
- 4: System error (config, ffmpeg not found, launch failure)
"""

import argparse
import logging
import shlex
import sys
from typing import List, NoReturn, Optional, Tuple

from .arguments import (
    ArgumentContainer,
    AudioCodecArgument,
    HardwareAccelArgument,
    InputArgument,
    OutputArgument,
    OverrideArgument,
    ScaleArgument,
    SeekArgument,
    SpeedArgument,
    ThreadsArgument,
    VideoCodecArgument,
    build_arguments,
)
from .config import FFmpegOptions, find_ffmpeg, load_options
from .enums import AudioCodec, AudioQuality, Speed, VideoCodec
from .errors import CompositionError, FFmpegError, FFmpegNotFoundError
from .execution import FailureType, InvocationStatus
from .ffmpeg import FFMpeg

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def _load_options(args: argparse.Namespace) -> FFmpegOptions:
    """
    Load options and configure logging.

    Raises:
        SystemExit(4): Config file missing or invalid
    """
    try:
        options = load_options(args.config)
    except FFmpegError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(4)

    _configure_logging(args.log_level or options.log_level)
    return options


def _parse_dimensions(value: str) -> Tuple[int, int]:
    """Parse WIDTHxHEIGHT."""
    try:
        width, height = (int(part) for part in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got: {value}")
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError(f"dimensions must be positive: {value}")
    return width, height


def _build_container(args: argparse.Namespace) -> ArgumentContainer:
    """Translate parsed options into an argument container."""
    container = ArgumentContainer(InputArgument(args.input))

    if args.hwaccel:
        container.add(HardwareAccelArgument())
    if args.seek is not None:
        container.add(SeekArgument(args.seek))
    if args.threads is not None:
        container.add(ThreadsArgument(count=args.threads))
    if args.scale is not None:
        container.add(ScaleArgument(*args.scale))
    if args.video_codec:
        container.add(VideoCodecArgument(VideoCodec(args.video_codec), args.bitrate))
    if args.speed:
        container.add(SpeedArgument(Speed(args.speed)))
    if args.audio_codec:
        container.add(AudioCodecArgument(AudioCodec(args.audio_codec), AudioQuality[args.audio_quality]))
    if args.overwrite:
        container.add(OverrideArgument())

    container.add(OutputArgument(args.output))
    return container


def _print_progress(percentage: float) -> None:
    print(f"\rProgress: {percentage:6.2f}%", end="", file=sys.stderr, flush=True)


def cmd_command(args: argparse.Namespace) -> NoReturn:
    """
    Print the composed command without running it.

    Exit codes:
        0: Command printed
        1: Composition error
        4: Config error
    """
    options = _load_options(args)

    try:
        tokens = build_arguments(_build_container(args))
    except CompositionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        executable = find_ffmpeg(options)
    except FFmpegNotFoundError:
        executable = "ffmpeg"

    print(shlex.join([executable, *tokens]))
    sys.exit(0)


def cmd_convert(args: argparse.Namespace) -> NoReturn:
    """
    Compose and run the command.

    Exit codes:
        0: Output produced
        1: Composition error
        2: Process error
        4: ffmpeg not found or could not be launched
    """
    options = _load_options(args)

    try:
        ffmpeg = FFMpeg(options, on_progress=_print_progress)
    except FFmpegNotFoundError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(4)

    try:
        result = ffmpeg.run(_build_container(args), target_duration=args.duration)
    except CompositionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if args.duration:
        print(file=sys.stderr)
    print(result.summary())

    if result.status != InvocationStatus.FAILED:
        sys.exit(0)
    if result.failure_type == FailureType.LAUNCH:
        sys.exit(4)

    if result.diagnostics:
        print(result.diagnostics, file=sys.stderr)
    sys.exit(2)


def _add_composition_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('input', help='Input file or URI')
    parser.add_argument('output', help='Output file')
    parser.add_argument(
        '--video-codec',
        choices=[c.value for c in VideoCodec],
        help='Video codec'
    )
    parser.add_argument(
        '--bitrate',
        type=int,
        default=0,
        help='Video bitrate in kbit/s (default: encoder default)'
    )
    parser.add_argument(
        '--audio-codec',
        choices=[c.value for c in AudioCodec],
        help='Audio codec'
    )
    parser.add_argument(
        '--audio-quality',
        choices=[q.name for q in AudioQuality],
        default=AudioQuality.NORMAL.name,
        help='Audio bitrate preset (default: NORMAL)'
    )
    parser.add_argument('--speed', choices=[s.value for s in Speed], help='Encoder preset')
    parser.add_argument('--scale', type=_parse_dimensions, help='Scale to WIDTHxHEIGHT')
    parser.add_argument('--threads', type=int, help='Encoder thread count')
    parser.add_argument('--seek', type=float, help='Seek position in seconds')
    parser.add_argument('--hwaccel', action='store_true', help='Enable CUVID hardware decoding')
    parser.add_argument('-y', '--overwrite', action='store_true', help='Overwrite the output file')
    parser.add_argument('--config', help='Path to ffmpeg.config.json')
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Log level (default: from config, INFO)'
    )


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """
    Main CLI entrypoint.

    Parses arguments and dispatches to subcommands.
    """
    parser = argparse.ArgumentParser(
        prog='ffdriver',
        description='ffdriver - Compose and supervise ffmpeg invocations',
    )

    subparsers = parser.add_subparsers(dest='subcommand', required=True, help='Command to execute')

    parser_command = subparsers.add_parser(
        'command',
        help='Print the ffmpeg command without running it'
    )
    _add_composition_arguments(parser_command)
    parser_command.set_defaults(func=cmd_command)

    parser_convert = subparsers.add_parser(
        'convert',
        help='Run ffmpeg and report progress'
    )
    _add_composition_arguments(parser_convert)
    parser_convert.add_argument(
        '--duration',
        type=float,
        help='Input duration in seconds (enables progress reporting)'
    )
    parser_convert.set_defaults(func=cmd_convert)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == '__main__':
    main()
