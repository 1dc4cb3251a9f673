"""
ffdriver configuration.

Options come from an optional JSON file; the ffmpeg binary is discovered
from an environment override, the options, PATH, then common locations.

Config file (ffmpeg.config.json):
    {
        "root_directory": "/opt/ffmpeg/bin",
        "temp_directory": "/tmp/ffdriver",
        "log_level": "INFO"
    }
"""

import json
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import FFmpegError, FFmpegNotFoundError

logger = logging.getLogger(__name__)


# Environment variable overrides (optional)
ENV_FFMPEG_PATH = "FFDRIVER_FFMPEG_PATH"
ENV_CONFIG_PATH = "FFDRIVER_CONFIG"

DEFAULT_CONFIG_PATH = "./ffmpeg.config.json"

COMMON_FFMPEG_PATHS = [
    "/usr/local/bin/ffmpeg",
    "/usr/bin/ffmpeg",
    "/opt/homebrew/bin/ffmpeg",
]

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class FFmpegOptions(BaseModel):
    """
    Runtime options.

    root_directory: Directory holding the ffmpeg binary
    ffmpeg_binary: Explicit path to the binary (wins over root_directory)
    temp_directory: Where multi-step operations write intermediates
                    (None = next to the source files)
    log_level: Level used by the CLI
    """

    model_config = ConfigDict(extra="forbid")

    root_directory: Optional[str] = None
    ffmpeg_binary: Optional[str] = None
    temp_directory: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(_LOG_LEVELS))}")
        return v


def load_options(config_path: Optional[Union[str, Path]] = None) -> FFmpegOptions:
    """
    Load options from a JSON file.

    Resolution: explicit path → FFDRIVER_CONFIG → ./ffmpeg.config.json.
    A missing default file yields default options; a missing explicit
    file is an error.

    Raises:
        FFmpegError: Explicit file missing, invalid JSON, or invalid options
    """
    explicit = config_path is not None or ENV_CONFIG_PATH in os.environ
    path = Path(config_path or os.environ.get(ENV_CONFIG_PATH, DEFAULT_CONFIG_PATH))

    if not path.exists():
        if explicit:
            raise FFmpegError(f"Config file not found: {path}")
        logger.debug(f"[Config] No config file at {path}, using defaults")
        return FFmpegOptions()

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise FFmpegError(f"Invalid JSON in config file {path}: {e}") from e

    try:
        options = FFmpegOptions(**data)
    except ValidationError as e:
        raise FFmpegError(f"Invalid options in config file {path}: {e}") from e

    logger.debug(f"[Config] Loaded options from {path}")
    return options


def _binary_name() -> str:
    return "ffmpeg.exe" if sys.platform == "win32" else "ffmpeg"


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def find_ffmpeg(options: Optional[FFmpegOptions] = None) -> str:
    """
    Locate the ffmpeg executable.

    Discovery priority:
    1. FFDRIVER_FFMPEG_PATH environment override
    2. options.ffmpeg_binary
    3. options.root_directory / ffmpeg
    4. PATH (shutil.which)
    5. Common install locations

    Raises:
        FFmpegNotFoundError: If no executable was found
    """
    options = options or FFmpegOptions()
    searched: List[str] = []

    override_path = os.environ.get(ENV_FFMPEG_PATH)
    if override_path:
        if not _is_executable(Path(override_path)):
            raise FFmpegNotFoundError([f"{ENV_FFMPEG_PATH}={override_path}"])
        return override_path

    candidates: List[Path] = []
    if options.ffmpeg_binary:
        candidates.append(Path(options.ffmpeg_binary))
    if options.root_directory:
        candidates.append(Path(options.root_directory) / _binary_name())

    for candidate in candidates:
        searched.append(str(candidate))
        if _is_executable(candidate):
            return str(candidate)

    which_path = shutil.which("ffmpeg")
    searched.append("PATH")
    if which_path:
        return which_path

    for common in COMMON_FFMPEG_PATHS:
        searched.append(common)
        if _is_executable(Path(common)):
            return common

    raise FFmpegNotFoundError(searched)
