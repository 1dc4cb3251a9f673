"""
Media facts consumed by the recipes.

ffdriver never probes media. Duration and dimensions are supplied by the
caller (typically from ffprobe) and carried here.
"""

import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


class MediaSource(BaseModel):
    """
    A media file (or URI) with externally probed facts.

    Unknown values are None. No silent guessing.
    """

    model_config = ConfigDict(extra="forbid")

    path: str
    duration_seconds: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @field_validator("path", mode="before")
    @classmethod
    def validate_path(cls, v: Union[str, "os.PathLike[str]"]) -> str:
        v = os.fspath(v)
        if not v or not v.strip():
            raise ValueError("path cannot be empty")
        return v

    @field_validator("duration_seconds")
    @classmethod
    def validate_duration(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("duration_seconds cannot be negative")
        return v

    @field_validator("width", "height")
    @classmethod
    def validate_dimensions(cls, v: Optional[int]) -> Optional[int]:
        """Dimensions must be positive if provided."""
        if v is not None and v <= 0:
            raise ValueError("Dimensions must be positive")
        return v

    @property
    def file(self) -> Path:
        return Path(self.path)

    @property
    def extension(self) -> str:
        return self.file.suffix.lower()

    @property
    def has_dimensions(self) -> bool:
        return self.width is not None and self.height is not None
