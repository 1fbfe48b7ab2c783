"""
Editor configuration for Raster Studio.

Classes:
    EditorConfig: Tunable settings shared by the engines and the session
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional
import os

from RS_Libs.constants import (
    DEFAULT_FFMPEG_BINARY,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_MAX_EXTRACTED_FRAMES,
    DEFAULT_PLAYBACK_INTERVAL_MS,
    ENV_FFMPEG_BINARY,
    ENV_HISTORY_LIMIT,
    ENV_PLAYBACK_MS,
    FIT_TO_SCREEN_PADDING,
    WORK_DIR_PREFIX,
    ZOOM_STEP_PERCENT,
)


@dataclass
class EditorConfig:
    """Configuration for an editing session.

    Attributes:
        ffmpeg_binary: Name or path of the FFmpeg executable
        work_dir_prefix: Prefix for the transcoder's private working directory
        history_limit: Maximum number of undo states kept (default: 50)
        max_extracted_frames: Upper bound on frames read back from a GIF (default: 100)
        playback_interval_ms: Delay between animated playback steps (default: 100)
        zoom_step: Zoom change applied by zoom in/out commands, in percent
        fit_padding: Pixels kept free around the image by fit-to-screen
    """
    ffmpeg_binary: str = DEFAULT_FFMPEG_BINARY
    work_dir_prefix: str = WORK_DIR_PREFIX
    history_limit: int = DEFAULT_HISTORY_LIMIT
    max_extracted_frames: int = DEFAULT_MAX_EXTRACTED_FRAMES
    playback_interval_ms: int = DEFAULT_PLAYBACK_INTERVAL_MS
    zoom_step: int = ZOOM_STEP_PERCENT
    fit_padding: int = FIT_TO_SCREEN_PADDING

    def __post_init__(self):
        """Validate numeric settings."""
        if not str(self.ffmpeg_binary).strip():
            raise ValueError("ffmpeg_binary cannot be empty")
        if self.history_limit < 1:
            raise ValueError(f"history_limit must be >= 1, got {self.history_limit}")
        if self.max_extracted_frames < 1:
            raise ValueError(
                f"max_extracted_frames must be >= 1, got {self.max_extracted_frames}"
            )
        if self.playback_interval_ms <= 0:
            raise ValueError(
                f"playback_interval_ms must be > 0, got {self.playback_interval_ms}"
            )
        if self.zoom_step <= 0:
            raise ValueError(f"zoom_step must be > 0, got {self.zoom_step}")
        if self.fit_padding < 0:
            raise ValueError(f"fit_padding must be >= 0, got {self.fit_padding}")

    @property
    def playback_interval(self) -> float:
        """Playback step in seconds."""
        return self.playback_interval_ms / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorConfig":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EditorConfig":
        """
        Create a config with overrides taken from environment variables.

        Recognized variables:
            RASTER_STUDIO_FFMPEG: FFmpeg executable
            RASTER_STUDIO_HISTORY_LIMIT: Undo depth
            RASTER_STUDIO_PLAYBACK_MS: Playback step in milliseconds

        Raises:
            ValueError: If a numeric variable is not an integer
        """
        environ = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}

        if environ.get(ENV_FFMPEG_BINARY):
            overrides["ffmpeg_binary"] = environ[ENV_FFMPEG_BINARY]
        if environ.get(ENV_HISTORY_LIMIT):
            overrides["history_limit"] = int(environ[ENV_HISTORY_LIMIT])
        if environ.get(ENV_PLAYBACK_MS):
            overrides["playback_interval_ms"] = int(environ[ENV_PLAYBACK_MS])

        return cls(**overrides)
