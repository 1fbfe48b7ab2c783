"""
Constants and configuration values for Raster Studio.

This module centralizes all constant values, magic numbers, and
default settings used throughout the editing engine.
"""

# History constants
DEFAULT_HISTORY_LIMIT = 50

# Frame timeline constants
DEFAULT_MAX_EXTRACTED_FRAMES = 100
DEFAULT_PLAYBACK_INTERVAL_MS = 100
FRAME_FILE_PATTERN = "frame_%03d.png"
FRAME_FILE_TEMPLATE = "frame_{:03d}.png"
FRAME_MEDIA_TYPE = "image/png"

# Transcoder working files
ANIMATED_INPUT_FILE = "input.gif"
PALETTE_FILE = "palette.png"
ANIMATED_OUTPUT_FILE = "output.gif"
CONVERT_INPUT_STEM = "input"
CONVERT_OUTPUT_STEM = "output"

# FFmpeg defaults
DEFAULT_FFMPEG_BINARY = "ffmpeg"
FFMPEG_GLOBAL_ARGS = ["-hide_banner", "-nostdin", "-y", "-loglevel", "error"]
WORK_DIR_PREFIX = "raster_studio_"

# View constants
MIN_ZOOM_PERCENT = 25
MAX_ZOOM_PERCENT = 500
DEFAULT_ZOOM_PERCENT = 100
ZOOM_STEP_PERCENT = 25
FIT_TO_SCREEN_PADDING = 32

# Quality bounds
MIN_QUALITY = 1
MAX_QUALITY = 100
DEFAULT_QUALITY = 80

# Media types
ANIMATED_MEDIA_TYPE = "image/gif"
STILL_MEDIA_PREFIX = "image/"

# Output formats (extension -> MIME type)
FORMAT_MEDIA_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "gif": "image/gif",
    "tiff": "image/tiff",
    "tif": "image/tiff",
}

# Pillow format names keyed by extension
PILLOW_FORMAT_NAMES = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "webp": "WEBP",
    "bmp": "BMP",
    "gif": "GIF",
    "tiff": "TIFF",
    "tif": "TIFF",
}

# Formats a 2D drawing surface can encode without the transcoder
SURFACE_NATIVE_FORMATS = ("png", "jpeg", "webp")
SURFACE_FALLBACK_FORMAT = "png"

# Export naming
STILL_EXPORT_BASENAME = "edited-image"
ANIMATED_EXPORT_BASENAME = "edited-gif"

# Environment variables
ENV_FFMPEG_BINARY = "RASTER_STUDIO_FFMPEG"
ENV_HISTORY_LIMIT = "RASTER_STUDIO_HISTORY_LIMIT"
ENV_PLAYBACK_MS = "RASTER_STUDIO_PLAYBACK_MS"

# Notices kept until the front end drains them; older ones are dropped
MAX_PENDING_NOTICES = 100
