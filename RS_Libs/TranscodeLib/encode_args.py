"""
Encoder Argument Registry and FFmpeg Command Builders.

This module maps output formats to the FFmpeg arguments that encode a still
image in that format at a requested quality, and builds the fixed commands of
the animation pipeline (frame extraction, palette generation and
palette-based GIF encoding).

Quality (1-100) is mapped per format:
    - jpeg/jpg: ``-q:v`` on FFmpeg's inverse 2-31 scale (2 = best)
    - png: ``-compression_level`` 0-9 (9 = smallest file)
    - webp: ``-quality`` passed through unchanged
    - bmp, gif, tiff: lossless, no quality parameter

Classes:
    EncoderRegistry: Registry of per-format argument builders

Functions:
    get_default_registry: Get the global default registry (singleton)
    register_default_encoders: Register the built-in format builders
    build_convert_args: Full argument list for a still-image conversion
    build_extract_frames_args: Decode an animation into numbered PNG stills
    build_palettegen_args: Compute a shared palette over numbered stills
    build_paletteuse_args: Encode numbered stills into a looping GIF
"""

from typing import Any, Callable, Dict, List, Optional
import logging
import math

from RS_Libs.constants import (
    ANIMATED_OUTPUT_FILE,
    FRAME_FILE_PATTERN,
    MAX_QUALITY,
    MIN_QUALITY,
    PALETTE_FILE,
)

logger = logging.getLogger(__name__)

# Type alias for argument builder: quality -> FFmpeg output options
ArgumentBuilder = Callable[[int], List[str]]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def normalize_format(fmt: str) -> str:
    """Lower-case a format name and strip a leading dot."""
    return str(fmt).strip().lower().lstrip(".")


def validate_quality(quality: int) -> int:
    """
    Validate a 1-100 quality value.

    Raises:
        ValueError: If quality is outside 1-100
    """
    quality = int(quality)
    if not (MIN_QUALITY <= quality <= MAX_QUALITY):
        raise ValueError(
            f"quality must be {MIN_QUALITY}-{MAX_QUALITY}, got {quality}"
        )
    return quality


# ============================================================================
# Per-format builders
# ============================================================================

def jpeg_args(quality: int) -> List[str]:
    qv = clamp(round_half_up(31 - (quality * 29 / 100)), 2, 31)
    return ["-q:v", str(qv)]


def png_args(quality: int) -> List[str]:
    level = clamp(round_half_up((100 - quality) / 11), 0, 9)
    return ["-compression_level", str(level)]


def webp_args(quality: int) -> List[str]:
    return ["-quality", str(quality)]


def bmp_args(quality: int) -> List[str]:
    return ["-pix_fmt", "bgr24"]


def gif_args(quality: int) -> List[str]:
    return []


def tiff_args(quality: int) -> List[str]:
    return ["-compression_algo", "lzw"]


class EncoderRegistry:
    """
    Registry of output format argument builders.

    Example:
        >>> registry = EncoderRegistry()
        >>> registry.register("jpeg", jpeg_args, aliases=["jpg"])
        >>> registry.build_args("jpg", 80)
        ['-q:v', '8']
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._builders: Dict[str, ArgumentBuilder] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}
        self._aliases: Dict[str, str] = {}

    def register(
        self,
        fmt: str,
        builder: ArgumentBuilder,
        description: str = "",
        lossless: bool = False,
        aliases: Optional[List[str]] = None,
    ) -> None:
        """
        Register an argument builder for a format.

        Args:
            fmt: Canonical format name (e.g. "jpeg")
            builder: Callable mapping quality (1-100) to FFmpeg output options
            description: Human-readable description
            lossless: Whether the format ignores quality
            aliases: Alternative names resolving to this format (e.g. ["jpg"])

        Raises:
            ValueError: If fmt is empty or builder is not callable
            RuntimeError: If fmt or an alias is already registered
        """
        fmt = normalize_format(fmt)

        if not fmt:
            raise ValueError("format cannot be empty")

        if not callable(builder):
            raise ValueError(f"builder must be callable, got {type(builder)}")

        names = [fmt] + [normalize_format(a) for a in (aliases or [])]
        for name in names:
            if name in self._builders or name in self._aliases:
                raise RuntimeError(
                    f"Format '{name}' is already registered. "
                    f"Use unregister() first to replace it."
                )

        self._builders[fmt] = builder
        self._metadata[fmt] = {
            "description": str(description),
            "lossless": bool(lossless),
            "aliases": names[1:],
        }
        for alias in names[1:]:
            self._aliases[alias] = fmt

        logger.debug(f"Registered encoder arguments for format: {fmt}")

    def unregister(self, fmt: str) -> bool:
        """
        Unregister a format and its aliases.

        Returns:
            True if unregistered, False if the format was not registered
        """
        fmt = self.resolve(fmt)
        if fmt not in self._builders:
            return False

        for alias in self._metadata[fmt]["aliases"]:
            self._aliases.pop(alias, None)
        del self._builders[fmt]
        del self._metadata[fmt]
        logger.debug(f"Unregistered encoder arguments for format: {fmt}")
        return True

    def resolve(self, fmt: str) -> str:
        """Map an alias to its canonical format name."""
        fmt = normalize_format(fmt)
        return self._aliases.get(fmt, fmt)

    def has_format(self, fmt: str) -> bool:
        return self.resolve(fmt) in self._builders

    def get_builder(self, fmt: str) -> ArgumentBuilder:
        """
        Get the builder for a format.

        Raises:
            KeyError: If the format is not registered
        """
        canonical = self.resolve(fmt)
        if canonical not in self._builders:
            available = ", ".join(self.list_formats())
            raise KeyError(
                f"No encoder registered for format '{fmt}'. "
                f"Available formats: {available}"
            )
        return self._builders[canonical]

    def build_args(self, fmt: str, quality: int) -> List[str]:
        """Build the FFmpeg output options for a format and quality."""
        return list(self.get_builder(fmt)(validate_quality(quality)))

    def is_lossless(self, fmt: str) -> bool:
        canonical = self.resolve(fmt)
        if canonical not in self._metadata:
            raise KeyError(f"No metadata for format: {fmt}")
        return self._metadata[canonical]["lossless"]

    def list_formats(self) -> List[str]:
        """Sorted list of canonical format names."""
        return sorted(self._builders.keys())


# Global singleton registry
_default_registry: Optional[EncoderRegistry] = None


def get_default_registry() -> EncoderRegistry:
    """
    Get the global default registry (singleton).

    Creates the registry on first call and registers the built-in formats.
    """
    global _default_registry

    if _default_registry is None:
        _default_registry = EncoderRegistry()
        register_default_encoders(_default_registry)

    return _default_registry


def register_default_encoders(registry: EncoderRegistry) -> None:
    """Register jpeg, png, webp, bmp, gif and tiff."""
    registry.register("jpeg", jpeg_args, "JPEG, inverse -q:v scale", aliases=["jpg"])
    registry.register("png", png_args, "PNG, zlib compression level", lossless=True)
    registry.register("webp", webp_args, "WebP, linear quality")
    registry.register("bmp", bmp_args, "BMP, 24-bit BGR", lossless=True)
    registry.register("gif", gif_args, "GIF, single frame", lossless=True)
    registry.register("tiff", tiff_args, "TIFF, LZW compression", lossless=True, aliases=["tif"])


# ============================================================================
# Command builders
# ============================================================================

def build_convert_args(
    input_file: str,
    output_file: str,
    target_format: str,
    quality: int,
    registry: Optional[EncoderRegistry] = None,
) -> List[str]:
    """
    Build the arguments converting one still image to another format.

    Raises:
        KeyError: If target_format is not registered
        ValueError: If quality is outside 1-100
    """
    registry = registry or get_default_registry()
    return ["-i", input_file] + registry.build_args(target_format, quality) + [output_file]


def build_extract_frames_args(input_file: str) -> List[str]:
    return ["-i", input_file, "-vsync", "0", FRAME_FILE_PATTERN]


def build_palettegen_args(palette_file: str = PALETTE_FILE) -> List[str]:
    return ["-i", FRAME_FILE_PATTERN, "-vf", "palettegen", palette_file]


def build_paletteuse_args(
    palette_file: str = PALETTE_FILE,
    output_file: str = ANIMATED_OUTPUT_FILE,
) -> List[str]:
    return [
        "-i", FRAME_FILE_PATTERN,
        "-i", palette_file,
        "-lavfi", "[0:v][1:v]paletteuse",
        "-loop", "0",
        "-y",
        output_file,
    ]
