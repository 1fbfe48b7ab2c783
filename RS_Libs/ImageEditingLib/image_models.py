"""
Image editing data models for Raster Studio.

This module defines core data structures used throughout the image editing system.

Classes:
    PixelBuffer: Immutable decoded raster plus the encoded bytes it came from
    CropRect: Rectangle in natural pixel space
    HistoryEntry: One committed state of the edit history
    ConversionResult: Outcome of a format/quality conversion
    ExportArtifact: Bytes and file name handed to the download layer
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple
import io

from RS_Libs.constants import FORMAT_MEDIA_TYPES
from RS_Libs.errors import MalformedInputError
from RS_Libs.pillow_compat import Image


def decode_image(data: bytes) -> 'Image.Image':
    """
    Decode encoded image bytes into a fully loaded RGBA image.

    Raises:
        MalformedInputError: If the bytes are not a decodable image
    """
    if not data:
        raise MalformedInputError("Image data is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (OSError, EOFError, ValueError, Image.DecompressionBombError) as e:
        raise MalformedInputError(f"Cannot decode image: {e}") from e


def detect_format(data: bytes) -> Optional[str]:
    """Lower-case format extension of encoded bytes, or None if unknown."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (OSError, EOFError, ValueError):
        return None
    if fmt is None:
        return None
    fmt = fmt.lower()
    return "jpeg" if fmt == "mpo" else fmt


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """A decoded raster and its encoding.

    Attributes:
        image: RGBA Pillow image; never mutated after construction
        data: Encoded bytes the image was decoded from (or encoded to)
        format: Lower-case format extension of ``data`` (e.g. "png", "jpg")
    """
    image: 'Image.Image'
    data: bytes
    format: str

    @classmethod
    def from_bytes(cls, data: bytes, fmt: Optional[str] = None) -> "PixelBuffer":
        """
        Decode bytes into a buffer.

        Args:
            data: Encoded image bytes
            fmt: Format extension to record; detected from the bytes if omitted

        Raises:
            MalformedInputError: If the bytes cannot be decoded
        """
        image = decode_image(data)
        fmt = (fmt or detect_format(data) or "png").lower().lstrip(".")
        return cls(image=image, data=bytes(data), format=fmt)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    @property
    def media_type(self) -> str:
        return FORMAT_MEDIA_TYPES.get(self.format, f"image/{self.format}")


@dataclass(frozen=True)
class CropRect:
    x: float
    y: float
    width: float
    height: float

    @property
    def is_degenerate(self) -> bool:
        return round(self.width) <= 0 or round(self.height) <= 0

    def rounded(self) -> Tuple[int, int, int, int]:
        """Integer (x, y, width, height)."""
        return (
            int(round(self.x)),
            int(round(self.y)),
            int(round(self.width)),
            int(round(self.height)),
        )


@dataclass(frozen=True)
class HistoryEntry:
    buffer: PixelBuffer
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class ConversionResult:
    """Outcome of ``RasterEditEngine.convert_format``.

    Attributes:
        buffer: The new current buffer
        format: Format actually produced (differs from the request on fallback)
        used_fallback: True if the local surface encoder was used
        warnings: User-facing messages about degraded output
    """
    buffer: PixelBuffer
    format: str
    used_fallback: bool = False
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExportArtifact:
    data: bytes
    filename: str
    media_type: str
