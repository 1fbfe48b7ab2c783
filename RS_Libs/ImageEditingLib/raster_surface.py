"""
Host raster surface.

A 2D drawing surface in the manner of an HTML canvas: draw an image scaled
into a rectangle, read or write a rectangular region of pixels, and encode
the surface to one of the few formats a canvas can produce natively (PNG,
JPEG, and WebP when the Pillow build supports it).

Pixels are held as an RGBA ``uint8`` NumPy array of shape (height, width, 4).
Regions outside the surface read back as transparent black.

Example:
    >>> surface = RasterSurface(200, 100)
    >>> surface.draw_image(img, 0, 0, 200, 100)
    >>> region = surface.get_image_data(10, 10, 50, 50)
    >>> data, fmt = surface.encode("webp", quality=80)
"""

from typing import Any, Optional, Tuple
import io
import logging

import numpy as np

from RS_Libs.constants import PILLOW_FORMAT_NAMES, SURFACE_FALLBACK_FORMAT, SURFACE_NATIVE_FORMATS
from RS_Libs.pillow_compat import Image, supports_encoder

logger = logging.getLogger(__name__)


def supported_surface_formats() -> Tuple[str, ...]:
    """Native surface formats the installed Pillow build can encode."""
    return tuple(
        fmt for fmt in SURFACE_NATIVE_FORMATS
        if supports_encoder(PILLOW_FORMAT_NAMES[fmt])
    )


class RasterSurface:
    """RGBA drawing surface backed by a NumPy array."""

    def __init__(self, width: int, height: int):
        width = int(width)
        height = int(height)
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        self._pixels = np.zeros((height, width, 4), dtype=np.uint8)

    @classmethod
    def from_image(cls, image: Any) -> "RasterSurface":
        surface = cls(image.width, image.height)
        surface.draw_image(image)
        return surface

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    def draw_image(
        self,
        image: Any,
        x: int = 0,
        y: int = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> None:
        """
        Draw an image scaled into a rectangle, compositing source-over.

        Args:
            image: PIL Image to draw
            x, y: Top-left corner of the destination rectangle
            width, height: Destination size (defaults to the image size)
        """
        width = image.width if width is None else int(width)
        height = image.height if height is None else int(height)
        if width <= 0 or height <= 0:
            return

        source = image.convert("RGBA")
        if source.size != (width, height):
            source = source.resize((width, height), Image.Resampling.LANCZOS)
        src = np.asarray(source, dtype=np.uint8)

        clip = self._clip(int(x), int(y), width, height)
        if clip is None:
            return
        (dx0, dy0, dx1, dy1), (sx0, sy0) = clip
        src = src[sy0:sy0 + (dy1 - dy0), sx0:sx0 + (dx1 - dx0)].astype(np.float32) / 255.0
        dst = self._pixels[dy0:dy1, dx0:dx1].astype(np.float32) / 255.0

        src_a = src[..., 3:4]
        dst_a = dst[..., 3:4]
        out_a = src_a + dst_a * (1.0 - src_a)
        out_rgb = np.where(
            out_a > 0,
            (src[..., :3] * src_a + dst[..., :3] * dst_a * (1.0 - src_a)) / np.maximum(out_a, 1e-6),
            0.0,
        )
        out = np.concatenate([out_rgb, out_a], axis=-1)
        self._pixels[dy0:dy1, dx0:dx1] = np.clip(np.rint(out * 255.0), 0, 255).astype(np.uint8)

    def get_image_data(self, x: int, y: int, width: int, height: int) -> np.ndarray:
        """
        Read a rectangular region.

        Returns:
            Array of shape (height, width, 4); parts outside the surface are zero
        """
        width = int(width)
        height = int(height)
        if width <= 0 or height <= 0:
            raise ValueError(f"Region size must be positive, got {width}x{height}")

        region = np.zeros((height, width, 4), dtype=np.uint8)
        clip = self._clip(int(x), int(y), width, height)
        if clip is not None:
            (dx0, dy0, dx1, dy1), (sx0, sy0) = clip
            region[sy0:sy0 + (dy1 - dy0), sx0:sx0 + (dx1 - dx0)] = self._pixels[dy0:dy1, dx0:dx1]
        return region

    def put_image_data(self, data: np.ndarray, x: int = 0, y: int = 0) -> None:
        """Write a region verbatim (no blending), clipped to the surface."""
        data = np.asarray(data, dtype=np.uint8)
        if data.ndim != 3 or data.shape[2] != 4:
            raise ValueError(f"Expected (height, width, 4) RGBA data, got shape {data.shape}")

        height, width = data.shape[:2]
        clip = self._clip(int(x), int(y), width, height)
        if clip is None:
            return
        (dx0, dy0, dx1, dy1), (sx0, sy0) = clip
        self._pixels[dy0:dy1, dx0:dx1] = data[sy0:sy0 + (dy1 - dy0), sx0:sx0 + (dx1 - dx0)]

    def to_image(self) -> Any:
        return Image.fromarray(self._pixels.copy(), "RGBA")

    def encode(self, fmt: str = "png", quality: Optional[int] = None) -> Tuple[bytes, str]:
        """
        Encode the surface.

        Formats the surface cannot produce are written as PNG, which is what a
        canvas does with an unknown MIME type; the returned format says which
        one was used.

        Args:
            fmt: Requested format ("png", "jpeg"/"jpg", "webp")
            quality: 1-100 for lossy formats (ignored by PNG)

        Returns:
            Tuple of (encoded bytes, format actually written)
        """
        fmt = fmt.lower().lstrip(".")
        fmt = "jpeg" if fmt == "jpg" else fmt
        if fmt not in supported_surface_formats():
            logger.debug(f"Surface cannot encode {fmt}, writing {SURFACE_FALLBACK_FORMAT}")
            fmt = SURFACE_FALLBACK_FORMAT

        kwargs = {"format": PILLOW_FORMAT_NAMES[fmt]}
        if fmt == "jpeg":
            image = Image.fromarray(self._flatten_on_black(), "RGB")
        else:
            image = self.to_image()
        if fmt in ("jpeg", "webp") and quality is not None:
            kwargs["quality"] = max(1, min(100, int(quality)))

        out = io.BytesIO()
        image.save(out, **kwargs)
        return out.getvalue(), fmt

    def _flatten_on_black(self) -> np.ndarray:
        rgb = self._pixels[..., :3].astype(np.float32)
        alpha = self._pixels[..., 3:4].astype(np.float32) / 255.0
        return np.clip(np.rint(rgb * alpha), 0, 255).astype(np.uint8)

    def _clip(self, x: int, y: int, width: int, height: int):
        """
        Intersect a rectangle with the surface.

        Returns:
            ((x0, y0, x1, y1) on the surface, (sx, sy) offset into the rectangle),
            or None when they do not overlap
        """
        x0 = max(x, 0)
        y0 = max(y, 0)
        x1 = min(x + width, self.width)
        y1 = min(y + height, self.height)
        if x0 >= x1 or y0 >= y1:
            return None
        return (x0, y0, x1, y1), (x0 - x, y0 - y)
