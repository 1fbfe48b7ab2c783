"""
Core image editing operations for Raster Studio.

This module provides the pure pixel operations behind the editing engines.
Every function returns a new buffer or new bytes; inputs are never modified.

Functions:
    derive_resize_dimensions: Fill in a missing resize dimension from the aspect ratio
    crop_buffer: Cut a rectangle out of a buffer
    resize_buffer: Resample a buffer to a new size
    normalize_image_bytes: Resample encoded image bytes to a fixed size
    pixels_equal: Compare two images pixel by pixel
"""

from typing import Any, Optional, Tuple

import numpy as np

from RS_Libs.ImageEditingLib.image_models import CropRect, PixelBuffer, decode_image
from RS_Libs.ImageEditingLib.raster_surface import RasterSurface
from RS_Libs.TranscodeLib.encode_args import round_half_up


def derive_resize_dimensions(
    current_width: int,
    current_height: int,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Resolve the target size of a resize.

    If only one dimension is given the other keeps the current aspect ratio
    (rounded to the nearest pixel). If neither is given the current size is
    returned.

    Args:
        current_width: Width of the current image
        current_height: Height of the current image
        width: Requested width, or None
        height: Requested height, or None

    Returns:
        (width, height) tuple

    Raises:
        ValueError: If a requested dimension is not positive
    """
    if width is not None and int(width) <= 0:
        raise ValueError(f"width must be positive, got {width}")
    if height is not None and int(height) <= 0:
        raise ValueError(f"height must be positive, got {height}")

    if width is not None and height is None:
        width = int(width)
        height = max(1, round_half_up(width / current_width * current_height))
    elif height is not None and width is None:
        height = int(height)
        width = max(1, round_half_up(height / current_height * current_width))
    elif width is None and height is None:
        width, height = current_width, current_height

    return int(width), int(height)


def crop_buffer(buffer: PixelBuffer, rect: CropRect) -> PixelBuffer:
    """
    Crop a buffer to a rectangle in natural pixel space.

    The rectangle is rounded to whole pixels. Parts of the rectangle outside
    the image come out transparent.

    Raises:
        ValueError: If the rounded rectangle is empty
    """
    x, y, width, height = rect.rounded()
    if width <= 0 or height <= 0:
        raise ValueError(f"Crop rectangle is empty: {rect}")

    source = RasterSurface.from_image(buffer.image)
    region = source.get_image_data(x, y, width, height)

    target = RasterSurface(width, height)
    target.put_image_data(region, 0, 0)
    data, fmt = target.encode("png")
    return PixelBuffer(image=target.to_image(), data=data, format=fmt)


def resize_buffer(buffer: PixelBuffer, width: int, height: int) -> PixelBuffer:
    """Resample a buffer to width x height."""
    target = RasterSurface(width, height)
    target.draw_image(buffer.image, 0, 0, width, height)
    data, fmt = target.encode("png")
    return PixelBuffer(image=target.to_image(), data=data, format=fmt)


def normalize_image_bytes(data: bytes, width: int, height: int) -> bytes:
    """
    Decode image bytes and resample them to exactly width x height as PNG.

    Raises:
        MalformedInputError: If the bytes cannot be decoded
    """
    image = decode_image(data)
    target = RasterSurface(width, height)
    target.draw_image(image, 0, 0, width, height)
    encoded, _ = target.encode("png")
    return encoded


def pixels_equal(first: Any, second: Any) -> bool:
    """True if two images have the same size and identical RGBA pixels."""
    if first.size != second.size:
        return False
    a = np.asarray(first.convert("RGBA"))
    b = np.asarray(second.convert("RGBA"))
    return bool(np.array_equal(a, b))
