"""
ImageEditingLib - Core image editing functionality

This module provides the pixel buffer model, undo/redo history, the host
raster surface and the still-image editing engine for Raster Studio.
"""

from RS_Libs.ImageEditingLib.image_models import (
    PixelBuffer,
    CropRect,
    HistoryEntry,
    ConversionResult,
    ExportArtifact,
    decode_image,
)
from RS_Libs.ImageEditingLib.edit_history import EditHistory
from RS_Libs.ImageEditingLib.raster_surface import RasterSurface, supported_surface_formats
from RS_Libs.ImageEditingLib.image_editing_ops import (
    derive_resize_dimensions,
    crop_buffer,
    resize_buffer,
    normalize_image_bytes,
    pixels_equal,
)
from RS_Libs.ImageEditingLib.raster_edit_engine import RasterEditEngine

__all__ = [
    "PixelBuffer",
    "CropRect",
    "HistoryEntry",
    "ConversionResult",
    "ExportArtifact",
    "decode_image",
    "EditHistory",
    "RasterSurface",
    "supported_surface_formats",
    "derive_resize_dimensions",
    "crop_buffer",
    "resize_buffer",
    "normalize_image_bytes",
    "pixels_equal",
    "RasterEditEngine",
]
