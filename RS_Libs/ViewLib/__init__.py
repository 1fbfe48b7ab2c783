"""
ViewLib - Canvas view and interaction state

Zoom, pan and fit-to-screen, pointer mapping into natural pixel space, the
crop drag gesture and tool selection.
"""

from RS_Libs.ViewLib.view_transform import (
    Point,
    Size,
    DisplayRect,
    NaturalPoint,
    ViewTransform,
    client_to_natural,
    clamp_zoom,
)
from RS_Libs.ViewLib.crop_gesture import Tool, CropGesture, ToolState

__all__ = [
    "Point",
    "Size",
    "DisplayRect",
    "NaturalPoint",
    "ViewTransform",
    "client_to_natural",
    "clamp_zoom",
    "Tool",
    "CropGesture",
    "ToolState",
]
