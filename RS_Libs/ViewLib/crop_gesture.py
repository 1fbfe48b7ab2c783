"""
Crop gesture and tool selection.

Classes:
    Tool: Editor tools
    CropGesture: Drag-to-select crop rectangle in natural pixel space
    ToolState: Active tool, crop mode and resize field pre-fill
"""

from enum import Enum
from typing import Optional, Tuple
import logging

from RS_Libs.ImageEditingLib.image_models import CropRect
from RS_Libs.ViewLib.view_transform import Point

logger = logging.getLogger(__name__)


class Tool(Enum):
    SELECT = "select"
    CROP = "crop"
    RESIZE = "resize"
    FORMAT = "format"
    COMPRESS = "compress"


class CropGesture:
    """
    Rectangle drawn by dragging over the image.

    Points are in natural pixel space. The draft rectangle is always
    normalized so width and height are non-negative, whichever way the drag
    goes.
    """

    def __init__(self):
        self._start: Optional[Point] = None
        self.draft: Optional[CropRect] = None

    @property
    def is_active(self) -> bool:
        return self._start is not None

    def begin(self, point: Point) -> None:
        self._start = point
        self.draft = CropRect(point.x, point.y, 0, 0)

    def update(self, point: Point) -> Optional[CropRect]:
        if self._start is None:
            return None
        start = self._start
        self.draft = CropRect(
            x=min(start.x, point.x),
            y=min(start.y, point.y),
            width=abs(point.x - start.x),
            height=abs(point.y - start.y),
        )
        return self.draft

    def finish(self, image_size: Tuple[int, int]) -> Optional[CropRect]:
        """
        End the drag.

        Args:
            image_size: (width, height) of the image being cropped

        Returns:
            Rectangle clamped to the image and rounded to whole pixels, or
            None if nothing with an area was selected
        """
        draft = self.draft
        self.cancel()
        if draft is None:
            return None

        image_width, image_height = image_size
        left = max(0, min(image_width, round(draft.x)))
        top = max(0, min(image_height, round(draft.y)))
        right = max(0, min(image_width, round(draft.x + draft.width)))
        bottom = max(0, min(image_height, round(draft.y + draft.height)))

        rect = CropRect(left, top, right - left, bottom - top)
        if rect.is_degenerate:
            logger.debug(f"Discarding empty crop selection {draft}")
            return None
        return rect

    def cancel(self) -> None:
        self._start = None
        self.draft = None


class ToolState:
    """Active tool and the interaction modes that depend on it."""

    def __init__(self):
        self.active = Tool.SELECT
        self.crop = CropGesture()
        self.crop_mode = False
        self.resize_width: Optional[int] = None
        self.resize_height: Optional[int] = None

    @property
    def can_pan(self) -> bool:
        return self.active is Tool.SELECT

    def select(self, tool, image_size: Optional[Tuple[int, int]] = None) -> Tool:
        """
        Switch tools.

        Args:
            tool: Tool or its name
            image_size: Current image size, used to pre-fill the resize fields
        """
        tool = Tool(tool)
        self.active = tool
        self.crop_mode = tool is Tool.CROP
        if not self.crop_mode:
            self.crop.cancel()
        if tool is Tool.RESIZE and image_size is not None:
            self.resize_width, self.resize_height = image_size
        logger.debug(f"Tool: {tool.value}")
        return tool

    def reset(self) -> None:
        self.select(Tool.SELECT)
        self.resize_width = None
        self.resize_height = None
