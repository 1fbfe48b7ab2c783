"""
View transform for the editing canvas.

Tracks zoom (percent) and pan offset (pixels) and maps pointer positions on
screen back into the image's natural pixel space.

Classes:
    Point: 2D position
    Size: Width and height
    DisplayRect: On-screen rectangle occupied by the image
    NaturalPoint: Pointer position in natural pixel space plus scale factors
    ViewTransform: Zoom, pan and fit-to-screen

Functions:
    client_to_natural: Map a client position into natural pixel space
"""

from dataclasses import dataclass
from typing import Optional
import logging

from RS_Libs.constants import (
    DEFAULT_ZOOM_PERCENT,
    FIT_TO_SCREEN_PADDING,
    MAX_ZOOM_PERCENT,
    MIN_ZOOM_PERCENT,
    ZOOM_STEP_PERCENT,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class DisplayRect:
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class NaturalPoint:
    x: float
    y: float
    scale_x: float
    scale_y: float


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM_PERCENT, min(MAX_ZOOM_PERCENT, zoom))


def client_to_natural(point: Point, rect: DisplayRect, natural: Size) -> NaturalPoint:
    """
    Map a pointer position to natural pixel coordinates.

    Args:
        point: Pointer position in client coordinates
        rect: Where the image currently is on screen
        natural: Natural (unscaled) image size

    Returns:
        Position in natural pixels with the natural/displayed scale factors

    Raises:
        ValueError: If the displayed rectangle is empty
    """
    if rect.width <= 0 or rect.height <= 0:
        raise ValueError(f"Displayed image has no area: {rect}")

    scale_x = natural.width / rect.width
    scale_y = natural.height / rect.height
    return NaturalPoint(
        x=(point.x - rect.left) * scale_x,
        y=(point.y - rect.top) * scale_y,
        scale_x=scale_x,
        scale_y=scale_y,
    )


class ViewTransform:
    """
    Zoom and pan state of the canvas.

    Example:
        >>> view = ViewTransform()
        >>> view.zoom_in()
        125
        >>> view.fit_to_screen(Size(832, 632), Size(1600, 1200))
        50.0
    """

    def __init__(self, zoom_step: int = ZOOM_STEP_PERCENT, fit_padding: int = FIT_TO_SCREEN_PADDING):
        self.zoom_step = zoom_step
        self.fit_padding = fit_padding
        self.zoom: float = DEFAULT_ZOOM_PERCENT
        self.pan = Point(0, 0)
        self._pan_anchor: Optional[Point] = None

    @property
    def scale(self) -> float:
        return self.zoom / 100.0

    @property
    def is_panning(self) -> bool:
        return self._pan_anchor is not None

    def zoom_by(self, delta: float) -> float:
        self.zoom = clamp_zoom(self.zoom + delta)
        logger.debug(f"Zoom: {self.zoom}%")
        return self.zoom

    def zoom_in(self) -> float:
        return self.zoom_by(self.zoom_step)

    def zoom_out(self) -> float:
        return self.zoom_by(-self.zoom_step)

    def reset(self) -> None:
        """Back to 100% with no pan."""
        self.zoom = DEFAULT_ZOOM_PERCENT
        self.pan = Point(0, 0)
        self._pan_anchor = None

    def fit_to_screen(self, container: Size, natural: Size, padding: Optional[int] = None) -> float:
        """
        Zoom so the whole image fits the container with padding on each side.

        The axis where the image is relatively larger decides the zoom. Pan
        is reset.
        """
        if natural.width <= 0 or natural.height <= 0:
            raise ValueError(f"Image has no area: {natural}")

        padding = self.fit_padding if padding is None else padding
        available_width = max(container.width - padding, 1)
        available_height = max(container.height - padding, 1)

        if natural.width / natural.height > available_width / available_height:
            zoom = available_width / natural.width * 100
        else:
            zoom = available_height / natural.height * 100

        self.zoom = clamp_zoom(zoom)
        self.pan = Point(0, 0)
        logger.debug(f"Fit to screen: {self.zoom:.1f}%")
        return self.zoom

    # Panning

    def begin_pan(self, point: Point) -> None:
        self._pan_anchor = Point(point.x - self.pan.x, point.y - self.pan.y)

    def pan_to(self, point: Point) -> Point:
        if self._pan_anchor is not None:
            self.pan = Point(point.x - self._pan_anchor.x, point.y - self._pan_anchor.y)
        return self.pan

    def end_pan(self) -> None:
        self._pan_anchor = None

    def display_rect(self, container: Size, natural: Size) -> DisplayRect:
        """On-screen rectangle of the image: centered, scaled and panned."""
        width = natural.width * self.scale
        height = natural.height * self.scale
        return DisplayRect(
            left=(container.width - width) / 2 + self.pan.x,
            top=(container.height - height) / 2 + self.pan.y,
            width=width,
            height=height,
        )

    def to_natural(self, point: Point, container: Size, natural: Size) -> NaturalPoint:
        return client_to_natural(point, self.display_rect(container, natural), natural)
