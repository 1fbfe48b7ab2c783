"""
Editor session.

Holds one loaded source at a time and routes it to the right engine: animated
GIFs to the frame timeline, other still images to the raster edit engine.
The session also owns the view transform, tool state and keyboard commands,
and all engines share one transcoder adapter and one notice board.

Classes:
    SourceKind: still or animated
    EditorSession: Load, edit, export and keyboard handling for one editor
"""

from enum import Enum
from typing import Optional, Tuple
import inspect
import logging

from RS_Libs.config import EditorConfig
from RS_Libs.constants import ANIMATED_MEDIA_TYPE, STILL_MEDIA_PREFIX
from RS_Libs.errors import MalformedInputError, NoImageLoadedError
from RS_Libs.notices import NoticeBoard
from RS_Libs.ImageEditingLib.image_models import ExportArtifact, PixelBuffer, decode_image
from RS_Libs.ImageEditingLib.raster_edit_engine import RasterEditEngine
from RS_Libs.SessionLib.command_registry import (
    CommandRegistry,
    create_default_commands,
    make_chord,
)
from RS_Libs.TimelineLib.frame_timeline_engine import FrameTimelineEngine
from RS_Libs.TimelineLib.timeline_state import ViewMode
from RS_Libs.TranscodeLib.transcoder_adapter import TranscoderAdapter
from RS_Libs.ViewLib.crop_gesture import Tool, ToolState
from RS_Libs.ViewLib.view_transform import Point, Size, ViewTransform

logger = logging.getLogger(__name__)


class SourceKind(Enum):
    STILL = "still"
    ANIMATED = "animated"


class EditorSession:
    """
    One editor with one active source.

    Example:
        >>> session = EditorSession(TranscoderAdapter.for_config(config), config)
        >>> await session.load(gif_bytes, "image/gif")
        <SourceKind.ANIMATED: 'animated'>
        >>> await session.handle_key("d", ctrl=True)
        True
        >>> artifact = await session.export()
        >>> artifact.filename
        'edited-gif.gif'
    """

    def __init__(
        self,
        adapter: TranscoderAdapter,
        config: Optional[EditorConfig] = None,
        notices: Optional[NoticeBoard] = None,
        commands: Optional[CommandRegistry] = None,
    ):
        self.config = config or EditorConfig()
        self.notices = notices if notices is not None else NoticeBoard()
        self.adapter = adapter
        self.raster = RasterEditEngine(adapter, self.config, self.notices)
        self.timeline = FrameTimelineEngine(adapter, self.config, self.notices)
        self.view = ViewTransform(
            zoom_step=self.config.zoom_step, fit_padding=self.config.fit_padding
        )
        self.tools = ToolState()
        self.commands = commands or create_default_commands()
        self.kind: Optional[SourceKind] = None

    @property
    def is_loaded(self) -> bool:
        return self.kind is not None

    @property
    def is_animated(self) -> bool:
        return self.kind is SourceKind.ANIMATED

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, data: bytes, media_type: str) -> SourceKind:
        """
        Load a new source, replacing the current one.

        Raises:
            MalformedInputError: If the media type is not an image or the bytes
                cannot be decoded; the current source is left untouched
        """
        media_type = str(media_type or "").strip().lower()

        if media_type == ANIMATED_MEDIA_TYPE:
            decode_image(data)
            self._unload()
            self.kind = SourceKind.ANIMATED
            self.view.reset()
            self.tools.reset()
            count = await self.timeline.load_source(data)
            logger.info(f"Loaded animated GIF with {count} extracted frames")
            return SourceKind.ANIMATED

        if not media_type.startswith(STILL_MEDIA_PREFIX):
            raise MalformedInputError(
                f"Unsupported media type '{media_type}'. Please select an image file."
            )

        buffer = PixelBuffer.from_bytes(data)
        self._unload()
        self.kind = SourceKind.STILL
        self.raster.load_buffer(buffer)
        self.view.reset()
        self.tools.reset()
        return SourceKind.STILL

    def _unload(self) -> None:
        self.timeline.close()
        self.raster.clear()
        self.kind = None

    def natural_size(self) -> Tuple[int, int]:
        """Natural size of what is currently displayed."""
        if self.kind is SourceKind.STILL:
            return self.raster.current.size
        if self.kind is SourceKind.ANIMATED:
            frame = self.timeline.current_frame
            if frame is not None and self.timeline.view_mode is ViewMode.FRAME:
                return frame.natural_size()
            return decode_image(self.timeline.source).size
        raise NoImageLoadedError("Please load an image first")

    # ------------------------------------------------------------------
    # Editing helpers used by commands
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        if self.kind is not SourceKind.STILL:
            return False
        return self.raster.undo()

    def redo(self) -> bool:
        if self.kind is not SourceKind.STILL:
            return False
        return self.raster.redo()

    def select_tool(self, tool) -> Tool:
        image_size = self.natural_size() if self.is_loaded else None
        return self.tools.select(tool, image_size)

    def edit_frames(self, operation) -> bool:
        """Run a frame edit. Frame edits only apply while a single frame is shown."""
        if not self.is_animated or self.timeline.frame_count == 0:
            return False
        if self.timeline.view_mode is not ViewMode.FRAME:
            return False
        return bool(operation())

    def fit_to_screen(self, container: Size) -> float:
        width, height = self.natural_size()
        return self.view.fit_to_screen(container, Size(width, height))

    def begin_crop(self, point: Point, container: Size) -> bool:
        """Start a crop drag at a client position. Needs the crop tool on a still image."""
        if not self.tools.crop_mode or self.kind is not SourceKind.STILL:
            return False
        natural = Size(*self.natural_size())
        mapped = self.view.to_natural(point, container, natural)
        self.tools.crop.begin(Point(mapped.x, mapped.y))
        return True

    def update_crop(self, point: Point, container: Size) -> None:
        if not self.tools.crop.is_active:
            return
        natural = Size(*self.natural_size())
        mapped = self.view.to_natural(point, container, natural)
        self.tools.crop.update(Point(mapped.x, mapped.y))

    def finish_crop(self) -> bool:
        """Apply the dragged rectangle. Empty selections are discarded."""
        if not self.tools.crop.is_active:
            return False
        rect = self.tools.crop.finish(self.natural_size())
        if rect is None:
            return False
        applied = self.raster.crop(rect)
        if applied:
            self.tools.select(Tool.SELECT)
        return applied

    # ------------------------------------------------------------------
    # Keyboard and export
    # ------------------------------------------------------------------

    async def handle_key(self, key: str, ctrl: bool = False, shift: bool = False) -> bool:
        """
        Dispatch a key press to its command.

        Returns:
            False if no command is bound or the command did nothing
        """
        chord = make_chord(key, ctrl=ctrl, shift=shift)
        if not self.commands.has_command(chord):
            return False

        result = self.commands.execute(chord, self)
        if inspect.isawaitable(result):
            result = await result
        logger.debug(f"Key {chord} -> {result!r}")
        return result is not False

    async def export(self) -> Optional[ExportArtifact]:
        """
        Export the current source.

        Returns:
            ``edited-image.<ext>`` for stills, ``edited-gif.gif`` for
            animations, or None if GIF reconstruction failed

        Raises:
            NoImageLoadedError: If nothing is loaded
        """
        if self.kind is SourceKind.ANIMATED:
            return await self.timeline.export()
        if self.kind is SourceKind.STILL:
            return self.raster.export()
        raise NoImageLoadedError("Please load an image first")

    async def close(self) -> None:
        """Release frames and stop playback. The shared adapter stays open."""
        self._unload()
        self.tools.reset()
        logger.debug("Editor session closed")
