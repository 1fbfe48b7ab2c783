"""
Raster Edit Engine.

Owns the current pixel buffer of a still-image session and its undo/redo
history. Crop and resize run on the local raster surface; format and quality
conversion goes through the shared transcoder and falls back to the local
surface encoder when the transcoder is unavailable or fails.

Classes:
    RasterEditEngine: Crop, resize, convert, undo and redo for one still image
"""

from typing import Iterable, Optional
import logging

from RS_Libs.config import EditorConfig
from RS_Libs.constants import (
    CONVERT_INPUT_STEM,
    CONVERT_OUTPUT_STEM,
    STILL_EXPORT_BASENAME,
    SURFACE_FALLBACK_FORMAT,
)
from RS_Libs.errors import NoImageLoadedError, TranscodeError
from RS_Libs.notices import NoticeBoard
from RS_Libs.ImageEditingLib.edit_history import EditHistory
from RS_Libs.ImageEditingLib.image_editing_ops import (
    crop_buffer,
    derive_resize_dimensions,
    resize_buffer,
)
from RS_Libs.ImageEditingLib.image_models import (
    ConversionResult,
    CropRect,
    ExportArtifact,
    PixelBuffer,
)
from RS_Libs.ImageEditingLib.raster_surface import RasterSurface, supported_surface_formats
from RS_Libs.TranscodeLib.encode_args import (
    EncoderRegistry,
    build_convert_args,
    get_default_registry,
    normalize_format,
    validate_quality,
)
from RS_Libs.TranscodeLib.transcoder_adapter import TranscoderAdapter

logger = logging.getLogger(__name__)


class RasterEditEngine:
    """
    Editing engine for one still image.

    Example:
        >>> engine = RasterEditEngine(adapter)
        >>> engine.load(png_bytes)
        >>> engine.crop(CropRect(10, 10, 100, 50))
        True
        >>> result = await engine.convert_format("webp", 80)
        >>> engine.undo()
        True
    """

    def __init__(
        self,
        adapter: TranscoderAdapter,
        config: Optional[EditorConfig] = None,
        notices: Optional[NoticeBoard] = None,
        encoders: Optional[EncoderRegistry] = None,
        local_formats: Optional[Iterable[str]] = None,
    ):
        """
        Args:
            adapter: Shared transcoder adapter
            config: Editor configuration (history limit)
            notices: Board receiving user-visible warnings
            encoders: Format argument registry (defaults to the global one)
            local_formats: Formats the local surface may encode; defaults to
                what the installed Pillow build supports
        """
        self.config = config or EditorConfig()
        self.notices = notices if notices is not None else NoticeBoard()
        self._adapter = adapter
        self._encoders = encoders or get_default_registry()
        self._local_formats = tuple(
            supported_surface_formats() if local_formats is None else local_formats
        )
        self.history = EditHistory(limit=self.config.history_limit)

    @property
    def is_loaded(self) -> bool:
        return self.history.current is not None

    @property
    def current(self) -> Optional[PixelBuffer]:
        entry = self.history.current
        return entry.buffer if entry is not None else None

    def load(self, data: bytes, fmt: Optional[str] = None) -> PixelBuffer:
        """
        Load a still image and start a fresh history.

        Raises:
            MalformedInputError: If the bytes cannot be decoded
        """
        return self.load_buffer(PixelBuffer.from_bytes(data, fmt))

    def load_buffer(self, buffer: PixelBuffer) -> PixelBuffer:
        """Start a fresh history from an already decoded buffer."""
        self.history.reset(buffer)
        logger.info(f"Loaded {buffer.format} image {buffer.width}x{buffer.height}")
        return buffer

    def _require_buffer(self) -> PixelBuffer:
        buffer = self.current
        if buffer is None:
            raise NoImageLoadedError("Please load an image first")
        return buffer

    def _commit(self, buffer: PixelBuffer) -> PixelBuffer:
        self.history.push(buffer)
        return buffer

    # ------------------------------------------------------------------
    # Local edits
    # ------------------------------------------------------------------

    def crop(self, rect: CropRect) -> bool:
        """
        Crop to a rectangle in natural pixel space.

        The rectangle must already be clamped to the image. A rectangle with
        zero width or height is ignored.

        Returns:
            True if a new state was pushed
        """
        buffer = self._require_buffer()
        if rect.is_degenerate:
            logger.debug(f"Ignoring degenerate crop {rect}")
            return False

        self._commit(crop_buffer(buffer, rect))
        logger.info(f"Cropped to {rect.rounded()}")
        return True

    def resize(self, width: Optional[int] = None, height: Optional[int] = None) -> PixelBuffer:
        """
        Resample the image.

        With one dimension the other follows the aspect ratio; with neither the
        current size is kept and the unchanged image is still pushed as a new
        history state.

        Raises:
            ValueError: If a dimension is not positive
        """
        buffer = self._require_buffer()
        target_width, target_height = derive_resize_dimensions(
            buffer.width, buffer.height, width, height
        )
        resized = self._commit(resize_buffer(buffer, target_width, target_height))
        logger.info(f"Resized {buffer.width}x{buffer.height} -> {target_width}x{target_height}")
        return resized

    # ------------------------------------------------------------------
    # Format conversion
    # ------------------------------------------------------------------

    async def convert_format(self, target_format: str, quality: int) -> ConversionResult:
        """
        Re-encode the image in another format at a quality of 1-100.

        Uses the transcoder when it is available; otherwise, or when the
        transcoder fails, encodes on the local surface. Formats the surface
        cannot produce degrade to PNG and a warning is reported.

        Raises:
            NoImageLoadedError: If no image is loaded
            ValueError: If the format is unknown or quality is out of range
        """
        buffer = self._require_buffer()
        target = normalize_format(target_format)
        quality = validate_quality(quality)
        if not self._encoders.has_format(target):
            raise ValueError(
                f"Unsupported output format '{target_format}'. "
                f"Available formats: {', '.join(self._encoders.list_formats())}"
            )

        try:
            converted = await self._convert_with_transcoder(buffer, target, quality)
        except Exception as e:
            logger.warning(f"Transcoder conversion to {target} failed, using fallback method: {e}")
            return self._convert_locally(buffer, target, quality)

        self._commit(converted)
        logger.info(f"Converted {buffer.format} -> {target} at quality {quality}")
        return ConversionResult(buffer=converted, format=target)

    async def _convert_with_transcoder(
        self, buffer: PixelBuffer, target: str, quality: int
    ) -> PixelBuffer:
        input_name = f"{CONVERT_INPUT_STEM}.{buffer.format}"
        output_name = f"{CONVERT_OUTPUT_STEM}.{target}"
        args = build_convert_args(input_name, output_name, target, quality, self._encoders)

        async with self._adapter.exclusive("convert") as engine:
            try:
                await engine.write_file(input_name, buffer.data)
                status = await engine.exec(args)
                if status != 0:
                    raise TranscodeError(f"Conversion to {target} failed", status)
                data = await engine.read_file(output_name)
            finally:
                await self._adapter.discard(input_name, output_name)

        return PixelBuffer.from_bytes(data, target)

    def _convert_locally(self, buffer: PixelBuffer, target: str, quality: int) -> ConversionResult:
        warnings = []
        surface_format = "jpeg" if self._encoders.resolve(target) == "jpeg" else target

        if surface_format in self._local_formats:
            output_format = target
        else:
            output_format = SURFACE_FALLBACK_FORMAT
            surface_format = SURFACE_FALLBACK_FORMAT
            message = (
                f"{target.upper()} is not supported without the transcoder. "
                f"Using {output_format.upper()} as fallback."
            )
            warnings.append(message)
            self.notices.warning(message)

        surface = RasterSurface.from_image(buffer.image)
        data, _ = surface.encode(surface_format, quality)
        converted = self._commit(PixelBuffer.from_bytes(data, output_format))
        return ConversionResult(
            buffer=converted,
            format=output_format,
            used_fallback=True,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def export(self, basename: str = STILL_EXPORT_BASENAME) -> ExportArtifact:
        """Current image bytes with a file name matching their format."""
        buffer = self._require_buffer()
        return ExportArtifact(
            data=buffer.data,
            filename=f"{basename}.{buffer.format}",
            media_type=buffer.media_type,
        )

    def clear(self) -> None:
        self.history.clear()
