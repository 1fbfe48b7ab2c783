"""
Frame Timeline Engine.

Turns an animated GIF into an editable sequence of still frames through the
shared transcoder, supports structural edits on that sequence (duplicate,
delete, move, insert, replace), drives playback, and re-encodes the edited
sequence with palette generation followed by palette-based encoding.

Classes:
    FrameTimelineEngine: Frame sequence, current index, playback and GIF export
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from RS_Libs.config import EditorConfig
from RS_Libs.constants import (
    ANIMATED_EXPORT_BASENAME,
    ANIMATED_INPUT_FILE,
    ANIMATED_MEDIA_TYPE,
    ANIMATED_OUTPUT_FILE,
    FRAME_FILE_TEMPLATE,
    PALETTE_FILE,
)
from RS_Libs.errors import NoImageLoadedError, ResourceRevokedError, TranscodeError
from RS_Libs.notices import NoticeBoard
from RS_Libs.ImageEditingLib.image_editing_ops import normalize_image_bytes
from RS_Libs.ImageEditingLib.image_models import ExportArtifact, decode_image
from RS_Libs.TimelineLib.frame_models import Frame, ReconstructResult, ResourceStore
from RS_Libs.TimelineLib.reindex import DeleteOp, InsertOp, MoveOp, reindex
from RS_Libs.TimelineLib.timeline_state import (
    TimelineEvent,
    TimelineState,
    TimelineStateMachine,
    ViewMode,
)
from RS_Libs.TranscodeLib.encode_args import (
    build_extract_frames_args,
    build_palettegen_args,
    build_paletteuse_args,
)
from RS_Libs.TranscodeLib.transcoder_adapter import TranscoderAdapter

logger = logging.getLogger(__name__)


class FrameTimelineEngine:
    """
    Editable frame sequence for one animated GIF.

    Structural edits are synchronous and update the sequence and the current
    index together. Extraction and reconstruction are coroutines that hold
    the transcoder exclusively.

    Example:
        >>> timeline = FrameTimelineEngine(adapter)
        >>> await timeline.load_source(gif_bytes)
        4
        >>> timeline.duplicate(1)
        True
        >>> timeline.delete(0)
        True
        >>> result = await timeline.reconstruct()
        >>> result.ok
        True
    """

    def __init__(
        self,
        adapter: TranscoderAdapter,
        config: Optional[EditorConfig] = None,
        notices: Optional[NoticeBoard] = None,
        store: Optional[ResourceStore] = None,
    ):
        self.config = config or EditorConfig()
        self.notices = notices if notices is not None else NoticeBoard()
        self._adapter = adapter
        self._store = store if store is not None else ResourceStore()
        self._machine = TimelineStateMachine()
        self._frames: List[Frame] = []
        self._current = 0
        self._source: Optional[bytes] = None
        self._playback_task: Optional[asyncio.Task] = None
        # Bumped by every load and close; extractions from an older load are dropped
        self._generation = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def frames(self) -> Tuple[Frame, ...]:
        return tuple(self._frames)

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def current_index(self) -> int:
        return self._current

    @property
    def current_frame(self) -> Optional[Frame]:
        if not self._frames:
            return None
        return self._frames[self._current]

    @property
    def source(self) -> Optional[bytes]:
        return self._source

    @property
    def is_loaded(self) -> bool:
        return self._source is not None

    @property
    def state(self) -> TimelineState:
        return self._machine.state

    @property
    def view_mode(self) -> ViewMode:
        return self._machine.view_mode

    @property
    def is_playing(self) -> bool:
        return self._machine.is_playing

    @property
    def store(self) -> ResourceStore:
        return self._store

    def _dispatch(self, event: TimelineEvent) -> bool:
        accepted = self._machine.dispatch(event, len(self._frames))
        self._sync_playback()
        return accepted

    # ------------------------------------------------------------------
    # Loading and extraction
    # ------------------------------------------------------------------

    async def load_source(self, data: bytes) -> int:
        """
        Load an animated GIF and extract its frames.

        Returns:
            Number of extracted frames (0 when extraction failed)
        """
        self._generation += 1
        self._release_all()
        self._source = bytes(data)
        self._current = 0
        self._dispatch(TimelineEvent.LOAD)
        return await self.extract_frames(self._source)

    async def extract_frames(self, source: bytes) -> int:
        """
        Split an animated GIF into PNG frames through the transcoder.

        At most ``max_extracted_frames`` frames are read back; any further
        frame files are deleted unread. Failures are not fatal: the frame
        list stays empty, the animation can still be played from its source,
        and a warning notice is posted. If the source is replaced or the
        timeline closed while extraction runs, the result is discarded.

        Returns:
            Number of extracted frames
        """
        generation = self._generation
        extracted: List[Frame] = []
        try:
            async with self._adapter.exclusive("extract") as engine:
                try:
                    await engine.write_file(ANIMATED_INPUT_FILE, source)
                    status = await engine.exec(build_extract_frames_args(ANIMATED_INPUT_FILE))
                    if status != 0:
                        raise TranscodeError("Frame extraction failed", status)

                    limit = self.config.max_extracted_frames
                    number = 1
                    while number <= limit:
                        name = FRAME_FILE_TEMPLATE.format(number)
                        try:
                            data = await engine.read_file(name)
                        except OSError:
                            break
                        await self._adapter.discard(name)
                        extracted.append(Frame.revocable(data, self._store))
                        number += 1

                    skipped = await self._delete_frame_files(engine, limit + 1)
                    if skipped:
                        logger.warning(
                            f"Animation has {limit + skipped} frames, keeping the first {limit}"
                        )
                finally:
                    await self._adapter.discard(ANIMATED_INPUT_FILE)
        except Exception as e:
            for frame in extracted:
                frame.release()
            if generation != self._generation:
                logger.debug(f"Ignoring failed extraction for a replaced source: {e}")
                return 0
            logger.error(f"Frame extraction failed: {e}")
            self.notices.warning(
                f"Could not extract frames ({e}). The animation will still play."
            )
            self._install_frames([])
            return 0

        if generation != self._generation:
            for frame in extracted:
                frame.release()
            logger.info(f"Discarded {len(extracted)} frames extracted for a replaced source")
            return 0

        self._install_frames(extracted)
        logger.info(f"Extracted {len(extracted)} frames")
        return len(extracted)

    @staticmethod
    async def _delete_frame_files(engine, first: int) -> int:
        """Delete frame files from ``first`` on without reading them."""
        count = 0
        while True:
            try:
                await engine.delete_file(FRAME_FILE_TEMPLATE.format(first + count))
            except OSError:
                return count
            count += 1

    def _install_frames(self, frames: List[Frame]) -> None:
        self._release_all()
        self._frames = frames
        self._current = 0
        self._dispatch(TimelineEvent.FRAMES_CHANGED)

    def _release_all(self) -> None:
        for frame in self._frames:
            frame.release()
        self._frames = []

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def _resolve_index(self, index: Optional[int]) -> int:
        if index is None:
            index = self._current
        if not 0 <= index < len(self._frames):
            raise IndexError(f"Frame index {index} out of range (0-{len(self._frames) - 1})")
        return index

    def duplicate(self, at: Optional[int] = None) -> bool:
        """
        Insert an independent copy of a frame right after it.

        Args:
            at: Frame to copy (defaults to the current frame)

        Returns:
            False when there are no frames
        """
        if not self._frames:
            self.notices.warning("No frames to duplicate")
            return False

        at = self._resolve_index(at)
        copy = self._frames[at].copy(self._store)
        self._frames.insert(at + 1, copy)
        self._current = reindex(self._current, InsertOp(at + 1))
        self._dispatch(TimelineEvent.EDIT)
        logger.debug(f"Duplicated frame {at}")
        return True

    def delete(self, at: Optional[int] = None) -> bool:
        """
        Remove a frame and release its resource.

        The last remaining frame cannot be deleted; that request is refused
        with a notice.

        Returns:
            True if a frame was removed
        """
        if len(self._frames) <= 1:
            self.notices.warning("Cannot delete the last frame. GIF must have at least one frame.")
            return False

        at = self._resolve_index(at)
        length = len(self._frames)
        frame = self._frames.pop(at)
        frame.release()
        self._current = reindex(self._current, DeleteOp(at, length))
        self._dispatch(TimelineEvent.EDIT)
        logger.debug(f"Deleted frame {at}, current is now {self._current}")
        return True

    def move(self, source: int, target: int) -> bool:
        """
        Move the frame at ``source`` so it ends up at ``target``.

        Raises:
            IndexError: If either index is out of range
        """
        source = self._resolve_index(source)
        target = self._resolve_index(target)
        if source == target:
            return False

        frame = self._frames.pop(source)
        self._frames.insert(target, frame)
        self._current = reindex(self._current, MoveOp(source, target))
        self._dispatch(TimelineEvent.EDIT)
        logger.debug(f"Moved frame {source} -> {target}")
        return True

    def move_up(self) -> bool:
        if len(self._frames) <= 1 or self._current == 0:
            return False
        return self.move(self._current, self._current - 1)

    def move_down(self) -> bool:
        if len(self._frames) <= 1 or self._current >= len(self._frames) - 1:
            return False
        return self.move(self._current, self._current + 1)

    def _normalize(self, image_bytes: bytes) -> bytes:
        image = decode_image(image_bytes)
        if self._frames:
            width, height = self._frames[0].natural_size()
        else:
            width, height = image.size
        return normalize_image_bytes(image_bytes, width, height)

    def insert_at(self, index: int, image_bytes: bytes) -> None:
        """
        Insert a still image as a new frame.

        The image is resampled to the first frame's size.

        Raises:
            IndexError: If index is not in 0..frame_count
            MalformedInputError: If the image cannot be decoded
        """
        if not 0 <= index <= len(self._frames):
            raise IndexError(f"Insert position {index} out of range (0-{len(self._frames)})")

        frame = Frame.persistent(self._normalize(image_bytes))
        self._frames.insert(index, frame)
        self._current = reindex(self._current, InsertOp(index))
        self._dispatch(TimelineEvent.EDIT)
        logger.debug(f"Inserted frame at {index}")

    def replace_at(self, index: int, image_bytes: bytes) -> None:
        """
        Replace a frame with a still image resampled to the first frame's size.

        Raises:
            IndexError: If index is out of range
            MalformedInputError: If the image cannot be decoded
        """
        index = self._resolve_index(index)
        frame = Frame.persistent(self._normalize(image_bytes))
        outgoing, self._frames[index] = self._frames[index], frame
        outgoing.release()
        self._current = index
        self._dispatch(TimelineEvent.EDIT)
        logger.debug(f"Replaced frame {index}")

    # ------------------------------------------------------------------
    # Navigation and playback
    # ------------------------------------------------------------------

    def go_to(self, index: int) -> bool:
        """Show one frame, paused. Out-of-range indices are ignored."""
        if not 0 <= index < len(self._frames):
            return False
        self._current = index
        self._dispatch(TimelineEvent.NAVIGATE)
        return True

    def next(self) -> bool:
        if not self._frames:
            return False
        return self.go_to((self._current + 1) % len(self._frames))

    def prev(self) -> bool:
        if not self._frames:
            return False
        return self.go_to((self._current - 1) % len(self._frames))

    def play(self) -> None:
        self._dispatch(TimelineEvent.PLAY)

    def pause(self) -> bool:
        if not self._dispatch(TimelineEvent.PAUSE):
            self.notices.info("Cannot pause: frames not extracted yet")
            return False
        return True

    def toggle_playback(self) -> bool:
        """Toggle between playing and paused. Returns False if refused."""
        if self._machine.is_playing:
            return self.pause()
        self.play()
        return True

    def _sync_playback(self) -> None:
        should_run = self._machine.should_advance(len(self._frames))
        task = self._playback_task

        if not should_run:
            if task is not None:
                task.cancel()
                self._playback_task = None
            return

        if task is not None and not task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; the next state change inside one starts playback
            return
        self._playback_task = loop.create_task(self._run_playback())

    async def _run_playback(self) -> None:
        interval = self.config.playback_interval
        try:
            while True:
                await asyncio.sleep(interval)
                if not self._machine.should_advance(len(self._frames)):
                    break
                self._current = (self._current + 1) % len(self._frames)
        finally:
            if self._playback_task is asyncio.current_task():
                self._playback_task = None

    @property
    def is_ticking(self) -> bool:
        """True while a playback task is scheduled."""
        return self._playback_task is not None and not self._playback_task.done()

    # ------------------------------------------------------------------
    # Reconstruction and export
    # ------------------------------------------------------------------

    async def reconstruct(self) -> ReconstructResult:
        """
        Encode the current frame sequence as a looping animated GIF.

        All frame bytes are resolved before the transcoder is touched, so a
        revoked frame fails the call without running any command. Errors are
        reported in the result instead of raised.
        """
        snapshot = list(self._frames)
        if not snapshot:
            return ReconstructResult.failure("No frames available for reconstruction")

        payloads = []
        for index, frame in enumerate(snapshot):
            try:
                payloads.append(frame.read_bytes())
            except ResourceRevokedError as e:
                logger.error(f"Frame {index} cannot be read: {e}")
                return ReconstructResult.failure(
                    f"Frame {index + 1} cannot be read: {e}", failed_frame=index
                )

        frame_files = [FRAME_FILE_TEMPLATE.format(number) for number in range(1, len(payloads) + 1)]
        try:
            async with self._adapter.exclusive("reconstruct") as engine:
                try:
                    for name, data in zip(frame_files, payloads):
                        await engine.write_file(name, data)

                    status = await engine.exec(build_palettegen_args(PALETTE_FILE))
                    if status != 0:
                        raise TranscodeError("Palette generation failed", status)

                    status = await engine.exec(
                        build_paletteuse_args(PALETTE_FILE, ANIMATED_OUTPUT_FILE)
                    )
                    if status != 0:
                        raise TranscodeError("Palette-based encoding failed", status)

                    output = await engine.read_file(ANIMATED_OUTPUT_FILE)
                finally:
                    await self._adapter.discard(*frame_files, PALETTE_FILE, ANIMATED_OUTPUT_FILE)
        except Exception as e:
            logger.error(f"GIF reconstruction failed: {e}")
            return ReconstructResult.failure(str(e))

        logger.info(f"Reconstructed GIF from {len(payloads)} frames ({len(output)} bytes)")
        return ReconstructResult(data=output)

    async def export(self, basename: str = ANIMATED_EXPORT_BASENAME) -> Optional[ExportArtifact]:
        """
        Export the animation.

        With extracted frames the sequence is reconstructed; otherwise the
        original source is returned unchanged.

        Returns:
            The artifact, or None when reconstruction failed

        Raises:
            NoImageLoadedError: If no animation is loaded
        """
        filename = f"{basename}.gif"
        if self._frames:
            result = await self.reconstruct()
            if not result.ok:
                self.notices.error(
                    f"Failed to reconstruct GIF from edited frames: {result.error}"
                )
                return None
            return ExportArtifact(data=result.data, filename=filename, media_type=ANIMATED_MEDIA_TYPE)

        if self._source is None:
            raise NoImageLoadedError("Please load an animation first")
        return ExportArtifact(data=self._source, filename=filename, media_type=ANIMATED_MEDIA_TYPE)

    def close(self) -> None:
        """Stop playback and release every frame."""
        self._generation += 1
        if self._playback_task is not None:
            self._playback_task.cancel()
            self._playback_task = None
        self._release_all()
        self._current = 0
        self._source = None
        self._machine.dispatch(TimelineEvent.FRAMES_CHANGED, 0)
