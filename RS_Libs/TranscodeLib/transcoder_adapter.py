"""
Shared transcoder adapter.

One adapter is created per process and handed to every engine that needs
transcoding. The engine behind it is loaded lazily, at most once: concurrent
callers that arrive while loading is in flight await the same load task. If
loading fails the adapter stays unavailable for the rest of the process
lifetime and callers fall back to local behaviour.

The engine's file system is shared, so only one pipeline may use it at a
time; ``exclusive()`` rejects a second pipeline instead of letting same-named
files collide.

Classes:
    AdapterState: Lifecycle states of the adapter
    TranscoderAdapter: Lazily loaded, race-safe handle to a TranscodingEngine
"""

from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Callable, Optional
import asyncio
import logging

from RS_Libs.config import EditorConfig
from RS_Libs.errors import EngineUnavailableError, TranscoderBusyError
from RS_Libs.TranscodeLib.ffmpeg_engine import FFmpegEngine, TranscodingEngine

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], TranscodingEngine]


class AdapterState(Enum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class TranscoderAdapter:
    """
    Lazily initialized handle to a transcoding engine.

    Example:
        >>> adapter = TranscoderAdapter.for_config(EditorConfig())
        >>> if await adapter.ensure_loaded():
        ...     async with adapter.exclusive("convert") as engine:
        ...         await engine.write_file("input.png", data)
    """

    def __init__(self, engine_factory: EngineFactory):
        if not callable(engine_factory):
            raise ValueError(f"engine_factory must be callable, got {type(engine_factory)}")

        self._engine_factory = engine_factory
        self._engine: Optional[TranscodingEngine] = None
        self._state = AdapterState.NOT_LOADED
        self._load_task: Optional["asyncio.Task[bool]"] = None
        self._load_error: Optional[BaseException] = None
        self._active_pipeline: Optional[str] = None

    @classmethod
    def for_config(cls, config: EditorConfig) -> "TranscoderAdapter":
        """Create an adapter that loads an FFmpegEngine configured from config."""
        return cls(lambda: FFmpegEngine(config.ffmpeg_binary, config.work_dir_prefix))

    @property
    def state(self) -> AdapterState:
        return self._state

    @property
    def is_available(self) -> bool:
        return self._state is AdapterState.READY

    @property
    def load_error(self) -> Optional[BaseException]:
        return self._load_error

    @property
    def is_busy(self) -> bool:
        return self._active_pipeline is not None

    async def ensure_loaded(self) -> bool:
        """
        Load the engine if needed.

        Safe to call from many tasks at once: only the first call starts the
        load, the others await the same task.

        Returns:
            True if the engine is ready, False if it is unavailable
        """
        if self._state is AdapterState.READY:
            return True
        if self._state is AdapterState.UNAVAILABLE:
            return False

        if self._load_task is None:
            self._state = AdapterState.LOADING
            self._load_task = asyncio.ensure_future(self._load())

        return await asyncio.shield(self._load_task)

    async def _load(self) -> bool:
        logger.info("Loading transcoding engine...")
        try:
            engine = self._engine_factory()
            await engine.load()
        except Exception as e:
            self._load_error = e
            self._state = AdapterState.UNAVAILABLE
            logger.error(f"Failed to load transcoding engine: {e}")
            return False

        self._engine = engine
        self._state = AdapterState.READY
        logger.info("Transcoding engine loaded")
        return True

    async def engine(self) -> TranscodingEngine:
        """
        Get the loaded engine.

        Raises:
            EngineUnavailableError: If the engine could not be loaded
        """
        if not await self.ensure_loaded() or self._engine is None:
            raise EngineUnavailableError(
                f"Transcoding engine unavailable: {self._load_error}"
            )
        return self._engine

    @asynccontextmanager
    async def exclusive(self, label: str) -> AsyncIterator[TranscodingEngine]:
        """
        Hold the engine's file system for one pipeline.

        Args:
            label: Name of the pipeline, used in busy errors and logs

        Raises:
            EngineUnavailableError: If the engine could not be loaded
            TranscoderBusyError: If another pipeline is in flight
        """
        if self._active_pipeline is not None:
            raise TranscoderBusyError(self._active_pipeline, label)

        self._active_pipeline = label
        try:
            engine = await self.engine()
            logger.debug(f"Pipeline '{label}' acquired the transcoder")
            yield engine
        finally:
            self._active_pipeline = None
            logger.debug(f"Pipeline '{label}' released the transcoder")

    async def discard(self, *names: str) -> None:
        """Best-effort deletion of engine files. Failures are logged and ignored."""
        if self._engine is None:
            return
        for name in names:
            try:
                await self._engine.delete_file(name)
            except Exception as e:
                logger.debug(f"Ignoring failure deleting '{name}': {e}")

    async def shutdown(self) -> None:
        """Close a loaded engine. The adapter is unavailable afterwards."""
        if self._load_task is not None and not self._load_task.done():
            await asyncio.shield(self._load_task)

        engine, self._engine = self._engine, None
        if self._state is AdapterState.READY:
            self._state = AdapterState.UNAVAILABLE
            self._load_error = EngineUnavailableError("adapter shut down")
        if engine is not None:
            await engine.close()
            logger.info("Transcoding engine closed")
