"""
Transcoding engines.

An engine exposes a private file system and command execution. The FFmpeg
engine keeps its files in a private temporary directory and runs the FFmpeg
binary inside it, so callers only ever deal with plain file names.

Classes:
    TranscodingEngine: Abstract interface used by the adapter
    FFmpegEngine: Engine backed by an FFmpeg executable
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional
import asyncio
import logging
import shutil
import tempfile

from RS_Libs.constants import DEFAULT_FFMPEG_BINARY, FFMPEG_GLOBAL_ARGS, WORK_DIR_PREFIX

logger = logging.getLogger(__name__)


class TranscodingEngine(ABC):
    """Virtual file system plus command execution."""

    @abstractmethod
    async def load(self) -> None:
        """Prepare the engine. Raises on failure."""

    @abstractmethod
    async def write_file(self, name: str, data: bytes) -> None:
        ...

    @abstractmethod
    async def exec(self, args: List[str]) -> int:
        """Run a command and return its exit status."""

    @abstractmethod
    async def read_file(self, name: str) -> bytes:
        """Read a file. Raises FileNotFoundError if it does not exist."""

    @abstractmethod
    async def delete_file(self, name: str) -> None:
        ...

    async def close(self) -> None:
        """Release engine resources."""


def validate_file_name(name: str) -> str:
    """
    Validate a virtual file name.

    Names must be plain file names so every file stays inside the engine's
    private directory.

    Raises:
        ValueError: If the name is empty or contains path components
    """
    name = str(name)
    if not name or name in (".", ".."):
        raise ValueError(f"Invalid file name: {name!r}")

    path = Path(name)
    if len(path.parts) != 1 or "/" in name or "\\" in name:
        raise ValueError(f"File name must not contain path components: {name!r}")
    return name


class FFmpegEngine(TranscodingEngine):
    """
    Engine backed by an FFmpeg executable.

    Example:
        >>> engine = FFmpegEngine()
        >>> await engine.load()
        >>> await engine.write_file("input.png", png_bytes)
        >>> await engine.exec(["-i", "input.png", "output.webp"])
        0
        >>> data = await engine.read_file("output.webp")
    """

    def __init__(self, binary: str = DEFAULT_FFMPEG_BINARY, work_dir_prefix: str = WORK_DIR_PREFIX):
        self.binary = binary
        self.work_dir_prefix = work_dir_prefix
        self._executable: Optional[str] = None
        self._work_dir: Optional[Path] = None

    @property
    def work_dir(self) -> Path:
        if self._work_dir is None:
            raise RuntimeError("FFmpeg engine is not loaded")
        return self._work_dir

    async def load(self) -> None:
        """
        Resolve the FFmpeg binary, probe it, and create the working directory.

        Raises:
            FileNotFoundError: If the binary cannot be found
            RuntimeError: If the binary does not run successfully
        """
        executable = shutil.which(self.binary)
        if executable is None:
            raise FileNotFoundError(f"FFmpeg executable not found: {self.binary}")

        proc = await asyncio.create_subprocess_exec(
            executable,
            "-version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()

        if proc.returncode != 0:
            stderr_text = stderr.decode("utf-8", errors="replace")
            raise RuntimeError(f"FFmpeg probe failed ({proc.returncode}): {stderr_text}")

        version_line = stdout.decode("utf-8", errors="replace").splitlines()[:1]
        logger.info(f"Loaded FFmpeg core: {' '.join(version_line) or executable}")

        self._executable = executable
        self._work_dir = Path(tempfile.mkdtemp(prefix=self.work_dir_prefix))

    async def write_file(self, name: str, data: bytes) -> None:
        path = self.work_dir / validate_file_name(name)
        await asyncio.to_thread(path.write_bytes, bytes(data))

    async def exec(self, args: List[str]) -> int:
        if self._executable is None:
            raise RuntimeError("FFmpeg engine is not loaded")

        cmd = [self._executable] + FFMPEG_GLOBAL_ARGS + [str(a) for a in args]
        logger.debug(f"Running FFmpeg: {' '.join(cmd)}")

        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(self.work_dir),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await proc.communicate()

        stderr_text = stderr.decode("utf-8", errors="replace").strip()
        if stderr_text:
            logger.debug(f"FFmpeg: {stderr_text}")
        if proc.returncode != 0:
            logger.warning(f"FFmpeg exited with status {proc.returncode}")

        return proc.returncode

    async def read_file(self, name: str) -> bytes:
        path = self.work_dir / validate_file_name(name)
        if not path.is_file():
            raise FileNotFoundError(f"No such file in transcoder: {name}")
        return await asyncio.to_thread(path.read_bytes)

    async def delete_file(self, name: str) -> None:
        path = self.work_dir / validate_file_name(name)
        path.unlink()

    async def close(self) -> None:
        if self._work_dir is not None:
            shutil.rmtree(self._work_dir, ignore_errors=True)
            logger.debug(f"Removed transcoder working directory {self._work_dir}")
            self._work_dir = None
        self._executable = None
