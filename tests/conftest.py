"""
Pytest configuration and shared fixtures for Raster Studio tests.

Provides encoded test images and a Pillow-backed transcoding engine double
that understands the FFmpeg commands the engines issue (format conversion,
frame extraction, palette generation and palette-based GIF encoding).
"""

import asyncio
import io
from pathlib import PurePath
from typing import Dict, List, Optional

import pytest
from PIL import Image, ImageSequence

from RS_Libs.config import EditorConfig
from RS_Libs.notices import NoticeBoard
from RS_Libs.TranscodeLib.ffmpeg_engine import TranscodingEngine
from RS_Libs.TranscodeLib.transcoder_adapter import TranscoderAdapter

FRAME_COLORS = [
    (255, 0, 0, 255),
    (0, 255, 0, 255),
    (0, 0, 255, 255),
    (255, 255, 0, 255),
]

_PILLOW_SAVE_FORMATS = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "webp": "WEBP",
    "bmp": "BMP",
    "gif": "GIF",
    "tiff": "TIFF",
    "tif": "TIFF",
}


def make_png(width=40, height=30, color=(255, 0, 0, 255)) -> bytes:
    """Encode a solid-color RGBA PNG."""
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def make_gradient_png(width=40, height=30) -> bytes:
    """Encode an RGBA PNG where every pixel differs from its neighbours."""
    image = Image.new("RGBA", (width, height))
    image.putdata([
        ((x * 255) // max(width - 1, 1), (y * 255) // max(height - 1, 1), (x + y) % 256, 255)
        for y in range(height)
        for x in range(width)
    ])
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def make_gif(colors=None, size=(16, 12), duration=100) -> bytes:
    """Encode a looping animated GIF with one solid-color frame per color."""
    colors = colors or FRAME_COLORS
    frames = [Image.new("RGB", size, color[:3]) for color in colors]
    buf = io.BytesIO()
    frames[0].save(
        buf,
        format="GIF",
        save_all=True,
        append_images=frames[1:],
        duration=duration,
        loop=0,
    )
    return buf.getvalue()


def gif_frame_count(data: bytes) -> int:
    with Image.open(io.BytesIO(data)) as img:
        return getattr(img, "n_frames", 1)


class FakeEngine(TranscodingEngine):
    """
    In-memory transcoding engine double.

    Args:
        fail_load: Raise from load()
        fail_commands: Substrings; a command containing one returns status 1
        exec_delay: Seconds every exec() sleeps, to keep a pipeline in flight
    """

    def __init__(self, fail_load=False, fail_commands=(), exec_delay=0.0):
        self.files: Dict[str, bytes] = {}
        self.commands: List[List[str]] = []
        self.fail_load = fail_load
        self.fail_commands = tuple(fail_commands)
        self.exec_delay = exec_delay
        self.load_calls = 0
        self.reads: List[str] = []
        self.closed = False
        self.encoded_frame_count: Optional[int] = None

    async def load(self) -> None:
        self.load_calls += 1
        await asyncio.sleep(0)
        if self.fail_load:
            raise RuntimeError("engine failed to start")

    async def write_file(self, name: str, data: bytes) -> None:
        self.files[name] = bytes(data)

    async def read_file(self, name: str) -> bytes:
        self.reads.append(name)
        try:
            return self.files[name]
        except KeyError:
            raise FileNotFoundError(name) from None

    async def delete_file(self, name: str) -> None:
        if name not in self.files:
            raise FileNotFoundError(name)
        del self.files[name]

    async def close(self) -> None:
        self.closed = True

    async def exec(self, args: List[str]) -> int:
        self.commands.append(list(args))
        if self.exec_delay:
            await asyncio.sleep(self.exec_delay)

        joined = " ".join(args)
        if any(marker in joined for marker in self.fail_commands):
            return 1

        if "-vsync" in args:
            return self._extract(args[args.index("-i") + 1])
        if "palettegen" in args:
            return self._palettegen(args[-1])
        if any("paletteuse" in arg for arg in args):
            return self._paletteuse(args[-1])
        return self._convert(args[args.index("-i") + 1], args[-1])

    def _sequence(self) -> List[Image.Image]:
        frames = []
        number = 1
        while f"frame_{number:03d}.png" in self.files:
            frames.append(Image.open(io.BytesIO(self.files[f"frame_{number:03d}.png"])))
            number += 1
        return frames

    def _extract(self, input_name: str) -> int:
        if input_name not in self.files:
            return 1
        try:
            with Image.open(io.BytesIO(self.files[input_name])) as img:
                for number, frame in enumerate(ImageSequence.Iterator(img), start=1):
                    buf = io.BytesIO()
                    frame.convert("RGBA").save(buf, format="PNG")
                    self.files[f"frame_{number:03d}.png"] = buf.getvalue()
        except OSError:
            return 1
        return 0

    def _palettegen(self, palette_name: str) -> int:
        frames = self._sequence()
        if not frames:
            return 1
        buf = io.BytesIO()
        frames[0].convert("RGB").quantize(colors=256).save(buf, format="PNG")
        self.files[palette_name] = buf.getvalue()
        return 0

    def _paletteuse(self, output_name: str) -> int:
        frames = [frame.convert("RGB") for frame in self._sequence()]
        if not frames or "palette.png" not in self.files:
            return 1
        self.encoded_frame_count = len(frames)
        buf = io.BytesIO()
        frames[0].save(buf, format="GIF", save_all=True, append_images=frames[1:], loop=0)
        self.files[output_name] = buf.getvalue()
        return 0

    def _convert(self, input_name: str, output_name: str) -> int:
        if input_name not in self.files:
            return 1
        fmt = _PILLOW_SAVE_FORMATS.get(PurePath(output_name).suffix.lower().lstrip("."))
        if fmt is None:
            return 1
        with Image.open(io.BytesIO(self.files[input_name])) as img:
            image = img.convert("RGB" if fmt in ("JPEG", "BMP") else "RGBA")
            buf = io.BytesIO()
            image.save(buf, format=fmt)
        self.files[output_name] = buf.getvalue()
        return 0


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def gradient_png_bytes():
    return make_gradient_png()


@pytest.fixture
def gif_bytes():
    """Four-frame looping GIF (red, green, blue, yellow)."""
    return make_gif()


@pytest.fixture
def config():
    return EditorConfig(playback_interval_ms=10)


@pytest.fixture
def notices():
    return NoticeBoard()


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def adapter(fake_engine):
    return TranscoderAdapter(lambda: fake_engine)


@pytest.fixture
def broken_adapter():
    return TranscoderAdapter(lambda: FakeEngine(fail_load=True))
