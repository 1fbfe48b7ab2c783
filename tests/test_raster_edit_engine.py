"""
Tests for the Raster Edit Engine.

Covers loading, crop/resize history behaviour, conversion through the
transcoder, the local fallback and export naming.
"""

import asyncio

import pytest

from RS_Libs.errors import MalformedInputError, NoImageLoadedError
from RS_Libs.ImageEditingLib.image_editing_ops import pixels_equal
from RS_Libs.ImageEditingLib.image_models import CropRect, detect_format
from RS_Libs.ImageEditingLib.raster_edit_engine import RasterEditEngine
from RS_Libs.ImageEditingLib.raster_surface import supported_surface_formats
from RS_Libs.TranscodeLib.transcoder_adapter import TranscoderAdapter

from conftest import FakeEngine, make_gradient_png


@pytest.fixture
def engine(adapter, config, notices):
    return RasterEditEngine(adapter, config, notices)


@pytest.fixture
def offline_engine(broken_adapter, config, notices):
    return RasterEditEngine(broken_adapter, config, notices)


class TestLoad:
    """Tests for loading still images."""

    def test_load_starts_history(self, engine, png_bytes):
        buffer = engine.load(png_bytes)
        assert engine.is_loaded
        assert engine.current is buffer
        assert len(engine.history) == 1
        assert not engine.can_undo()

    def test_load_malformed_leaves_state(self, engine, png_bytes):
        engine.load(png_bytes)
        with pytest.raises(MalformedInputError):
            engine.load(b"\x89PNG broken")
        assert engine.current.data == png_bytes

    def test_operations_need_image(self, engine):
        with pytest.raises(NoImageLoadedError):
            engine.resize(10, 10)
        with pytest.raises(NoImageLoadedError):
            engine.export()


class TestCropResize:
    """Tests for local edits."""

    def test_crop_pushes_state(self, engine, gradient_png_bytes):
        engine.load(gradient_png_bytes)
        assert engine.crop(CropRect(5, 5, 10, 8))
        assert engine.current.size == (10, 8)
        assert engine.can_undo()

    def test_degenerate_crop_ignored(self, engine, png_bytes):
        engine.load(png_bytes)
        assert not engine.crop(CropRect(5, 5, 0, 8))
        assert len(engine.history) == 1

    def test_resize_with_one_dimension(self, engine, png_bytes):
        engine.load(png_bytes)  # 40x30
        engine.resize(width=20)
        assert engine.current.size == (20, 15)

    def test_resize_without_dimensions_still_pushes(self, engine, png_bytes):
        engine.load(png_bytes)
        engine.resize()
        assert engine.current.size == (40, 30)
        assert len(engine.history) == 2

    def test_resize_rejects_non_positive(self, engine, png_bytes):
        engine.load(png_bytes)
        with pytest.raises(ValueError):
            engine.resize(width=0)
        assert len(engine.history) == 1

    def test_undo_restores_exact_pixels(self, engine):
        data = make_gradient_png(40, 30)
        original = engine.load(data)
        engine.crop(CropRect(0, 0, 10, 10))
        engine.resize(width=5)

        assert engine.undo()
        assert engine.undo()
        assert not engine.undo()
        assert pixels_equal(engine.current.image, original.image)
        assert engine.redo()
        assert engine.current.size == (10, 10)


class TestConvertWithTranscoder:
    """Tests for conversion through the transcoder."""

    def test_converts_via_engine(self, engine, fake_engine, png_bytes):
        engine.load(png_bytes)
        result = asyncio.run(engine.convert_format("bmp", 80))

        assert not result.used_fallback
        assert result.format == "bmp"
        assert detect_format(result.buffer.data) == "bmp"
        assert engine.current is result.buffer
        assert fake_engine.commands[-1] == [
            "-i", "input.png", "-pix_fmt", "bgr24", "output.bmp"
        ]

    def test_working_files_removed(self, engine, fake_engine, png_bytes):
        engine.load(png_bytes)
        asyncio.run(engine.convert_format("jpg", 50))
        assert fake_engine.files == {}

    def test_undo_after_convert(self, engine, png_bytes):
        engine.load(png_bytes)
        asyncio.run(engine.convert_format("jpeg", 50))
        assert engine.undo()
        assert engine.current.format == "png"

    def test_engine_failure_uses_local_encoder(self, config, notices, png_bytes):
        """A failing command falls back to the local surface."""
        adapter = TranscoderAdapter(lambda: FakeEngine(fail_commands=["output.jpeg"]))
        engine = RasterEditEngine(adapter, config, notices)
        engine.load(png_bytes)

        result = asyncio.run(engine.convert_format("jpeg", 70))

        assert result.used_fallback
        assert result.format == "jpeg"
        assert detect_format(result.buffer.data) == "jpeg"

    def test_unknown_format(self, engine, png_bytes):
        engine.load(png_bytes)
        with pytest.raises(ValueError):
            asyncio.run(engine.convert_format("avif", 80))

    def test_quality_out_of_range(self, engine, png_bytes):
        engine.load(png_bytes)
        with pytest.raises(ValueError):
            asyncio.run(engine.convert_format("png", 101))


class TestConvertFallback:
    """Tests for conversion when the transcoder cannot load."""

    def test_webp_never_raises(self, offline_engine, notices, png_bytes):
        """WebP is produced locally when Pillow can, otherwise PNG with a warning."""
        offline_engine.load(png_bytes)
        result = asyncio.run(offline_engine.convert_format("webp", 80))

        assert result.used_fallback
        if "webp" in supported_surface_formats():
            assert result.format == "webp"
            assert result.warnings == []
        else:
            assert result.format == "png"
            assert "WEBP is not supported" in result.warnings[0]

    def test_unsupported_format_degrades_to_png(self, offline_engine, notices, png_bytes):
        offline_engine.load(png_bytes)
        result = asyncio.run(offline_engine.convert_format("tiff", 80))

        assert result.format == "png"
        assert detect_format(result.buffer.data) == "png"
        assert result.warnings == [
            "TIFF is not supported without the transcoder. Using PNG as fallback."
        ]
        assert notices.latest().level == "warning"
        assert len(offline_engine.history) == 2

    def test_restricted_local_formats(self, broken_adapter, config, notices, png_bytes):
        engine = RasterEditEngine(broken_adapter, config, notices, local_formats=["png"])
        engine.load(png_bytes)
        result = asyncio.run(engine.convert_format("jpg", 80))
        assert result.format == "png"
        assert "JPG is not supported" in result.warnings[0]


class TestExport:
    """Tests for export naming."""

    def test_export_name_follows_format(self, engine, png_bytes):
        engine.load(png_bytes)
        artifact = engine.export()
        assert artifact.filename == "edited-image.png"
        assert artifact.media_type == "image/png"
        assert artifact.data == png_bytes

    def test_export_after_convert(self, engine, png_bytes):
        engine.load(png_bytes)
        asyncio.run(engine.convert_format("jpg", 80))
        artifact = engine.export()
        assert artifact.filename == "edited-image.jpg"
        assert artifact.media_type == "image/jpeg"
