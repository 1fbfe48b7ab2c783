"""
Tests for EditorConfig and the notice board.
"""

import logging

import pytest

from RS_Libs.config import EditorConfig
from RS_Libs.notices import LEVEL_ERROR, LEVEL_WARNING, NoticeBoard


class TestEditorConfig:
    """Tests for defaults, validation and serialization."""

    def test_defaults(self):
        config = EditorConfig()
        assert config.ffmpeg_binary == "ffmpeg"
        assert config.history_limit == 50
        assert config.max_extracted_frames == 100
        assert config.playback_interval == pytest.approx(0.1)

    @pytest.mark.parametrize("field,value", [
        ("history_limit", 0),
        ("max_extracted_frames", 0),
        ("playback_interval_ms", 0),
        ("zoom_step", -25),
        ("fit_padding", -1),
        ("ffmpeg_binary", "  "),
    ])
    def test_validation(self, field, value):
        with pytest.raises(ValueError):
            EditorConfig(**{field: value})

    def test_dict_round_trip_ignores_unknown(self):
        data = EditorConfig(history_limit=10).to_dict()
        data["legacy_option"] = True
        assert EditorConfig.from_dict(data) == EditorConfig(history_limit=10)

    def test_from_env(self):
        config = EditorConfig.from_env({
            "RASTER_STUDIO_FFMPEG": "/opt/ffmpeg/bin/ffmpeg",
            "RASTER_STUDIO_HISTORY_LIMIT": "20",
            "RASTER_STUDIO_PLAYBACK_MS": "40",
        })
        assert config.ffmpeg_binary == "/opt/ffmpeg/bin/ffmpeg"
        assert config.history_limit == 20
        assert config.playback_interval_ms == 40

    def test_from_env_empty(self):
        assert EditorConfig.from_env({}) == EditorConfig()

    def test_from_env_bad_number(self):
        with pytest.raises(ValueError):
            EditorConfig.from_env({"RASTER_STUDIO_HISTORY_LIMIT": "lots"})


class TestNoticeBoard:
    """Tests for notice collection and logging."""

    def test_collects_in_order(self):
        board = NoticeBoard()
        board.info("one")
        board.warning("two")
        assert [n.message for n in board] == ["one", "two"]
        assert board.latest().level == LEVEL_WARNING
        assert len(board) == 2

    def test_drain(self):
        board = NoticeBoard()
        board.error("boom")
        drained = board.drain()
        assert [n.level for n in drained] == [LEVEL_ERROR]
        assert len(board) == 0
        assert board.latest() is None

    def test_listener_called(self):
        received = []
        board = NoticeBoard(listener=received.append)
        notice = board.warning("careful")
        assert received == [notice]

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            NoticeBoard().post("debug", "nope")

    def test_mirrored_to_log(self, caplog):
        with caplog.at_level(logging.WARNING, logger="RS_Libs.notices"):
            NoticeBoard().warning("Using PNG as fallback.")
        assert "Using PNG as fallback." in caplog.text

    def test_pending_notices_bounded(self):
        board = NoticeBoard(max_pending=3)
        for number in range(5):
            board.info(f"notice {number}")
        assert [n.message for n in board] == ["notice 2", "notice 3", "notice 4"]

    def test_invalid_max_pending(self):
        with pytest.raises(ValueError):
            NoticeBoard(max_pending=0)
