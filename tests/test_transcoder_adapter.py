"""
Tests for the shared transcoder adapter.

Tests cover lazy single-flight loading, permanent unavailability after a
failed load, exclusive pipeline access and best-effort cleanup.
"""

import asyncio

import pytest

from RS_Libs.errors import EngineUnavailableError, TranscoderBusyError
from RS_Libs.TranscodeLib.transcoder_adapter import AdapterState, TranscoderAdapter

from conftest import FakeEngine


class TestLoading:
    """Tests for ensure_loaded."""

    def test_starts_not_loaded(self, adapter):
        """Nothing is loaded until first use."""
        assert adapter.state is AdapterState.NOT_LOADED
        assert not adapter.is_available

    def test_concurrent_callers_share_one_load(self):
        """Callers arriving during loading await the same load."""
        created = []

        def factory():
            engine = FakeEngine()
            created.append(engine)
            return engine

        adapter = TranscoderAdapter(factory)

        async def scenario():
            return await asyncio.gather(*(adapter.ensure_loaded() for _ in range(5)))

        results = asyncio.run(scenario())

        assert results == [True] * 5
        assert len(created) == 1
        assert created[0].load_calls == 1
        assert adapter.state is AdapterState.READY

    def test_failed_load_is_permanent(self):
        """A failed load is not retried."""
        engines = []

        def factory():
            engine = FakeEngine(fail_load=True)
            engines.append(engine)
            return engine

        adapter = TranscoderAdapter(factory)

        async def scenario():
            first = await adapter.ensure_loaded()
            second = await adapter.ensure_loaded()
            return first, second

        assert asyncio.run(scenario()) == (False, False)
        assert len(engines) == 1
        assert adapter.state is AdapterState.UNAVAILABLE
        assert isinstance(adapter.load_error, RuntimeError)

    def test_engine_raises_when_unavailable(self, broken_adapter):
        with pytest.raises(EngineUnavailableError):
            asyncio.run(broken_adapter.engine())

    def test_factory_must_be_callable(self):
        with pytest.raises(ValueError):
            TranscoderAdapter("ffmpeg")


class TestExclusive:
    """Tests for exclusive pipeline access."""

    def test_yields_loaded_engine(self, adapter, fake_engine):
        async def scenario():
            async with adapter.exclusive("convert") as engine:
                assert adapter.is_busy
                return engine

        assert asyncio.run(scenario()) is fake_engine
        assert not adapter.is_busy

    def test_second_pipeline_rejected(self, adapter):
        """A pipeline started while another is in flight is rejected."""
        async def scenario():
            async with adapter.exclusive("extract"):
                with pytest.raises(TranscoderBusyError) as exc_info:
                    async with adapter.exclusive("reconstruct"):
                        pass
                return exc_info.value

        error = asyncio.run(scenario())
        assert error.active == "extract"
        assert error.requested == "reconstruct"

    def test_released_after_error(self, adapter):
        async def scenario():
            with pytest.raises(KeyError):
                async with adapter.exclusive("convert"):
                    raise KeyError("boom")
            async with adapter.exclusive("convert"):
                return True

        assert asyncio.run(scenario())

    def test_unavailable_engine_releases_slot(self, broken_adapter):
        async def scenario():
            with pytest.raises(EngineUnavailableError):
                async with broken_adapter.exclusive("convert"):
                    pass
            return broken_adapter.is_busy

        assert asyncio.run(scenario()) is False


class TestCleanup:
    """Tests for discard and shutdown."""

    def test_discard_ignores_missing_files(self, adapter, fake_engine):
        async def scenario():
            await adapter.ensure_loaded()
            await fake_engine.write_file("keep.png", b"x")
            await fake_engine.write_file("drop.png", b"y")
            await adapter.discard("drop.png", "missing.png")

        asyncio.run(scenario())
        assert list(fake_engine.files) == ["keep.png"]

    def test_discard_before_load_is_noop(self, adapter):
        asyncio.run(adapter.discard("anything.png"))
        assert adapter.state is AdapterState.NOT_LOADED

    def test_shutdown_closes_engine(self, adapter, fake_engine):
        async def scenario():
            await adapter.ensure_loaded()
            await adapter.shutdown()

        asyncio.run(scenario())
        assert fake_engine.closed
        assert not adapter.is_available
