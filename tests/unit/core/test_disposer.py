"""Unit tests for Disposer and DisposableCallback."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from explorer_adapter.core.disposable import Disposable, DisposableCallback, Disposer
from explorer_adapter.core.logging_utils import StructuredLogger


class Resource:

    def __init__(self, name, log, fail=False):
        self.name = name
        self.log = log
        self.fail = fail

    def dispose(self):
        self.log.append(self.name)
        if self.fail:
            raise RuntimeError(f"{self.name} broke")


class AsyncResource(Resource):

    async def dispose(self):
        super().dispose()


class TestDisposerOrder:
    """Test release ordering."""

    @pytest.mark.asyncio
    async def test_reverse_registration_order(self):
        log = []
        disposer = Disposer()
        disposer.register(Resource("R1", log), Resource("R2", log))
        disposer.register(Resource("R3", log))

        await disposer.dispose_all()

        assert log == ["R3", "R2", "R1"]

    @pytest.mark.asyncio
    async def test_mixed_sync_and_async_resources(self):
        log = []
        disposer = Disposer()
        disposer.register(Resource("sync", log), AsyncResource("async", log))

        await disposer.dispose_all()

        assert log == ["async", "sync"]

    @pytest.mark.asyncio
    async def test_static_dispose_keeps_given_order(self):
        log = []

        failures = await Disposer.dispose([Resource("a", log), Resource("b", log)])

        assert log == ["a", "b"]
        assert failures == 0


class TestDisposerFaults:
    """Test fault isolation."""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_others(self):
        log = []
        disposer = Disposer()
        disposer.register(Resource("R1", log), Resource("R2", log, fail=True), Resource("R3", log))

        failures = await disposer.dispose_all()

        assert log == ["R3", "R2", "R1"]
        assert failures == 1

    @pytest.mark.asyncio
    async def test_failure_is_logged(self):
        logger = MagicMock(spec=StructuredLogger)
        disposer = Disposer(logger)
        disposer.register(Resource("R1", [], fail=True))

        await disposer.dispose_all()

        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs["exc_info"] is True

    @pytest.mark.asyncio
    async def test_async_failure_contained(self):
        log = []
        disposer = Disposer()
        disposer.register(Resource("R1", log), AsyncResource("R2", log, fail=True))

        assert await disposer.dispose_all() == 1
        assert log == ["R2", "R1"]


class TestDisposerIdempotence:
    """Test repeated disposal."""

    @pytest.mark.asyncio
    async def test_second_dispose_all_is_noop(self):
        log = []
        disposer = Disposer()
        disposer.register(Resource("R1", log))

        await disposer.dispose_all()
        await disposer.dispose_all()

        assert log == ["R1"]
        assert len(disposer) == 0

    @pytest.mark.asyncio
    async def test_register_after_dispose_starts_new_batch(self):
        log = []
        disposer = Disposer()
        disposer.register(Resource("R1", log))
        await disposer.dispose_all()

        disposer.register(Resource("R2", log))
        await disposer.dispose_all()

        assert log == ["R1", "R2"]

    def test_register_rejects_non_disposable(self):
        disposer = Disposer()

        with pytest.raises(TypeError):
            disposer.register(object())


class TestDisposableCallback:
    """Test the callable wrapper."""

    def test_runs_once(self):
        callback = MagicMock()
        disposable = DisposableCallback(callback, name="cb")

        disposable.dispose()
        disposable.dispose()

        callback.assert_called_once_with()
        assert disposable.is_disposed
        assert isinstance(disposable, Disposable)

    @pytest.mark.asyncio
    async def test_async_callback_awaited_by_disposer(self):
        callback = AsyncMock()
        disposer = Disposer()
        disposer.register(DisposableCallback(callback))

        await disposer.dispose_all()

        callback.assert_awaited_once()
