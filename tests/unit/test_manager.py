"""Unit tests for the reconcile worker pool."""

import asyncio
import pytest
from unittest.mock import AsyncMock, Mock
from addon_operator.controllers import AddonReconciler, RateLimitingQueue, ReconcileManager
from addon_operator.sensors import OperatorSensor
from addon_operator.types.settings import Settings
import kopf


@pytest.fixture
def conf():
    return Settings(
        reconcile_workers=2,
        reconcile_timeout_seconds=0.5,
        queue_base_delay_seconds=10.0,
        queue_max_delay_seconds=60.0,
    )


@pytest.fixture
def reconciler():
    reconciler = Mock(spec=AddonReconciler)
    reconciler.reconcile = AsyncMock(return_value=None)
    return reconciler


@pytest.fixture
def sensor():
    return Mock(spec=OperatorSensor)


@pytest.fixture
def make_manager(reconciler, conf, sensor):
    def make():
        queue = RateLimitingQueue(
            base_delay=conf.queue_base_delay_seconds,
            max_delay=conf.queue_max_delay_seconds,
        )
        queue.add_after = Mock(wraps=queue.add_after)
        return ReconcileManager(queue, reconciler, conf=conf, sensor=sensor)

    return make


class TestProcessNextItem:
    """Tests for the outcome handling of a single pass."""

    @pytest.mark.asyncio
    async def test_success_resets_backoff(self, make_manager, reconciler):
        manager = make_manager()
        manager.queue.when("addon-a")
        manager.queue.add("addon-a")

        assert await manager.process_next_item() is True

        reconciler.reconcile.assert_awaited_once_with("addon-a")
        assert manager.queue.num_requeues("addon-a") == 0
        manager.queue.add_after.assert_not_called()

    @pytest.mark.asyncio
    async def test_temporary_error_is_rate_limited(self, make_manager, reconciler, sensor):
        reconciler.reconcile.side_effect = kopf.TemporaryError("conflict", delay=None)
        manager = make_manager()
        manager.queue.add("addon-a")

        await manager.process_next_item()

        manager.queue.add_after.assert_called_once_with("addon-a", 10.0)
        assert manager.queue.num_requeues("addon-a") == 1
        sensor.on_reconcile_requeued.assert_called_once_with(
            "addon-a", 10.0, "temporary_error"
        )

    @pytest.mark.asyncio
    async def test_temporary_error_delay_is_honoured(self, make_manager, reconciler):
        reconciler.reconcile.side_effect = kopf.TemporaryError("later", delay=5)
        manager = make_manager()
        manager.queue.add("addon-a")

        await manager.process_next_item()

        manager.queue.add_after.assert_called_once_with("addon-a", 5)
        assert manager.queue.num_requeues("addon-a") == 0

    @pytest.mark.asyncio
    async def test_permanent_error_is_dropped(self, make_manager, reconciler, sensor):
        reconciler.reconcile.side_effect = kopf.PermanentError("forbidden")
        manager = make_manager()
        manager.queue.when("addon-a")
        manager.queue.add("addon-a")

        await manager.process_next_item()

        manager.queue.add_after.assert_not_called()
        sensor.on_reconcile_requeued.assert_not_called()
        assert manager.queue.num_requeues("addon-a") == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_is_rate_limited(self, make_manager, reconciler, sensor):
        reconciler.reconcile.side_effect = RuntimeError("boom")
        manager = make_manager()
        manager.queue.add("addon-a")

        await manager.process_next_item()

        manager.queue.add_after.assert_called_once_with("addon-a", 10.0)
        sensor.on_reconcile_requeued.assert_called_once_with("addon-a", 10.0, "error")

    @pytest.mark.asyncio
    async def test_timeout_is_rate_limited(self, make_manager, reconciler, sensor):
        async def slow(name):
            await asyncio.sleep(5)

        reconciler.reconcile.side_effect = slow
        manager = make_manager()
        manager.queue.add("addon-a")

        await manager.process_next_item()

        manager.queue.add_after.assert_called_once_with("addon-a", 10.0)
        sensor.on_reconcile_requeued.assert_called_once_with("addon-a", 10.0, "timeout")

    @pytest.mark.asyncio
    async def test_key_is_released(self, make_manager, reconciler):
        manager = make_manager()
        manager.queue.add("addon-a")

        async def readd(name):
            manager.queue.add(name)

        reconciler.reconcile.side_effect = readd

        await manager.process_next_item()

        assert len(manager.queue) == 1

    @pytest.mark.asyncio
    async def test_returns_false_after_shutdown(self, make_manager):
        manager = make_manager()
        manager.queue.shutdown()
        assert await manager.process_next_item() is False


class TestLifecycle:
    """Tests for starting and stopping workers."""

    @pytest.mark.asyncio
    async def test_workers_drain_queue(self, make_manager, reconciler):
        manager = make_manager()
        manager.start()
        assert manager.running

        for name in ("addon-a", "addon-b", "addon-c"):
            manager.queue.add(name)
        for _ in range(50):
            if reconciler.reconcile.await_count == 3:
                break
            await asyncio.sleep(0.01)

        await manager.stop()

        assert not manager.running
        assert sorted(c.args[0] for c in reconciler.reconcile.await_args_list) == [
            "addon-a",
            "addon-b",
            "addon-c",
        ]
