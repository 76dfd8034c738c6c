"""Unit tests for the Addon reconciler."""

import pytest
from unittest.mock import AsyncMock, Mock
from kubernetes_asyncio.client import ApiException
from addon_operator.cache import OperatorResourceHandler, ResourceKey
from addon_operator.controllers import AddonReconciler, CACHE_FINALIZER, PAUSE_ANNOTATION
from addon_operator.controllers.status import AVAILABLE, PAUSED, AddonReason
from addon_operator.resources import AddonClient, AddonComponents
from addon_operator.sensors import OperatorSensor
from addon_operator.types.models import AddonPhase
from addon_operator.types.schemas import AddonSchema
from addon_operator.utils.helpers import find_condition
import kopf

SUBSCRIPTION = ResourceKey("Subscription", "addon-ns", "addon-ns-subscription")
CSV = ResourceKey("ClusterServiceVersion", "addon-ns", "op.v1")


def load_addon(
    finalizers=None,
    deletion_timestamp=None,
    annotations=None,
    install=None,
    status=None,
):
    metadata = {"name": "test-addon", "uid": "uid-1", "generation": 1, "resourceVersion": "1"}
    if finalizers is not None:
        metadata["finalizers"] = finalizers
    if deletion_timestamp:
        metadata["deletionTimestamp"] = deletion_timestamp
    if annotations:
        metadata["annotations"] = annotations
    body = {
        "apiVersion": "addons.managed.openshift.io/v1alpha1",
        "kind": "Addon",
        "metadata": metadata,
        "spec": {
            "install": install
            if install is not None
            else {
                "type": "OwnNamespace",
                "olmOwnNamespace": {
                    "namespace": "addon-ns",
                    "catalogSourceImage": "quay.io/osd-addons/test-index:v1",
                },
            }
        },
    }
    if status is not None:
        body["status"] = status
    return AddonSchema().load(body)


@pytest.fixture
def client():
    client = AsyncMock(spec=AddonClient)
    client.update.side_effect = lambda addon: addon
    return client


@pytest.fixture
def handler():
    return Mock(spec=OperatorResourceHandler)


@pytest.fixture
def components():
    components = Mock(spec=AddonComponents)
    components.synchronize = AsyncMock(return_value=[SUBSCRIPTION])
    components.observe_current_csv = AsyncMock(return_value=("op.v1", "Succeeded"))
    components.csv_key.return_value = CSV
    return components


@pytest.fixture
def factory(components):
    return Mock(return_value=components)


@pytest.fixture
def sensor():
    return Mock(spec=OperatorSensor)


@pytest.fixture
def reconciler(client, handler, factory, sensor):
    return AddonReconciler(client, handler, sensor=sensor, components_factory=factory)


class TestHandleAddonDeletion:
    """Tests for the finalizer deletion path."""

    @pytest.mark.asyncio
    async def test_happy_path(self, reconciler, client, handler):
        addon = load_addon(
            finalizers=[CACHE_FINALIZER], deletion_timestamp="2024-01-01T00:00:00Z"
        )

        await reconciler.handle_addon_deletion(addon)

        client.update.assert_awaited_once()
        persisted = client.update.await_args.args[0]
        assert persisted.finalizers == []
        assert persisted.status.phase == AddonPhase.TERMINATING
        available = find_condition(persisted.status.conditions, AVAILABLE)
        assert available["status"] == "False"
        assert available["reason"] == AddonReason.TERMINATING
        handler.free.assert_called_once_with("test-addon")

    @pytest.mark.asyncio
    async def test_keeps_foreign_finalizers(self, reconciler, client):
        addon = load_addon(
            finalizers=["other/finalizer", CACHE_FINALIZER],
            deletion_timestamp="2024-01-01T00:00:00Z",
        )

        await reconciler.handle_addon_deletion(addon)

        assert client.update.await_args.args[0].finalizers == ["other/finalizer"]

    @pytest.mark.asyncio
    async def test_noop_without_finalizer(self, reconciler, client, handler):
        addon = load_addon(finalizers=[], deletion_timestamp="2024-01-01T00:00:00Z")

        await reconciler.handle_addon_deletion(addon)
        await reconciler.handle_addon_deletion(addon)

        client.update.assert_not_awaited()
        handler.free.assert_not_called()

    @pytest.mark.asyncio
    async def test_reconcile_routes_deleted_addon(self, reconciler, client, factory):
        client.get.return_value = load_addon(
            finalizers=[CACHE_FINALIZER], deletion_timestamp="2024-01-01T00:00:00Z"
        )

        await reconciler.reconcile("test-addon")

        client.update.assert_awaited_once()
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_deletion_conflict_is_retried(self, reconciler, client, handler):
        client.get.return_value = load_addon(
            finalizers=[CACHE_FINALIZER], deletion_timestamp="2024-01-01T00:00:00Z"
        )
        client.update.side_effect = ApiException(status=409, reason="Conflict")

        with pytest.raises(kopf.TemporaryError):
            await reconciler.reconcile("test-addon")


class TestReconcile:
    """Tests for full reconcile passes."""

    @pytest.mark.asyncio
    async def test_missing_addon(self, reconciler, client, factory, sensor):
        client.get.return_value = None

        await reconciler.reconcile("test-addon")

        client.update.assert_not_awaited()
        factory.assert_not_called()
        assert sensor.on_reconcile_complete.call_args.args[2] is True

    @pytest.mark.asyncio
    async def test_adds_finalizer_first(self, reconciler, client, components):
        client.get.return_value = load_addon()
        snapshots = []

        def update(addon):
            snapshots.append((addon.finalizers, addon.status))
            return addon

        client.update.side_effect = update

        await reconciler.reconcile("test-addon")

        assert client.update.await_count == 2
        finalizers, status = snapshots[0]
        assert finalizers == [CACHE_FINALIZER]
        assert status is None
        components.synchronize.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_happy_path(self, reconciler, client, handler, factory, components):
        client.get.return_value = load_addon(finalizers=[CACHE_FINALIZER])

        await reconciler.reconcile("test-addon")

        factory.assert_called_once()
        components.csv_key.assert_called_once_with("op.v1")
        handler.update_map.assert_any_call("test-addon", SUBSCRIPTION)
        handler.update_map.assert_any_call("test-addon", CSV)
        handler.retain.assert_called_once_with("test-addon", [SUBSCRIPTION, CSV])

        client.update.assert_awaited_once()
        status = client.update.await_args.args[0].status
        assert status.phase == AddonPhase.READY
        assert status.observed_generation == 1
        assert find_condition(status.conditions, AVAILABLE)["status"] == "True"

    @pytest.mark.asyncio
    async def test_unready_csv(self, reconciler, client, components):
        client.get.return_value = load_addon(finalizers=[CACHE_FINALIZER])
        components.observe_current_csv.return_value = ("op.v1", "Installing")

        await reconciler.reconcile("test-addon")

        status = client.update.await_args.args[0].status
        assert status.phase == AddonPhase.INSTALLING

    @pytest.mark.asyncio
    async def test_pending_without_csv(self, reconciler, client, handler, components):
        client.get.return_value = load_addon(finalizers=[CACHE_FINALIZER])
        components.observe_current_csv.return_value = (None, None)

        await reconciler.reconcile("test-addon")

        components.csv_key.assert_not_called()
        handler.retain.assert_called_once_with("test-addon", [SUBSCRIPTION])
        assert client.update.await_args.args[0].status.phase == AddonPhase.PENDING

    @pytest.mark.asyncio
    async def test_unchanged_status_is_not_written(self, reconciler, client):
        client.get.return_value = load_addon(finalizers=[CACHE_FINALIZER])
        await reconciler.reconcile("test-addon")
        ready = client.update.await_args.args[0].status

        client.update.reset_mock()
        client.get.return_value = load_addon(
            finalizers=[CACHE_FINALIZER],
            status={
                "phase": ready.phase,
                "observedGeneration": ready.observed_generation,
                "conditions": ready.conditions,
            },
        )
        await reconciler.reconcile("test-addon")

        client.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_configuration_error(self, reconciler, client, factory, handler):
        client.get.return_value = load_addon(
            finalizers=[CACHE_FINALIZER],
            install={"type": "OwnNamespace", "olmOwnNamespace": {"namespace": "addon-ns"}},
        )

        await reconciler.reconcile("test-addon")

        factory.assert_not_called()
        handler.update_map.assert_not_called()
        status = client.update.await_args.args[0].status
        assert status.phase == AddonPhase.ERROR
        available = find_condition(status.conditions, AVAILABLE)
        assert available["reason"] == AddonReason.CONFIGURATION_ERROR
        assert "catalogSourceImage" in available["message"]

    @pytest.mark.asyncio
    async def test_paused(self, reconciler, client, factory):
        client.get.return_value = load_addon(
            finalizers=[CACHE_FINALIZER], annotations={PAUSE_ANNOTATION: "true"}
        )

        await reconciler.reconcile("test-addon")

        factory.assert_not_called()
        status = client.update.await_args.args[0].status
        assert find_condition(status.conditions, PAUSED)["status"] == "True"

    @pytest.mark.asyncio
    async def test_paused_does_not_block_deletion(self, reconciler, client, handler):
        client.get.return_value = load_addon(
            finalizers=[CACHE_FINALIZER],
            annotations={PAUSE_ANNOTATION: "true"},
            deletion_timestamp="2024-01-01T00:00:00Z",
        )

        await reconciler.reconcile("test-addon")

        handler.free.assert_called_once_with("test-addon")
        assert client.update.await_args.args[0].finalizers == []

    @pytest.mark.asyncio
    async def test_api_errors_are_converted(self, reconciler, client, components):
        client.get.return_value = load_addon(finalizers=[CACHE_FINALIZER])
        components.synchronize.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(kopf.PermanentError):
            await reconciler.reconcile("test-addon")

    @pytest.mark.asyncio
    async def test_server_errors_are_temporary(self, reconciler, client, sensor):
        client.get.side_effect = ApiException(status=500, reason="Internal Server Error")

        with pytest.raises(kopf.TemporaryError):
            await reconciler.reconcile("test-addon")

        assert sensor.on_reconcile_complete.call_args.args[2] is False

    @pytest.mark.asyncio
    async def test_reports_phase_change(self, reconciler, client, sensor):
        client.get.return_value = load_addon(finalizers=[CACHE_FINALIZER])

        await reconciler.reconcile("test-addon")

        sensor.on_phase_change.assert_called_once_with(
            "test-addon", None, AddonPhase.READY
        )

    def test_reconciliation_paused(self):
        assert AddonReconciler.reconciliation_paused(
            load_addon(annotations={PAUSE_ANNOTATION: "True"})
        )
        assert not AddonReconciler.reconciliation_paused(
            load_addon(annotations={PAUSE_ANNOTATION: "false"})
        )
        assert not AddonReconciler.reconciliation_paused(load_addon())


class TestRegisterResources:
    """Tests for cache bookkeeping with a real handler."""

    def test_replaces_previous_ownership(self, client):
        handler = OperatorResourceHandler()
        reconciler = AddonReconciler(client, handler)
        reconciler.register_resources("test-addon", [SUBSCRIPTION, CSV])

        reconciler.register_resources("test-addon", [SUBSCRIPTION])

        assert handler.resources("test-addon") == frozenset({SUBSCRIPTION})
        assert handler.owners(CSV) == frozenset()
