import logging
from logging import Logger
from typing import Callable, List, Optional
from kubernetes_asyncio.client import ApiClient, ApiException
from addon_operator.cache import OperatorResourceHandler, ResourceKey
from addon_operator.controllers.status import ObservedState, compute_status
from addon_operator.resources import AddonClient, AddonComponents
from addon_operator.sensors import OperatorSensor
from addon_operator.types.models import Addon, AddonStatus
from addon_operator.types.schemas import AddonStatusSchema
from addon_operator.utils.errors import convert_api_exception
from addon_operator.utils.helpers import deep_compare_dict
from addon_operator.utils.install_config import install_config_error

CACHE_FINALIZER = "addons.managed.openshift.io/cache"
PAUSE_ANNOTATION = "addons.managed.openshift.io/pause-reconciliation"

TRUTHY = ("true", "1", "yes", "True", "Yes", "YES")

ComponentsFactory = Callable[..., AddonComponents]


class AddonReconciler:
    """Runs reconcile passes for Addons.

    One pass loads the Addon, handles deletion and pausing, makes sure the
    cache finalizer is set, validates the install configuration, converges
    the dependent resources, refreshes the correlation cache and finally
    writes the status derived from what it observed.

    Kubernetes API failures leave a pass as ``kopf.TemporaryError`` or
    ``kopf.PermanentError``; configuration errors never do, they end up in
    the status only.
    """

    def __init__(
        self,
        client: AddonClient,
        operator_resource_handler: OperatorResourceHandler,
        api_client: ApiClient = None,
        sensor: OperatorSensor = None,
        logger: Logger = None,
        components_factory: ComponentsFactory = AddonComponents.from_addon,
    ):
        self.client = client
        self.operator_resource_handler = operator_resource_handler
        self.api_client = api_client
        self.sensor = sensor or OperatorSensor()
        self.logger = logger or logging.getLogger(__name__)
        self.components_factory = components_factory

    async def reconcile(self, name: str) -> None:
        """Reconcile the Addon called ``name``."""
        sensor_state = self.sensor.on_reconcile_start(name, 0)
        success, error = True, None
        try:
            await self._reconcile(name)
        except ApiException as ex:
            success, error = False, ex
            convert_api_exception(ex)
        except Exception as ex:
            success, error = False, ex
            raise
        finally:
            self.sensor.on_reconcile_complete(name, sensor_state, success, error)

    async def _reconcile(self, name: str) -> None:
        addon = await self.client.get(name)
        if addon is None:
            self.logger.debug(f"Addon {name} is gone, nothing to reconcile.")
            return
        self.logger.debug(f"Reconciling Addon {name} (generation {addon.generation}).")

        if addon.being_deleted:
            await self.handle_addon_deletion(addon)
            return

        if self.reconciliation_paused(addon):
            self.logger.info(f"Reconciliation of Addon {name} is paused.")
            await self.update_status(addon, ObservedState(paused=True))
            return

        if addon.add_finalizer(CACHE_FINALIZER):
            addon = await self.client.update(addon)

        error = install_config_error(addon)
        if error:
            self.logger.error(f"Addon {name} has an invalid install configuration: {error}")
            await self.update_status(addon, ObservedState(config_error=error))
            return

        components = self.components_factory(
            addon, api_client=self.api_client, sensor=self.sensor, logger=self.logger
        )
        keys = await components.synchronize()
        csv_name, csv_phase = await components.observe_current_csv()
        if csv_name:
            keys.append(components.csv_key(csv_name))
        self.register_resources(name, keys)

        await self.update_status(
            addon, ObservedState(csv_name=csv_name, csv_phase=csv_phase)
        )
        self.logger.debug(f"Reconciled Addon {name}.")

    async def handle_addon_deletion(self, addon: Addon) -> None:
        """Tear down an Addon that carries a deletion marker.

        Does nothing when the cache finalizer is already gone. Otherwise frees
        the cache entries of the Addon, marks it Terminating, drops the
        finalizer and persists status and finalizers in one update.
        """
        if not addon.has_finalizer(CACHE_FINALIZER):
            return
        self.operator_resource_handler.free(addon.name)
        old_phase = addon.status.phase if addon.status else None
        addon.status = compute_status(addon, ObservedState(terminating=True))
        addon.remove_finalizer(CACHE_FINALIZER)
        await self.client.update(addon)
        self._report_status(addon.name, old_phase, addon.status)
        self.logger.info(f"Addon {addon.name} released its finalizer.")

    def register_resources(self, name: str, keys: List[ResourceKey]) -> None:
        """Record ownership of ``keys`` and drop entries no longer owned by ``name``."""
        for key in keys:
            self.operator_resource_handler.update_map(name, key)
        self.operator_resource_handler.retain(name, keys)

    async def update_status(self, addon: Addon, observed: ObservedState) -> bool:
        """Persist the status derived from ``observed`` if it differs. Returns True on write."""
        desired = compute_status(addon, observed)
        if self.status_unchanged(addon.status, desired):
            return False
        old_phase = addon.status.phase if addon.status else None
        addon.status = desired
        await self.client.update(addon)
        self._report_status(addon.name, old_phase, desired)
        return True

    def _report_status(
        self, name: str, old_phase: Optional[str], status: AddonStatus
    ) -> None:
        self.sensor.on_status_update(name, list(AddonStatusSchema().dump(status)))
        if old_phase != status.phase:
            self.logger.info(f"Addon {name} phase: {old_phase} -> {status.phase}")
            self.sensor.on_phase_change(name, old_phase, status.phase)

    @staticmethod
    def status_unchanged(current: Optional[AddonStatus], desired: AddonStatus) -> bool:
        if current is None:
            return False
        schema = AddonStatusSchema()
        return deep_compare_dict(schema.dump(current), schema.dump(desired))

    @staticmethod
    def reconciliation_paused(addon: Addon) -> bool:
        return addon.annotations.get(PAUSE_ANNOTATION, "") in TRUTHY
