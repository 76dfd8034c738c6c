import kopf
import logging
from functools import cached_property
from logging import Logger
from typing import Awaitable, Callable, Dict, List, Optional, Tuple
from kubernetes_asyncio.client import (
    ApiClient,
    CoreV1Api,
    CustomObjectsApi,
    V1Namespace,
    V1ObjectMeta,
)
from addon_operator.cache import ResourceKey
from addon_operator.common.models.kinds import (
    CustomResource,
    CATALOG_SOURCE,
    OPERATOR_GROUP,
    SUBSCRIPTION,
    CLUSTER_SERVICE_VERSION,
    SERVICE_MONITOR,
    MONITORING_STACK,
    NAMESPACE_KIND,
)
from addon_operator.common.models.labels import Labels
from addon_operator.resources.base import BaseResource
from addon_operator.sensors import OperatorSensor
from addon_operator.types.models import (
    Addon,
    AddonInstallOLMCommon,
    AddonInstallType,
    AdditionalCatalogSource,
    AddonResources,
)
from addon_operator.utils.install_config import (
    parse_addon_install_config,
    parse_addon_install_config_for_additional_catalog_sources,
    has_monitoring_federation,
    has_monitoring_stack,
)


class AddonComponents(BaseResource):
    """Desired dependent resources of one Addon and their synchronisation.

    Built from an Addon whose install configuration already validated; every
    ``prepare_*`` method is pure and every ``sync_*`` method is an idempotent
    create-or-patch against the cluster.
    """

    DEFAULT_CHANNEL = "alpha"
    CATALOG_SOURCE_PUBLISHER = "OSD Red Hat Addons"
    FEDERATION_PATH = "/federate"
    FEDERATION_PORT_NAME = "https"
    FEDERATION_INTERVAL = "30s"
    FEDERATION_CA_FILE = (
        "/etc/prometheus/configmaps/serving-certs-ca-bundle/service-ca.crt"
    )
    MONITORING_STACK_RETENTION = "1d"

    # Spec keys set only for some Addons: compared even when absent from the
    # desired body, nulled in merge patches.
    OPTIONAL_SPEC_KEYS = {
        CATALOG_SOURCE.kind: ("secrets",),
        OPERATOR_GROUP.kind: ("targetNamespaces",),
        SUBSCRIPTION.kind: ("config",),
        MONITORING_STACK.kind: ("prometheusConfig",),
    }

    addon: Addon
    install_type: str
    common: AddonInstallOLMCommon
    additional_sources: List[AdditionalCatalogSource]
    pull_secret_name: str
    sensor: OperatorSensor
    logger: Logger

    # k8s api
    _api_client: ApiClient = None

    def __init__(
        self,
        addon: Addon,
        common: AddonInstallOLMCommon,
        additional_sources: List[AdditionalCatalogSource],
        pull_secret_name: str,
        api_client: ApiClient = None,
        sensor: OperatorSensor = None,
        logger: Logger = None,
    ):
        super().__init__(addon_name=addon.name, labels=Labels.common(addon.name))
        self.addon = addon
        self.install_type = addon.spec.install.type
        self.common = common
        self.additional_sources = additional_sources
        self.pull_secret_name = pull_secret_name
        self._api_client = api_client
        self.sensor = sensor or OperatorSensor()
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_addon(
        cls,
        addon: Addon,
        api_client: ApiClient = None,
        sensor: OperatorSensor = None,
        logger: Logger = None,
    ) -> "AddonComponents":
        """Build the components of ``addon``.

        Raises:
            ValueError: the install configuration does not validate.
        """
        common, stop = parse_addon_install_config(addon)
        if stop:
            raise ValueError(f"Addon {addon.name} has an invalid install configuration")
        sources, _, pull_secret_name, stop = (
            parse_addon_install_config_for_additional_catalog_sources(addon)
        )
        if stop:
            raise ValueError(
                f"Addon {addon.name} has invalid additional catalog sources"
            )
        return cls(
            addon,
            common,
            sources,
            pull_secret_name,
            api_client=api_client,
            sensor=sensor,
            logger=logger,
        )

    @property
    def namespace(self) -> str:
        return self.common.namespace

    @property
    def package_name(self) -> str:
        return self.common.package_name or self.addon_name

    @property
    def channel(self) -> str:
        return self.common.channel or self.DEFAULT_CHANNEL

    @property
    def catalog_source_name(self) -> str:
        return AddonResources.catalog_source_name(self.addon_name)

    @property
    def subscription_name(self) -> str:
        return AddonResources.subscription_name(self.addon_name)

    # ------------------------------------------------------------------
    # Synchronisation
    # ------------------------------------------------------------------

    async def synchronize(self) -> List[ResourceKey]:
        """Create or patch every dependent resource; return the keys of all of them."""
        self.unite()
        keys = []
        for namespace in self.namespaces:
            keys.append(await self.sync_namespace(namespace))
        keys.append(await self.sync_custom_object(CATALOG_SOURCE, self.catalog_source))
        for source in self.additional_catalog_sources:
            keys.append(await self.sync_custom_object(CATALOG_SOURCE, source))
        keys.append(await self.sync_custom_object(OPERATOR_GROUP, self.operator_group))
        keys.append(await self.sync_custom_object(SUBSCRIPTION, self.subscription))
        if self.federation_enabled:
            keys.append(await self.sync_namespace(self.monitoring_namespace))
            keys.append(
                await self.sync_custom_object(SERVICE_MONITOR, self.service_monitor)
            )
        if self.monitoring_stack_enabled:
            keys.append(
                await self.sync_custom_object(MONITORING_STACK, self.monitoring_stack)
            )
        return keys

    async def observe_current_csv(self) -> Tuple[Optional[str], Optional[str]]:
        """Return the name and phase of the CSV the Subscription resolved to.

        ``(None, None)`` while OLM has not resolved one yet; the phase is None
        while the CSV object itself does not exist yet.
        """
        subscription = await self.get_custom_object(
            self.custom_objects_api,
            self.namespace,
            SUBSCRIPTION.group,
            SUBSCRIPTION.version,
            SUBSCRIPTION.plural,
            self.subscription_name,
        )
        csv_name = ((subscription or {}).get("status") or {}).get("currentCSV")
        if not csv_name:
            return None, None
        csv = await self.get_custom_object(
            self.custom_objects_api,
            self.namespace,
            CLUSTER_SERVICE_VERSION.group,
            CLUSTER_SERVICE_VERSION.version,
            CLUSTER_SERVICE_VERSION.plural,
            csv_name,
        )
        return csv_name, ((csv or {}).get("status") or {}).get("phase")

    def csv_key(self, csv_name: str) -> ResourceKey:
        return ResourceKey(CLUSTER_SERVICE_VERSION.kind, self.namespace, csv_name)

    async def _instrumented(
        self,
        resource_type: str,
        name: str,
        namespace: str,
        sync: Callable[[], Awaitable[str]],
    ) -> str:
        sensor_state = self.sensor.on_resource_sync_start(
            self.addon_name, name, namespace, resource_type
        )
        operation, success, error = "unknown", True, None
        try:
            operation = await sync()
        except Exception as e:
            success, error = False, e
            raise
        finally:
            self.sensor.on_resource_sync_complete(
                self.addon_name,
                name,
                namespace,
                resource_type,
                sensor_state,
                operation,
                success,
                error,
            )
        if operation != "no-op":
            self.logger.info(f"Synced {resource_type} {name} ({operation})")
        return operation

    async def sync_namespace(self, namespace: V1Namespace) -> ResourceKey:
        """Check current state of a namespace and create/patch if needed."""
        name = namespace.metadata.name

        async def sync() -> str:
            actual: V1Namespace = await self.fetch_namespace(self.core_v1_api, name)
            if not actual:
                await self.create_namespace(self.core_v1_api, namespace)
                return "create"
            actual_labels = actual.metadata.labels or {}
            desired_labels = namespace.metadata.labels or {}
            if all(actual_labels.get(k) == v for k, v in desired_labels.items()):
                return "no-op"
            await self.patch_namespace(
                self.core_v1_api, name, {"metadata": {"labels": desired_labels}}
            )
            return "patch"

        await self._instrumented(NAMESPACE_KIND, name, "", sync)
        return ResourceKey(NAMESPACE_KIND, "", name)

    async def sync_custom_object(self, resource: CustomResource, body: Dict) -> ResourceKey:
        """Check current state of a custom object and create/patch if needed."""
        name = body["metadata"]["name"]
        namespace = body["metadata"]["namespace"]

        async def sync() -> str:
            actual = await self.get_custom_object(
                self.custom_objects_api,
                namespace,
                resource.group,
                resource.version,
                resource.plural,
                name,
            )
            if not actual:
                await self.create_custom_object(
                    self.custom_objects_api,
                    namespace,
                    resource.group,
                    resource.version,
                    resource.plural,
                    body,
                )
                return "create"
            actual_hash = self.compute_hash(self.prepare_watch_fields(actual, body))
            desired_hash = self.compute_hash(self.prepare_watch_fields(body, body))
            if actual_hash == desired_hash:
                return "no-op"
            await self.patch_custom_object(
                self.custom_objects_api,
                namespace,
                resource.group,
                resource.version,
                resource.plural,
                name,
                self.prepare_patch(body),
            )
            return "patch"

        await self._instrumented(resource.kind, name, namespace, sync)
        return ResourceKey(resource.kind, namespace, name)

    def prepare_watch_fields(self, obj: Dict, desired: Dict) -> Dict:
        """
        Fields of interest when comparing actual vs desired state: the labels
        and top-level spec keys the operator sets. Anything else on the object
        belongs to other controllers.
        """
        labels = (obj.get("metadata") or {}).get("labels") or {}
        spec = obj.get("spec") or {}
        spec_keys = set(desired.get("spec", {}))
        spec_keys.update(self.OPTIONAL_SPEC_KEYS.get(desired.get("kind"), ()))
        return {
            "labels": {k: labels.get(k) for k in desired["metadata"].get("labels", {})},
            "spec": {k: spec.get(k) for k in sorted(spec_keys)},
        }

    def prepare_patch(self, body: Dict) -> Dict:
        """Merge patch for ``body``; a null value deletes the key on the server."""
        spec = {k: None for k in self.OPTIONAL_SPEC_KEYS.get(body.get("kind"), ())}
        spec.update(body.get("spec", {}))
        return {
            "metadata": {"labels": body["metadata"].get("labels", {})},
            "spec": spec,
        }

    def unite(self):
        """Ensure all dependent resources are owned by the Addon."""
        children = [
            *self.namespaces,
            self.catalog_source,
            *self.additional_catalog_sources,
            self.operator_group,
            self.subscription,
        ]
        if self.federation_enabled:
            children.extend([self.monitoring_namespace, self.service_monitor])
        if self.monitoring_stack_enabled:
            children.append(self.monitoring_stack)
        kopf.append_owner_reference(children, owner=self.addon.owner_body())

    # ------------------------------------------------------------------
    # Desired state
    # ------------------------------------------------------------------

    def prepare_metadata(self, name: str, namespace: Optional[str] = None) -> Dict:
        metadata = {"name": name, "labels": self.labels.as_dict()}
        if namespace:
            metadata["namespace"] = namespace
        return metadata

    def prepare_namespace(self, name: str) -> V1Namespace:
        return V1Namespace(
            api_version="v1",
            kind=NAMESPACE_KIND,
            metadata=V1ObjectMeta(name=name, labels=self.labels.as_dict()),
        )

    def prepare_namespaces(self) -> List[V1Namespace]:
        """Target namespace first, then the extra namespaces of the spec."""
        names = [self.namespace]
        for extra in self.addon.spec.namespaces or []:
            if extra.name and extra.name not in names:
                names.append(extra.name)
        return [self.prepare_namespace(name) for name in names]

    def prepare_catalog_source_spec(self, image: str) -> Dict:
        spec = {
            "sourceType": "grpc",
            "image": image,
            "displayName": self.addon.spec.display_name or self.addon_name,
            "publisher": self.CATALOG_SOURCE_PUBLISHER,
        }
        if self.pull_secret_name:
            spec["secrets"] = [self.pull_secret_name]
        return spec

    def prepare_catalog_source(self) -> Dict:
        return {
            "apiVersion": CATALOG_SOURCE.api_version,
            "kind": CATALOG_SOURCE.kind,
            "metadata": self.prepare_metadata(self.catalog_source_name, self.namespace),
            "spec": self.prepare_catalog_source_spec(self.common.catalog_source_image),
        }

    def prepare_additional_catalog_sources(self) -> List[Dict]:
        return [
            {
                "apiVersion": CATALOG_SOURCE.api_version,
                "kind": CATALOG_SOURCE.kind,
                "metadata": self.prepare_metadata(source.name, self.namespace),
                "spec": self.prepare_catalog_source_spec(source.image),
            }
            for source in self.additional_sources
        ]

    def prepare_operator_group(self) -> Dict:
        spec = {}
        if self.install_type == AddonInstallType.OWN_NAMESPACE:
            spec["targetNamespaces"] = [self.namespace]
        return {
            "apiVersion": OPERATOR_GROUP.api_version,
            "kind": OPERATOR_GROUP.kind,
            "metadata": self.prepare_metadata(
                AddonResources.operator_group_name(self.addon_name), self.namespace
            ),
            "spec": spec,
        }

    def prepare_subscription(self) -> Dict:
        spec = {
            "channel": self.channel,
            "name": self.package_name,
            "source": self.catalog_source_name,
            "sourceNamespace": self.namespace,
        }
        env = (self.common.config.env or []) if self.common.config else []
        if env:
            spec["config"] = {
                "env": [{"name": e.name, "value": e.value or ""} for e in env]
            }
        return {
            "apiVersion": SUBSCRIPTION.api_version,
            "kind": SUBSCRIPTION.kind,
            "metadata": self.prepare_metadata(self.subscription_name, self.namespace),
            "spec": spec,
        }

    def prepare_service_monitor(self) -> Dict:
        federation = self.addon.spec.monitoring.federation
        match = [f'{{__name__="{name}"}}' for name in federation.match_names or []]
        endpoint = {
            "honorLabels": True,
            "port": federation.port_name or self.FEDERATION_PORT_NAME,
            "path": self.FEDERATION_PATH,
            "scheme": "https",
            "interval": self.FEDERATION_INTERVAL,
            "params": {"match[]": match},
            "tlsConfig": {
                "caFile": self.FEDERATION_CA_FILE,
                "serverName": f"prometheus.{federation.namespace}.svc",
            },
        }
        return {
            "apiVersion": SERVICE_MONITOR.api_version,
            "kind": SERVICE_MONITOR.kind,
            "metadata": self.prepare_metadata(
                AddonResources.service_monitor_name(self.addon_name),
                AddonResources.monitoring_namespace_name(self.addon_name),
            ),
            "spec": {
                "endpoints": [endpoint],
                "namespaceSelector": {"matchNames": [federation.namespace]},
                "selector": {"matchLabels": dict(federation.match_labels or {})},
            },
        }

    def prepare_monitoring_stack(self) -> Dict:
        remote_write = self.addon.spec.monitoring.monitoring_stack.remote_write_config
        spec = {
            "logLevel": "info",
            "retention": self.MONITORING_STACK_RETENTION,
            "resourceSelector": {
                "matchLabels": {Labels.ADDON_LABEL: self.labels.valid_label_value(self.addon_name)}
            },
        }
        if remote_write is not None and remote_write.url:
            target = {"url": remote_write.url}
            if remote_write.allowlist:
                target["writeRelabelConfigs"] = [
                    {
                        "sourceLabels": ["__name__"],
                        "regex": "(" + "|".join(remote_write.allowlist) + ")",
                        "action": "keep",
                    }
                ]
            spec["prometheusConfig"] = {"remoteWrite": [target]}
        return {
            "apiVersion": MONITORING_STACK.api_version,
            "kind": MONITORING_STACK.kind,
            "metadata": self.prepare_metadata(
                AddonResources.monitoring_stack_name(self.addon_name), self.namespace
            ),
            "spec": spec,
        }

    @cached_property
    def federation_enabled(self) -> bool:
        return has_monitoring_federation(self.addon)

    @cached_property
    def monitoring_stack_enabled(self) -> bool:
        return has_monitoring_stack(self.addon)

    @cached_property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            self._api_client = ApiClient()
        return self._api_client

    @cached_property
    def core_v1_api(self) -> CoreV1Api:
        return CoreV1Api(self.api_client)

    @cached_property
    def custom_objects_api(self) -> CustomObjectsApi:
        return CustomObjectsApi(self.api_client)

    @cached_property
    def namespaces(self) -> List[V1Namespace]:
        return self.prepare_namespaces()

    @cached_property
    def catalog_source(self) -> Dict:
        return self.prepare_catalog_source()

    @cached_property
    def additional_catalog_sources(self) -> List[Dict]:
        return self.prepare_additional_catalog_sources()

    @cached_property
    def operator_group(self) -> Dict:
        return self.prepare_operator_group()

    @cached_property
    def subscription(self) -> Dict:
        return self.prepare_subscription()

    @cached_property
    def monitoring_namespace(self) -> V1Namespace:
        return self.prepare_namespace(
            AddonResources.monitoring_namespace_name(self.addon_name)
        )

    @cached_property
    def service_monitor(self) -> Dict:
        return self.prepare_service_monitor()

    @cached_property
    def monitoring_stack(self) -> Dict:
        return self.prepare_monitoring_stack()
