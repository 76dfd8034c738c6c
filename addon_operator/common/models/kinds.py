from typing import NamedTuple


class CustomResource(NamedTuple):
    """Coordinates of a custom resource kind in the API."""

    group: str
    version: str
    plural: str
    kind: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"


ADDON = CustomResource("addons.managed.openshift.io", "v1alpha1", "addons", "Addon")

CATALOG_SOURCE = CustomResource(
    "operators.coreos.com", "v1alpha1", "catalogsources", "CatalogSource"
)
OPERATOR_GROUP = CustomResource(
    "operators.coreos.com", "v1", "operatorgroups", "OperatorGroup"
)
SUBSCRIPTION = CustomResource(
    "operators.coreos.com", "v1alpha1", "subscriptions", "Subscription"
)
CLUSTER_SERVICE_VERSION = CustomResource(
    "operators.coreos.com",
    "v1alpha1",
    "clusterserviceversions",
    "ClusterServiceVersion",
)

SERVICE_MONITOR = CustomResource(
    "monitoring.coreos.com", "v1", "servicemonitors", "ServiceMonitor"
)
MONITORING_STACK = CustomResource(
    "monitoring.rhobs", "v1alpha1", "monitoringstacks", "MonitoringStack"
)

NAMESPACE_KIND = "Namespace"
