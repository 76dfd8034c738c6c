"""Watches on the resources Addons depend on.

Nothing here knows about Addons: every event is handed to the correlation
cache, which enqueues the owning Addons.
"""
import kopf
from addon_operator.common.models.kinds import (
    CATALOG_SOURCE,
    OPERATOR_GROUP,
    SUBSCRIPTION,
    CLUSTER_SERVICE_VERSION,
    SERVICE_MONITOR,
    MONITORING_STACK,
)
from addon_operator.common.models.labels import Labels

# Only objects created by the operator carry this label. CSVs are created by
# OLM and are watched unfiltered.
MANAGED = {Labels.KUBERNETES_MANAGED_BY_LABEL: Labels.OPERATOR_NAME}


def dispatch(event, memo: kopf.Memo) -> int:
    handler = memo.operator_resource_handler
    routes = {
        "ADDED": handler.create,
        "MODIFIED": handler.update,
        "DELETED": handler.delete,
    }
    route = routes.get(event.get("type"), handler.generic)
    return route(event, memo.queue)


@kopf.on.event(
    group=CLUSTER_SERVICE_VERSION.group,
    version=CLUSTER_SERVICE_VERSION.version,
    plural=CLUSTER_SERVICE_VERSION.plural,
    id="csv",
)
async def on_csv_event(event, memo: kopf.Memo, **kwargs):
    dispatch(event, memo)


@kopf.on.event(
    group=CATALOG_SOURCE.group,
    version=CATALOG_SOURCE.version,
    plural=CATALOG_SOURCE.plural,
    labels=MANAGED,
    id="catalogsource",
)
@kopf.on.event(
    group=OPERATOR_GROUP.group,
    version=OPERATOR_GROUP.version,
    plural=OPERATOR_GROUP.plural,
    labels=MANAGED,
    id="operatorgroup",
)
@kopf.on.event(
    group=SUBSCRIPTION.group,
    version=SUBSCRIPTION.version,
    plural=SUBSCRIPTION.plural,
    labels=MANAGED,
    id="subscription",
)
@kopf.on.event(
    group=SERVICE_MONITOR.group,
    version=SERVICE_MONITOR.version,
    plural=SERVICE_MONITOR.plural,
    labels=MANAGED,
    id="servicemonitor",
)
@kopf.on.event(
    group=MONITORING_STACK.group,
    version=MONITORING_STACK.version,
    plural=MONITORING_STACK.plural,
    labels=MANAGED,
    id="monitoringstack",
)
@kopf.on.event("namespaces", labels=MANAGED, id="namespace")
async def on_managed_resource_event(event, memo: kopf.Memo, **kwargs):
    dispatch(event, memo)
