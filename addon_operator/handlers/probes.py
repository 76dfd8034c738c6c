import datetime
import kopf


# Liveness probe
@kopf.on.probe(id="now")
def get_current_timestamp(**kwargs):
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@kopf.on.probe(id="reconcile_queue_depth")
def get_reconcile_queue_depth(memo: kopf.Memo, **kwargs):
    queue = getattr(memo, "queue", None)
    return len(queue) if queue is not None else 0


@kopf.on.probe(id="cached_resources")
def get_cached_resources(memo: kopf.Memo, **kwargs):
    handler = getattr(memo, "operator_resource_handler", None)
    return len(handler) if handler is not None else 0
