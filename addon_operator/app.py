import kopf
import logging
from addon_operator.cache import OperatorResourceHandler
from addon_operator.controllers import AddonReconciler, RateLimitingQueue, ReconcileManager
from addon_operator.resources import AddonClient
from addon_operator.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor
from addon_operator.types.settings import Settings
from kubernetes_asyncio import config
from kubernetes_asyncio.client.api_client import ApiClient


@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # In-cluster first (production), then local kubeconfig (development)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    memo.conf = conf = Settings()

    # One ApiClient shared by every component
    memo.api_client = ApiClient()
    logger.info("Shared Kubernetes API client initialized")

    sensor_delegate = SensorDelegate()
    if conf.metrics_enabled:
        sensor_delegate.add(PrometheusMonitor())
        try:
            init_metrics_server(conf.metrics_port)
        except Exception as e:
            logger.error(f"Failed to start metrics server: {e}")
            logger.warning("Continuing without metrics server")
    memo.sensor = sensor_delegate

    memo.queue = RateLimitingQueue(
        base_delay=conf.queue_base_delay_seconds,
        max_delay=conf.queue_max_delay_seconds,
        sensor=sensor_delegate,
    )
    memo.operator_resource_handler = OperatorResourceHandler(sensor=sensor_delegate)
    memo.client = AddonClient(memo.api_client)
    reconciler = AddonReconciler(
        memo.client,
        memo.operator_resource_handler,
        api_client=memo.api_client,
        sensor=sensor_delegate,
    )
    memo.manager = ReconcileManager(
        memo.queue,
        reconciler,
        conf=conf,
        sensor=sensor_delegate,
    )
    memo.manager.start()

    # Concurrency of kopf's own handlers
    settings.batching.worker_limit = conf.kopf_worker_limit

    # Post operator logs of WARNING and above as Kubernetes events
    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(memo: kopf.Memo, logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    manager = getattr(memo, "manager", None)
    if manager is not None:
        await manager.stop()

    api_client = getattr(memo, "api_client", None)
    if api_client is not None:
        await api_client.close()
        logger.info("Shared API client closed")

    logger.info("Operator shutdown complete")
