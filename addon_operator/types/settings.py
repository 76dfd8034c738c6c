import os
from typing import Any

_TRUE = {"True", "true", "yes", "on", "1"}
_FALSE = {"False", "false", "no", "off", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


def _getbool(name: str, default: bool) -> bool:
    v = _getenv(name, default)
    if v is True or v is False:
        return v
    raise ValueError(
        f"{name}={v!r} is not a boolean, use one of {sorted(_TRUE | _FALSE)}"
    )


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Number of workers pulling reconcile keys off the work queue
RECONCILE_WORKERS = int(_getenv("RECONCILE_WORKERS", 2))

#: Deadline in seconds for a single reconcile pass
RECONCILE_TIMEOUT_SECONDS = float(_getenv("RECONCILE_TIMEOUT_SECONDS", 60.0))

#: First requeue delay after a failed pass; doubled on every consecutive failure
QUEUE_BASE_DELAY_SECONDS = float(_getenv("QUEUE_BASE_DELAY_SECONDS", 0.5))

#: Ceiling for the per-key requeue delay
QUEUE_MAX_DELAY_SECONDS = float(_getenv("QUEUE_MAX_DELAY_SECONDS", 300.0))

#: Seconds between periodic requeues of every Addon; 0 disables the resync
RESYNC_PERIOD_SECONDS = float(_getenv("RESYNC_PERIOD_SECONDS", 600.0))

#: Concurrency limit for kopf's own event handlers
KOPF_WORKER_LIMIT = int(_getenv("KOPF_WORKER_LIMIT", 4))

#: Start the Prometheus sensor and metrics endpoint
METRICS_ENABLED = _getbool("METRICS_ENABLED", True)

#: Port of the Prometheus metrics endpoint
METRICS_PORT = int(_getenv("METRICS_PORT", 8000))


class Settings:
    """Operator settings"""

    reconcile_workers: int = RECONCILE_WORKERS
    reconcile_timeout_seconds: float = RECONCILE_TIMEOUT_SECONDS
    queue_base_delay_seconds: float = QUEUE_BASE_DELAY_SECONDS
    queue_max_delay_seconds: float = QUEUE_MAX_DELAY_SECONDS
    kopf_worker_limit: int = KOPF_WORKER_LIMIT
    metrics_enabled: bool = METRICS_ENABLED
    metrics_port: int = METRICS_PORT

    def __init__(
        self,
        *args,
        reconcile_workers: int = None,
        reconcile_timeout_seconds: float = None,
        queue_base_delay_seconds: float = None,
        queue_max_delay_seconds: float = None,
        kopf_worker_limit: int = None,
        metrics_enabled: bool = None,
        metrics_port: int = None,
        **kwargs,
    ):
        if reconcile_workers is not None:
            self.reconcile_workers = reconcile_workers

        if reconcile_timeout_seconds is not None:
            self.reconcile_timeout_seconds = reconcile_timeout_seconds

        if queue_base_delay_seconds is not None:
            self.queue_base_delay_seconds = queue_base_delay_seconds

        if queue_max_delay_seconds is not None:
            self.queue_max_delay_seconds = queue_max_delay_seconds

        if kopf_worker_limit is not None:
            self.kopf_worker_limit = kopf_worker_limit

        if metrics_enabled is not None:
            self.metrics_enabled = metrics_enabled

        if metrics_port is not None:
            self.metrics_port = metrics_port
