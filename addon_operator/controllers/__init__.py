from .workqueue import RateLimitingQueue, QueueShutDown
from .addon import AddonReconciler, CACHE_FINALIZER, PAUSE_ANNOTATION
from .manager import ReconcileManager

__all__ = [
    "RateLimitingQueue",
    "QueueShutDown",
    "AddonReconciler",
    "CACHE_FINALIZER",
    "PAUSE_ANNOTATION",
    "ReconcileManager",
]
