import asyncio
import kopf
import logging
from logging import Logger
from typing import List, Optional
from addon_operator.controllers.addon import AddonReconciler
from addon_operator.controllers.workqueue import QueueShutDown, RateLimitingQueue
from addon_operator.sensors import OperatorSensor
from addon_operator.types.settings import Settings


class ReconcileManager:
    """Pool of workers draining the reconcile queue.

    Outcome of a pass, per key:
    * success: backoff is reset;
    * ``kopf.TemporaryError`` and unexpected exceptions: requeued with the
      per-key backoff (or the delay the error carries);
    * timeout: requeued with backoff;
    * ``kopf.PermanentError``: logged and dropped until the next event.
    """

    def __init__(
        self,
        queue: RateLimitingQueue,
        reconciler: AddonReconciler,
        conf: Settings = None,
        sensor: OperatorSensor = None,
        logger: Logger = None,
    ):
        self.queue = queue
        self.reconciler = reconciler
        self.conf = conf or Settings()
        self.sensor = sensor or OperatorSensor()
        self.logger = logger or logging.getLogger(__name__)
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        for idx in range(self.conf.reconcile_workers):
            self._tasks.append(
                asyncio.create_task(self.worker(), name=f"addon-reconcile-worker-{idx}")
            )
        self.logger.info(f"Started {self.conf.reconcile_workers} reconcile workers")

    async def stop(self) -> None:
        self.queue.shutdown()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self.logger.info("Reconcile workers stopped")

    async def worker(self) -> None:
        while await self.process_next_item():
            pass

    async def process_next_item(self) -> bool:
        """Process one key. Returns False once the queue is shut down."""
        try:
            key = await self.queue.get()
        except QueueShutDown:
            return False
        try:
            await asyncio.wait_for(
                self.reconciler.reconcile(key),
                timeout=self.conf.reconcile_timeout_seconds,
            )
        except asyncio.TimeoutError:
            self.logger.warning(
                f"Reconcile of Addon {key} timed out after "
                f"{self.conf.reconcile_timeout_seconds}s"
            )
            self._requeue(key, "timeout")
        except kopf.PermanentError as e:
            self.logger.error(f"Reconcile of Addon {key} failed permanently: {e}")
            self.queue.forget(key)
        except kopf.TemporaryError as e:
            self.logger.warning(f"Reconcile of Addon {key} failed, will retry: {e}")
            self._requeue(key, "temporary_error", e.delay)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(f"Unexpected error reconciling Addon {key}: {e}")
            self.logger.exception(e)
            self._requeue(key, "error")
        else:
            self.queue.forget(key)
        finally:
            self.queue.done(key)
        return True

    def _requeue(self, key: str, reason: str, delay: Optional[float] = None) -> None:
        if delay:
            self.queue.add_after(key, delay)
        else:
            delay = self.queue.add_rate_limited(key)
        self.sensor.on_reconcile_requeued(key, delay, reason)
