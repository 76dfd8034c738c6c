"""Prometheus monitoring backend for the Addon operator.

This module provides PrometheusMonitor, which collects operator lifecycle events
and exposes them as Prometheus metrics:

1. Reconciliation Loop Health - Duration, queue depth, wait time, requeues, errors
2. Dependent Resource Sync - Operation counts, latency, errors
3. Correlation Cache - Tracked resources, routed events
4. Addon Status - Status writes, phase transitions
"""

from typing import Dict, Optional, Any
import time
import logging

from prometheus_client import Counter, Histogram, Gauge

from addon_operator.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for the Addon operator.

    Exposes metrics via prometheus_client that can be scraped by Prometheus.
    Metrics are prefixed ``addonop_``.

    Example:
        monitor = PrometheusMonitor()

        state = monitor.on_reconcile_start("my-addon", 5)
        monitor.on_reconcile_complete("my-addon", state, True)
    """

    def __init__(self, registry=None):
        """Initialize Prometheus metrics.

        Args:
            registry: Collector registry, defaults to the global one
        """
        super().__init__()
        kwargs = {} if registry is None else {"registry": registry}

        # =============================================================================
        # Reconciliation Loop Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'addonop_reconcile_duration_seconds',
            'Time spent in a reconcile pass',
            labelnames=['addon_name', 'result'],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            **kwargs,
        )

        self.reconcile_total = Counter(
            'addonop_reconcile_total',
            'Total number of reconcile passes',
            labelnames=['addon_name', 'result'],
            **kwargs,
        )

        self.reconcile_errors = Counter(
            'addonop_reconcile_errors_total',
            'Total number of failed reconcile passes',
            labelnames=['addon_name', 'error_type'],
            **kwargs,
        )

        self.reconcile_queue_depth = Gauge(
            'addonop_reconcile_queue_depth',
            'Number of reconcile keys waiting in the work queue',
            **kwargs,
        )

        self.reconcile_queue_wait_seconds = Histogram(
            'addonop_reconcile_queue_wait_seconds',
            'Time a reconcile key spent waiting in the work queue',
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
            **kwargs,
        )

        self.reconcile_requeues = Counter(
            'addonop_reconcile_requeues_total',
            'Total number of reconcile keys put back on the queue',
            labelnames=['addon_name', 'reason'],
            **kwargs,
        )

        # =============================================================================
        # Dependent Resource Sync Metrics
        # =============================================================================

        self.resource_sync_duration = Histogram(
            'addonop_resource_sync_duration_seconds',
            'Time spent syncing dependent resources',
            labelnames=['addon_name', 'resource_type', 'operation', 'result'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
            **kwargs,
        )

        self.resource_sync_total = Counter(
            'addonop_resource_sync_total',
            'Total number of dependent resource sync operations',
            labelnames=['addon_name', 'resource_type', 'operation', 'result'],
            **kwargs,
        )

        self.resource_sync_errors = Counter(
            'addonop_resource_sync_errors_total',
            'Total number of dependent resource sync errors',
            labelnames=['addon_name', 'resource_type', 'error_type'],
            **kwargs,
        )

        # =============================================================================
        # Cache Metrics
        # =============================================================================

        self.cache_entries = Gauge(
            'addonop_cache_entries',
            'Number of dependent resources tracked by the correlation cache',
            **kwargs,
        )

        self.cache_updates = Counter(
            'addonop_cache_updates_total',
            'Total number of correlation cache mutations',
            labelnames=['operation'],
            **kwargs,
        )

        self.events_routed = Counter(
            'addonop_events_routed_total',
            'Total number of dependent resource events routed to owning Addons',
            labelnames=['resource_type', 'event_type'],
            **kwargs,
        )

        # =============================================================================
        # Status Update Metrics
        # =============================================================================

        self.status_updates = Counter(
            'addonop_status_updates_total',
            'Total number of status updates',
            labelnames=['addon_name', 'update_field'],
            **kwargs,
        )

        self.phase_transitions = Counter(
            'addonop_phase_transitions_total',
            'Total number of Addon phase transitions',
            labelnames=['addon_name', 'from_phase', 'to_phase'],
            **kwargs,
        )

        logger.info("PrometheusMonitor initialized with all metrics")

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        addon_name: str,
        generation: int,
    ) -> Optional[Dict[str, Any]]:
        """Record reconcile start time."""
        return {'start_time': time.time()}

    def on_reconcile_complete(
        self,
        addon_name: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record reconcile duration and result."""
        result = 'success' if success else 'failure'
        if state:
            duration = time.time() - state['start_time']
            self.reconcile_duration.labels(
                addon_name=addon_name,
                result=result,
            ).observe(duration)

        self.reconcile_total.labels(addon_name=addon_name, result=result).inc()

        if error:
            self.reconcile_errors.labels(
                addon_name=addon_name,
                error_type=error.__class__.__name__,
            ).inc()

    def on_reconcile_queued(self, addon_name: str, queue_depth: int) -> None:
        """Record reconcile queue depth."""
        self.reconcile_queue_depth.set(queue_depth)

    def on_reconcile_dequeued(self, addon_name: str, wait_time: float) -> None:
        """Record time spent waiting in queue."""
        self.reconcile_queue_wait_seconds.observe(wait_time)

    def on_reconcile_requeued(self, addon_name: str, delay: float, reason: str) -> None:
        """Record a requeue."""
        self.reconcile_requeues.labels(addon_name=addon_name, reason=reason).inc()

    # =============================================================================
    # Resource Operation Hooks
    # =============================================================================

    def on_resource_sync_start(
        self,
        addon_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[str, Any]]:
        """Record resource sync start time."""
        return {'start_time': time.time()}

    def on_resource_sync_complete(
        self,
        addon_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[str, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record resource sync duration and result."""
        result = 'success' if success else 'failure'
        if state:
            duration = time.time() - state['start_time']
            self.resource_sync_duration.labels(
                addon_name=addon_name,
                resource_type=resource_type,
                operation=operation,
                result=result,
            ).observe(duration)

        self.resource_sync_total.labels(
            addon_name=addon_name,
            resource_type=resource_type,
            operation=operation,
            result=result,
        ).inc()

        if error:
            self.resource_sync_errors.labels(
                addon_name=addon_name,
                resource_type=resource_type,
                error_type=error.__class__.__name__,
            ).inc()

    # =============================================================================
    # Cache Hooks
    # =============================================================================

    def on_cache_update(self, operation: str, entries: int) -> None:
        """Record cache size and mutation."""
        self.cache_entries.set(entries)
        self.cache_updates.labels(operation=operation).inc()

    def on_event_routed(self, resource_type: str, event_type: str, owners: int) -> None:
        """Record routed events."""
        if owners:
            self.events_routed.labels(
                resource_type=resource_type,
                event_type=event_type,
            ).inc(owners)

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(self, addon_name: str, update_fields: list[str]) -> None:
        """Record status update."""
        for field in update_fields:
            self.status_updates.labels(
                addon_name=addon_name,
                update_field=field,
            ).inc()

    def on_phase_change(
        self, addon_name: str, old_phase: Optional[str], new_phase: str
    ) -> None:
        """Record phase transition."""
        self.phase_transitions.labels(
            addon_name=addon_name,
            from_phase=old_phase or 'None',
            to_phase=new_phase,
        ).inc()
