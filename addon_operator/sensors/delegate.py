"""Sensor delegation for fan-out pattern.

This module provides SensorDelegate, which implements the delegation pattern
for routing sensor events to multiple monitoring backends simultaneously.
Each backend receives the same events and can maintain independent state.

A failing backend is logged and skipped; it never breaks the reconcile loop
or the other backends.
"""

from typing import Set, Dict, Optional, Any
import logging

from addon_operator.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Delegate sensor that fans out events to multiple backends.

    This class maintains a set of child sensors and forwards all lifecycle
    events to each one. State tracking is handled per-sensor, so each backend
    receives its own state dict from start/complete hook pairs.

    Example:
        delegate = SensorDelegate()
        delegate.add(PrometheusMonitor())

        state = delegate.on_reconcile_start("my-addon", 5)
        delegate.on_reconcile_complete("my-addon", state, True)
    """

    def __init__(self) -> None:
        """Initialize empty sensor delegate."""
        self._sensors: Set[OperatorSensor] = set()

    def __len__(self) -> int:
        return len(self._sensors)

    def add(self, sensor: OperatorSensor) -> None:
        """Add a sensor to the delegate.

        Args:
            sensor: Sensor instance to add
        """
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        """Remove a sensor from the delegate.

        Args:
            sensor: Sensor instance to remove
        """
        logger.info(f"Removing sensor: {sensor.__class__.__name__}")
        self._sensors.discard(sensor)

    def clear(self) -> None:
        """Remove all sensors from the delegate."""
        logger.info(f"Clearing {len(self._sensors)} sensors")
        self._sensors.clear()

    def _start(self, hook: str, *args) -> Optional[Dict[OperatorSensor, Any]]:
        if not self._sensors:
            return None
        states = {}
        for sensor in self._sensors:
            try:
                state = getattr(sensor, hook)(*args)
                if state is not None:
                    states[sensor] = state
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.{hook}: {e}",
                    exc_info=True,
                )
        return states if states else None

    def _fan_out(self, hook: str, *args, **kwargs) -> None:
        for sensor in self._sensors:
            try:
                getattr(sensor, hook)(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.{hook}: {e}",
                    exc_info=True,
                )

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        addon_name: str,
        generation: int,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        """Delegate reconcile_start to all sensors.

        Returns:
            Dict mapping each sensor to its returned state, or None if no sensors
        """
        return self._start("on_reconcile_start", addon_name, generation)

    def on_reconcile_complete(
        self,
        addon_name: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Delegate reconcile_complete to all sensors with their specific state."""
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_reconcile_complete(addon_name, sensor_state, success, error)
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.on_reconcile_complete: {e}",
                    exc_info=True,
                )

    def on_reconcile_queued(self, addon_name: str, queue_depth: int) -> None:
        """Delegate reconcile_queued to all sensors."""
        self._fan_out("on_reconcile_queued", addon_name, queue_depth)

    def on_reconcile_dequeued(self, addon_name: str, wait_time: float) -> None:
        """Delegate reconcile_dequeued to all sensors."""
        self._fan_out("on_reconcile_dequeued", addon_name, wait_time)

    def on_reconcile_requeued(self, addon_name: str, delay: float, reason: str) -> None:
        """Delegate reconcile_requeued to all sensors."""
        self._fan_out("on_reconcile_requeued", addon_name, delay, reason)

    # =============================================================================
    # Resource Operation Hooks
    # =============================================================================

    def on_resource_sync_start(
        self,
        addon_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        """Delegate resource_sync_start to all sensors."""
        return self._start(
            "on_resource_sync_start", addon_name, resource_name, namespace, resource_type
        )

    def on_resource_sync_complete(
        self,
        addon_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[OperatorSensor, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Delegate resource_sync_complete to all sensors with their specific state."""
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_resource_sync_complete(
                    addon_name,
                    resource_name,
                    namespace,
                    resource_type,
                    sensor_state,
                    operation,
                    success,
                    error,
                )
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.on_resource_sync_complete: {e}",
                    exc_info=True,
                )

    # =============================================================================
    # Cache Hooks
    # =============================================================================

    def on_cache_update(self, operation: str, entries: int) -> None:
        """Delegate cache_update to all sensors."""
        self._fan_out("on_cache_update", operation, entries)

    def on_event_routed(self, resource_type: str, event_type: str, owners: int) -> None:
        """Delegate event_routed to all sensors."""
        self._fan_out("on_event_routed", resource_type, event_type, owners)

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(self, addon_name: str, update_fields: list[str]) -> None:
        """Delegate status_update to all sensors."""
        self._fan_out("on_status_update", addon_name, update_fields)

    def on_phase_change(
        self, addon_name: str, old_phase: Optional[str], new_phase: str
    ) -> None:
        """Delegate phase_change to all sensors."""
        self._fan_out("on_phase_change", addon_name, old_phase, new_phase)

    # =============================================================================
    # Utility Methods
    # =============================================================================

    def asdict(self) -> Dict[str, Any]:
        """Return aggregated state from all sensors.

        Returns:
            Dict mapping sensor class name to its state dict
        """
        return {
            sensor.__class__.__name__: sensor.asdict()
            for sensor in self._sensors
        }
