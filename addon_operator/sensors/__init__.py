"""Addon Operator Sensor Framework.

Hook-based instrumentation of the operator: the reconcile loop and its work
queue, dependent resource syncs, the correlation cache and status updates.

Key components:
- OperatorSensor: Base class defining lifecycle hooks for operator events
- SensorDelegate: Fan-out pattern for routing events to multiple sensor backends
- PrometheusMonitor: Prometheus metrics exporter

Usage:
    from addon_operator.sensors import OperatorSensor, SensorDelegate

    class CustomSensor(OperatorSensor):
        def on_phase_change(self, addon_name, old_phase, new_phase) -> None:
            print(f"{addon_name}: {old_phase} -> {new_phase}")

    delegate = SensorDelegate()
    delegate.add(CustomSensor())
    delegate.add(PrometheusMonitor())
"""

from addon_operator.sensors.base import OperatorSensor
from addon_operator.sensors.delegate import SensorDelegate
from addon_operator.sensors.prometheus import PrometheusMonitor
from addon_operator.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
