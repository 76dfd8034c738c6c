"""Base sensor classes for operator monitoring.

This module defines the base OperatorSensor class that provides lifecycle hooks
for monitoring various operator events. All hooks are no-ops by default, allowing
subclasses to override only the events they care about.

The hook pattern:
- Hooks come in pairs: on_X_start() and on_X_complete()
- Start hooks return an optional state dict for tracking multi-phase operations
- Complete hooks receive the state dict from their corresponding start hook
- All hooks are optional - sensors only implement what they need
"""

from typing import Dict, Optional, Any
import logging

logger = logging.getLogger(__name__)


class OperatorSensor:
    """Base sensor class for Addon operator monitoring.

    Hooks cover the reconcile loop and its work queue, dependent resource
    syncs, the resource correlation cache and Addon status updates.

    All methods are no-ops by default. Subclasses override only the hooks
    they need to monitor.

    Example:
        class LoggingSensor(OperatorSensor):
            def on_reconcile_start(self, addon_name: str, generation: int) -> Dict:
                return {'start_time': time.time()}

            def on_reconcile_complete(self, addon_name: str, state: Dict, success: bool, error=None) -> None:
                duration = time.time() - state['start_time']
                logger.info(f"Reconciled {addon_name} in {duration}s")
    """

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        addon_name: str,
        generation: int,
    ) -> Optional[Dict[str, Any]]:
        """Called when a reconcile pass begins.

        Args:
            addon_name: Addon resource name (the reconcile key)
            generation: Resource generation number, 0 when not yet loaded

        Returns:
            Optional state dict passed to on_reconcile_complete
        """
        pass

    def on_reconcile_complete(
        self,
        addon_name: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when a reconcile pass completes.

        Args:
            addon_name: Addon resource name
            state: State dict returned from on_reconcile_start
            success: Whether the pass succeeded
            error: Exception if the pass failed
        """
        pass

    def on_reconcile_queued(
        self,
        addon_name: str,
        queue_depth: int,
    ) -> None:
        """Called when a reconcile key is handed to the work queue.

        Args:
            addon_name: Addon resource name
            queue_depth: Number of keys waiting after the add
        """
        pass

    def on_reconcile_dequeued(
        self,
        addon_name: str,
        wait_time: float,
    ) -> None:
        """Called when a worker picks up a reconcile key.

        Args:
            addon_name: Addon resource name
            wait_time: Time spent in queue (seconds)
        """
        pass

    def on_reconcile_requeued(
        self,
        addon_name: str,
        delay: float,
        reason: str,
    ) -> None:
        """Called when a failed pass puts its key back on the queue.

        Args:
            addon_name: Addon resource name
            delay: Delay before the key is available again (seconds)
            reason: Why the key was requeued (temporary_error, timeout, error)
        """
        pass

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
        """Called when a dependent resource sync begins.

        Args:
            addon_name: Owning Addon resource name
            resource_name: Dependent resource name
            namespace: Kubernetes namespace, empty for cluster-scoped kinds
            resource_type: Kind of resource (Namespace, CatalogSource, Subscription, etc.)

        Returns:
            Optional state dict passed to on_resource_sync_complete
        """
        pass

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
        """Called when a dependent resource sync completes.

        Args:
            addon_name: Owning Addon resource name
            resource_name: Dependent resource name
            namespace: Kubernetes namespace
            resource_type: Kind of resource
            state: State dict returned from on_resource_sync_start
            operation: Operation performed (created, updated, no-op)
            success: Whether operation succeeded
            error: Exception if operation failed
        """
        pass

    # =============================================================================
    # Cache Hooks
    # =============================================================================

    def on_cache_update(
        self,
        operation: str,
        entries: int,
    ) -> None:
        """Called after the resource correlation cache changed.

        Args:
            operation: Mutation applied (update, retain, free)
            entries: Number of tracked resources afterwards
        """
        pass

    def on_event_routed(
        self,
        resource_type: str,
        event_type: str,
        owners: int,
    ) -> None:
        """Called when an event on a dependent resource was routed to its owners.

        Args:
            resource_type: Kind of the resource the event was about
            event_type: create, update, delete or generic
            owners: Number of Addons the event was routed to
        """
        pass

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(
        self,
        addon_name: str,
        update_fields: list[str],
    ) -> None:
        """Called when status is persisted.

        Args:
            addon_name: Addon resource name
            update_fields: List of status fields that were updated
        """
        pass

    def on_phase_change(
        self,
        addon_name: str,
        old_phase: Optional[str],
        new_phase: str,
    ) -> None:
        """Called when an Addon moves to another phase.

        Args:
            addon_name: Addon resource name
            old_phase: Previous phase, None for a fresh Addon
            new_phase: New phase
        """
        pass

    # =============================================================================
    # Utility Methods
    # =============================================================================

    def asdict(self) -> Dict[str, Any]:
        """Return sensor state as dictionary.

        This method should be overridden by sensors that maintain state
        (like Monitor classes with counters and metrics).

        Returns:
            Dictionary representation of sensor state
        """
        return {}
