"""Status computation for Addons.

The desired status is derived from what a reconcile pass observed and
nothing else. The previous status only contributes condition transition
timestamps.
"""
from typing import Dict, NamedTuple, Optional, Tuple
from addon_operator.types.models import Addon, AddonPhase, AddonStatus
from addon_operator.utils.helpers import upsert_condition, remove_condition

AVAILABLE = "Available"
PAUSED = "Paused"

CSV_SUCCEEDED = "Succeeded"


class AddonReason:
    FULLY_RECONCILED = "FullyReconciled"
    PENDING = "Pending"
    UNREADY_CSV = "UnreadyCSV"
    CONFIGURATION_ERROR = "ConfigurationError"
    TERMINATING = "Terminating"
    PAUSED = "Paused"


class ObservedState(NamedTuple):
    """What a single reconcile pass saw."""

    config_error: Optional[str] = None
    csv_name: Optional[str] = None
    csv_phase: Optional[str] = None
    terminating: bool = False
    paused: bool = False


def _available_condition(observed: ObservedState, gen: int) -> Tuple[str, Dict]:
    if observed.terminating:
        return AddonPhase.TERMINATING, {
            "type": AVAILABLE,
            "status": "False",
            "reason": AddonReason.TERMINATING,
            "message": "Addon is being deleted",
            "observedGeneration": gen,
        }
    if observed.config_error:
        return AddonPhase.ERROR, {
            "type": AVAILABLE,
            "status": "False",
            "reason": AddonReason.CONFIGURATION_ERROR,
            "message": f"Invalid install configuration: {observed.config_error}",
            "observedGeneration": gen,
        }
    if not observed.csv_name:
        return AddonPhase.PENDING, {
            "type": AVAILABLE,
            "status": "False",
            "reason": AddonReason.PENDING,
            "message": "Waiting for the subscription to resolve a ClusterServiceVersion",
            "observedGeneration": gen,
        }
    if observed.csv_phase != CSV_SUCCEEDED:
        return AddonPhase.INSTALLING, {
            "type": AVAILABLE,
            "status": "False",
            "reason": AddonReason.UNREADY_CSV,
            "message": f"ClusterServiceVersion `{observed.csv_name}` is not ready "
            f"(phase: {observed.csv_phase or 'Unknown'})",
            "observedGeneration": gen,
        }
    return AddonPhase.READY, {
        "type": AVAILABLE,
        "status": "True",
        "reason": AddonReason.FULLY_RECONCILED,
        "message": "All components are ready",
        "observedGeneration": gen,
    }


def compute_status(addon: Addon, observed: ObservedState) -> AddonStatus:
    """Return the status ``addon`` should carry given ``observed``."""
    gen = addon.generation
    current = addon.status or AddonStatus()
    conds = list(current.conditions or [])

    if observed.paused and not observed.terminating:
        conds = upsert_condition(
            conds,
            {
                "type": PAUSED,
                "status": "True",
                "reason": AddonReason.PAUSED,
                "message": "Reconciliation is paused",
                "observedGeneration": gen,
            },
        )
        return AddonStatus(
            phase=current.phase or AddonPhase.PENDING,
            observed_generation=current.observed_generation,
            conditions=conds,
        )

    conds = remove_condition(conds, PAUSED)
    phase, available = _available_condition(observed, gen)
    conds = upsert_condition(conds, available)
    return AddonStatus(phase=phase, observed_generation=gen, conditions=conds)
