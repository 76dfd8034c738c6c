"""Unit tests for Addon status computation."""

import pytest
from addon_operator.controllers.status import (
    AVAILABLE,
    PAUSED,
    AddonReason,
    ObservedState,
    compute_status,
)
from addon_operator.types.models import AddonMetadata, AddonPhase, AddonStatus, Addon
from addon_operator.utils.helpers import find_condition


def make_addon(generation=3, status=None) -> Addon:
    return Addon(
        metadata=AddonMetadata(name="test-addon", generation=generation),
        status=status,
    )


class TestComputeStatus:
    """Tests for compute_status."""

    @pytest.mark.parametrize(
        "observed, phase, cond_status, reason",
        [
            (
                ObservedState(csv_name="op.v1", csv_phase="Succeeded"),
                AddonPhase.READY,
                "True",
                AddonReason.FULLY_RECONCILED,
            ),
            (
                ObservedState(csv_name="op.v1", csv_phase="Installing"),
                AddonPhase.INSTALLING,
                "False",
                AddonReason.UNREADY_CSV,
            ),
            (
                ObservedState(csv_name="op.v1"),
                AddonPhase.INSTALLING,
                "False",
                AddonReason.UNREADY_CSV,
            ),
            (
                ObservedState(),
                AddonPhase.PENDING,
                "False",
                AddonReason.PENDING,
            ),
            (
                ObservedState(config_error="install namespace is empty"),
                AddonPhase.ERROR,
                "False",
                AddonReason.CONFIGURATION_ERROR,
            ),
            (
                ObservedState(terminating=True, csv_name="op.v1", csv_phase="Succeeded"),
                AddonPhase.TERMINATING,
                "False",
                AddonReason.TERMINATING,
            ),
        ],
    )
    def test_phase_and_available_condition(self, observed, phase, cond_status, reason):
        status = compute_status(make_addon(), observed)

        assert status.phase == phase
        assert status.observed_generation == 3
        available = find_condition(status.conditions, AVAILABLE)
        assert available["status"] == cond_status
        assert available["reason"] == reason
        assert available["observedGeneration"] == 3
        assert available["lastTransitionTime"]

    def test_configuration_error_message(self):
        status = compute_status(
            make_addon(), ObservedState(config_error="catalogSourceImage is empty")
        )
        available = find_condition(status.conditions, AVAILABLE)
        assert "catalogSourceImage is empty" in available["message"]

    def test_unready_csv_message_names_csv(self):
        status = compute_status(
            make_addon(), ObservedState(csv_name="op.v1", csv_phase="Failed")
        )
        available = find_condition(status.conditions, AVAILABLE)
        assert "op.v1" in available["message"]
        assert "Failed" in available["message"]

    def test_missing_generation_defaults_to_zero(self):
        status = compute_status(Addon(), ObservedState())
        assert status.observed_generation == 0

    def test_unchanged_status_keeps_transition_time(self):
        observed = ObservedState(csv_name="op.v1", csv_phase="Succeeded")
        first = compute_status(make_addon(), observed)
        ltt = find_condition(first.conditions, AVAILABLE)["lastTransitionTime"]
        first.conditions[0]["lastTransitionTime"] = "2024-01-01T00:00:00+00:00"

        second = compute_status(make_addon(status=first), observed)

        assert ltt
        assert second.conditions == first.conditions

    def test_flipped_status_bumps_transition_time(self):
        previous = AddonStatus(
            phase=AddonPhase.INSTALLING,
            observed_generation=2,
            conditions=[
                {
                    "type": AVAILABLE,
                    "status": "False",
                    "reason": AddonReason.UNREADY_CSV,
                    "message": "not ready",
                    "observedGeneration": 2,
                    "lastTransitionTime": "2024-01-01T00:00:00+00:00",
                }
            ],
        )

        status = compute_status(
            make_addon(status=previous),
            ObservedState(csv_name="op.v1", csv_phase="Succeeded"),
        )

        available = find_condition(status.conditions, AVAILABLE)
        assert available["status"] == "True"
        assert available["lastTransitionTime"] != "2024-01-01T00:00:00+00:00"
        assert len(status.conditions) == 1

    def test_error_recovers_once_configuration_is_fixed(self):
        broken = compute_status(make_addon(), ObservedState(config_error="bad"))
        fixed = compute_status(make_addon(status=broken), ObservedState())

        assert fixed.phase == AddonPhase.PENDING
        assert find_condition(fixed.conditions, AVAILABLE)["reason"] == AddonReason.PENDING


class TestPausedStatus:
    """Tests for paused Addons."""

    def test_paused_keeps_phase_and_generation(self):
        previous = AddonStatus(
            phase=AddonPhase.READY,
            observed_generation=2,
            conditions=[
                {
                    "type": AVAILABLE,
                    "status": "True",
                    "reason": AddonReason.FULLY_RECONCILED,
                    "lastTransitionTime": "2024-01-01T00:00:00+00:00",
                }
            ],
        )

        status = compute_status(make_addon(status=previous), ObservedState(paused=True))

        assert status.phase == AddonPhase.READY
        assert status.observed_generation == 2
        assert find_condition(status.conditions, PAUSED)["status"] == "True"
        assert find_condition(status.conditions, AVAILABLE) == previous.conditions[0]

    def test_paused_without_previous_status(self):
        status = compute_status(make_addon(), ObservedState(paused=True))

        assert status.phase == AddonPhase.PENDING
        assert status.observed_generation is None
        assert [c["type"] for c in status.conditions] == [PAUSED]

    def test_resume_removes_paused_condition(self):
        paused = compute_status(make_addon(), ObservedState(paused=True))

        status = compute_status(
            make_addon(status=paused),
            ObservedState(csv_name="op.v1", csv_phase="Succeeded"),
        )

        assert find_condition(status.conditions, PAUSED) is None
        assert status.phase == AddonPhase.READY

    def test_terminating_overrides_paused(self):
        status = compute_status(
            make_addon(), ObservedState(paused=True, terminating=True)
        )
        assert status.phase == AddonPhase.TERMINATING
        assert find_condition(status.conditions, PAUSED) is None
