"""Tests for admission delay policies."""

from __future__ import annotations

import math

import pytest

from theme_sync import (
    AdmissionContext,
    EventKind,
    PositionPolicy,
    RateBudgetSnapshot,
    RateConfig,
    RateControllerError,
    TelemetryPolicy,
    create_rate_controller,
)
from theme_sync.rate import check_delay


CONTENT = AdmissionContext(kind=EventKind.CONTENT)


def test_position_policy_burst_then_leak():
    """Test that calls within the burst are free and later ones are spaced."""
    policy = PositionPolicy(burst=3, leak_rate=2)
    delays = [policy.next_delay(CONTENT) for _ in range(5)]
    assert delays == [0, 0, 0, 0.5, 1.0]


def test_position_policy_counts_deletions_too():
    """Test that every admission advances the position regardless of kind."""
    policy = PositionPolicy(burst=1, leak_rate=4)
    policy.next_delay(CONTENT)
    assert policy.next_delay(AdmissionContext(kind=EventKind.DELETION)) == 0.25  # noqa: PLR2004
    assert policy.position == 2  # noqa: PLR2004


def test_position_policy_zero_burst():
    """Test that a zero burst throttles from the first call."""
    policy = PositionPolicy(burst=0, leak_rate=2)
    assert policy.next_delay(CONTENT) == 0.5  # noqa: PLR2004


def test_position_policies_are_independent():
    """Test that each policy instance keeps its own position."""
    first = PositionPolicy(burst=1)
    second = PositionPolicy(burst=1)
    first.next_delay(CONTENT)
    first.next_delay(CONTENT)
    assert second.next_delay(CONTENT) == 0


@pytest.mark.parametrize(
    ("budget", "expected"),
    [
        (None, 0.0),
        (RateBudgetSnapshot(current=51, max=100), 1.0),
        (RateBudgetSnapshot(current=20, max=40), 0.0),
        (RateBudgetSnapshot(current=1, max=40), 0.0),
        (RateBudgetSnapshot(current=40, max=40), 1.0),
    ],
)
def test_telemetry_policy_threshold(budget, expected):
    """Test the strict usage threshold of the telemetry policy."""
    policy = TelemetryPolicy(cooldown=1.0)
    assert policy.next_delay(AdmissionContext(kind=EventKind.CONTENT, budget=budget)) == expected


def test_telemetry_policy_custom_settings():
    """Test configurable cooldown and threshold."""
    policy = TelemetryPolicy(cooldown=2.5, threshold=0.8)
    busy = AdmissionContext(kind=EventKind.DELETION, budget=RateBudgetSnapshot(33, 40))
    calm = AdmissionContext(kind=EventKind.DELETION, budget=RateBudgetSnapshot(31, 40))
    assert policy.next_delay(busy) == 2.5  # noqa: PLR2004
    assert policy.next_delay(calm) == 0.0


def test_create_rate_controller():
    """Test building policies from configuration."""
    telemetry = create_rate_controller(RateConfig(cooldown=0.5))
    assert isinstance(telemetry, TelemetryPolicy)
    assert telemetry.cooldown == 0.5  # noqa: PLR2004

    position = create_rate_controller(RateConfig(policy="position", burst=36, leak_rate=2))
    assert isinstance(position, PositionPolicy)
    assert position.burst == 36  # noqa: PLR2004
    assert position.position == 0


@pytest.mark.parametrize("delay", [-0.1, math.inf, math.nan])
def test_check_delay_rejects_invalid(delay):
    """Test that impossible delays are reported as defects."""
    with pytest.raises(RateControllerError):
        check_delay(delay)


def test_check_delay_passes_valid():
    assert check_delay(0.0) == 0.0
    assert check_delay(1.5) == 1.5  # noqa: PLR2004


if __name__ == "__main__":
    pytest.main([__file__, "-vv"])
