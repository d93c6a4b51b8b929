"""Admission delay policies for remote calls.

Both policies are deterministic functions of in-process state. The pipeline
asks for the delay right before issuing a call and awaits it first, so the
delay always throttles the upcoming call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import TYPE_CHECKING, Protocol

from theme_sync.exceptions import RateControllerError


if TYPE_CHECKING:
    from theme_sync.config import RateConfig
    from theme_sync.models import EventKind, RateBudgetSnapshot


@dataclass(frozen=True, slots=True)
class AdmissionContext:
    """What a policy may look at when admitting an item."""

    kind: EventKind
    """Classification of the item being admitted."""

    budget: RateBudgetSnapshot | None = None
    """Telemetry from the most recent completed call, if any."""


class RateController(Protocol):
    """Protocol for admission delay policies."""

    def next_delay(self, context: AdmissionContext) -> float:
        """Seconds to wait before issuing the call for this item."""
        ...


@dataclass
class TelemetryPolicy:
    """Throttle using the call budget the remote reports back.

    Waits a fixed cooldown once more than `threshold` of the budget is in use,
    otherwise admits immediately.
    """

    cooldown: float = 1.0
    """Seconds to wait while above the threshold."""

    threshold: float = 0.5
    """Usage ratio that must be exceeded to trigger the cooldown."""

    def next_delay(self, context: AdmissionContext) -> float:
        budget = context.budget
        if budget is not None and budget.ratio > self.threshold:
            return self.cooldown
        return 0.0


@dataclass
class PositionPolicy:
    """Leaky bucket modelled on call positions, for remotes without telemetry.

    The first `burst` admitted calls are free, every later call n waits
    `(n - burst) / leak_rate` seconds, fixed at admission time.
    """

    burst: int = 40
    """Calls admitted before throttling begins."""

    leak_rate: float = 2.0
    """Calls per second the bucket drains at."""

    position: int = field(default=0, init=False)
    """Number of calls admitted so far in this session."""

    def next_delay(self, context: AdmissionContext) -> float:
        self.position += 1
        if self.position <= self.burst:
            return 0.0
        return (self.position - self.burst) / self.leak_rate


def check_delay(delay: float) -> float:
    """Validate a policy result.

    Raises:
        RateControllerError: If the delay is negative or not finite
    """
    if not math.isfinite(delay) or delay < 0:
        msg = f"Rate policy produced an invalid delay: {delay!r}"
        raise RateControllerError(msg)
    return delay


def create_rate_controller(config: RateConfig) -> RateController:
    """Create the policy selected in the rate config."""
    match config.policy:
        case "telemetry":
            return TelemetryPolicy(cooldown=config.cooldown, threshold=config.threshold)
        case "position":
            return PositionPolicy(burst=config.burst, leak_rate=config.leak_rate)
        case _:
            msg = f"Unknown rate policy: {config.policy!r}"
            raise ValueError(msg)
