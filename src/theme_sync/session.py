"""Per-run state of the sync pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from theme_sync.models import EventKind


if TYPE_CHECKING:
    from collections.abc import Mapping

    from theme_sync.models import SyncFailure


def _per_kind[T](factory: type[T]) -> dict[EventKind, T]:
    return {kind: factory() for kind in EventKind}


@dataclass(frozen=True)
class SessionStats:
    """Read-only snapshot of session statistics for progress reporting."""

    in_flight: Mapping[EventKind, int]
    """Items of each kind currently being processed."""

    succeeded: Mapping[EventKind, int]
    """Items of each kind whose remote call completed successfully."""

    errors: Mapping[EventKind, tuple[SyncFailure, ...]]
    """Failed items of each kind, in processing order."""

    def processed(self, kind: EventKind) -> int:
        """Items of a kind that finished, successfully or not."""
        return self.succeeded[kind] + len(self.errors[kind])

    @property
    def error_count(self) -> int:
        return sum(len(failures) for failures in self.errors.values())

    @property
    def success_count(self) -> int:
        return sum(self.succeeded.values())


@dataclass
class SyncSession:
    """State bound to one pipeline run.

    Mutated only by the pipeline that owns it; everything else reads it through
    `stats()`.
    """

    theme_id: str | None
    """Target theme. Without one, every item is skipped."""

    base_path: Path = field(default_factory=Path.cwd)
    """Directory asset keys are relative to."""

    in_flight: dict[EventKind, int] = field(default_factory=lambda: _per_kind(int))
    succeeded: dict[EventKind, int] = field(default_factory=lambda: _per_kind(int))
    errors: dict[EventKind, list[SyncFailure]] = field(default_factory=lambda: _per_kind(list))

    def begin(self, kind: EventKind) -> None:
        self.in_flight[kind] += 1

    def end(self, kind: EventKind) -> None:
        self.in_flight[kind] -= 1

    def record_success(self, kind: EventKind) -> None:
        self.succeeded[kind] += 1

    def record_failure(self, kind: EventKind, failure: SyncFailure) -> None:
        self.errors[kind].append(failure)

    def stats(self) -> SessionStats:
        """Take a read-only snapshot of the current counters."""
        return SessionStats(
            in_flight=MappingProxyType(dict(self.in_flight)),
            succeeded=MappingProxyType(dict(self.succeeded)),
            errors=MappingProxyType({k: tuple(v) for k, v in self.errors.items()}),
        )
