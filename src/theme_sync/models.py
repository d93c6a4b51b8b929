"""Core models for file events, rate telemetry and themes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import os
from pathlib import Path
import stat
from typing import Any, Self


class EventKind(StrEnum):
    """Classification of a file event, decided once at ingestion."""

    CONTENT = "content"
    """File has a byte payload (create/update)."""

    DELETION = "deletion"
    """File is gone (remove the asset)."""

    UNSUPPORTED = "unsupported"
    """Payload cannot be buffered (pipes, sockets, devices)."""


@dataclass(frozen=True, slots=True)
class FileChangeEvent:
    """One unit of work flowing through the sync pipeline.

    Never mutated: the pipeline re-emits the identical instance downstream.
    """

    path: str
    """Local filesystem path, absolute or relative to the working directory."""

    kind: EventKind
    """What happened to the file."""

    payload: bytes | None = None
    """File contents, present only for `EventKind.CONTENT`."""

    def __post_init__(self) -> None:
        if self.kind is EventKind.CONTENT and self.payload is None:
            msg = f"Content event for {self.path!r} requires a payload"
            raise ValueError(msg)
        if self.kind is not EventKind.CONTENT and self.payload is not None:
            msg = f"{self.kind.value} event for {self.path!r} must not carry a payload"
            raise ValueError(msg)

    @classmethod
    def content(cls, path: str | os.PathLike[str], payload: bytes) -> Self:
        return cls(str(path), EventKind.CONTENT, bytes(payload))

    @classmethod
    def deletion(cls, path: str | os.PathLike[str]) -> Self:
        return cls(str(path), EventKind.DELETION)

    @classmethod
    def unsupported(cls, path: str | os.PathLike[str]) -> Self:
        return cls(str(path), EventKind.UNSUPPORTED)

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> Self:
        """Build an event from the current state of a path on disk.

        Missing files become deletions, including files removed while being
        read. Regular files are read into a content event and anything that is
        neither (fifos, sockets, devices) is unsupported.

        Raises:
            IsADirectoryError: If the path is a directory
            PermissionError: If the file cannot be read
        """
        try:
            mode = Path(path).stat().st_mode
            if stat.S_ISDIR(mode):
                raise IsADirectoryError(str(path))
            if not stat.S_ISREG(mode):
                return cls.unsupported(path)
            payload = Path(path).read_bytes()
        except FileNotFoundError:
            return cls.deletion(path)
        return cls.content(path, payload)


@dataclass(frozen=True, slots=True)
class RateBudgetSnapshot:
    """Call budget telemetry reported by the remote after a call."""

    current: int
    """Calls consumed in the current window."""

    max: int
    """Window capacity."""

    @property
    def ratio(self) -> float:
        """Fraction of the budget in use (1.0 for a zero-capacity window)."""
        if self.max <= 0:
            return 1.0
        return self.current / self.max

    @classmethod
    def parse(cls, value: str | None) -> Self | None:
        """Parse a `current/max` header value, e.g. `32/40`.

        Returns:
            The snapshot, or None if the value is absent or malformed
        """
        if not value:
            return None
        current, sep, maximum = value.strip().partition("/")
        if not sep:
            return None
        try:
            return cls(current=int(current), max=int(maximum))
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class ThemeDescriptor:
    """A theme as listed by the remote store."""

    id: str
    name: str
    role: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Self:
        return cls(id=str(data["id"]), name=str(data.get("name", "")), role=data.get("role") or "")


@dataclass(frozen=True, slots=True)
class SyncFailure:
    """A single failed item recorded in the session."""

    path: str
    """Local path of the failed event."""

    message: str
    """Human-readable reason."""

    error_kind: str
    """`RemoteErrorKind` value, or `unsupported_payload`."""
