"""Error taxonomy for theme synchronization."""

from __future__ import annotations

from enum import StrEnum


class ThemeSyncError(Exception):
    """Base class for all theme_sync errors."""


class ConfigurationError(ThemeSyncError, ValueError):
    """Raised when a session cannot be constructed from the given settings.

    Fatal: surfaces before any file event is processed.
    """


class UnsupportedPayloadError(ThemeSyncError):
    """Raised for an event whose payload cannot become a remote call."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Streams are not supported: {path}")


class RemoteErrorKind(StrEnum):
    """Machine-checkable category of a failed remote call."""

    INVALID_REQUEST = "invalid_request"
    """The remote rejected the request (4xx)."""

    TIMEOUT = "timeout"
    """The call did not complete within the network timeout."""

    UNKNOWN = "unknown"
    """Anything else: transport failures, 5xx responses, malformed replies."""


class RemoteError(ThemeSyncError):
    """A single remote asset call failed."""

    def __init__(
        self,
        kind: RemoteErrorKind,
        message: str,
        *,
        status_code: int | None = None,
    ):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"RemoteError(kind={self.kind.value!r}, message={self.message!r})"


class RateControllerError(ThemeSyncError, RuntimeError):
    """Raised when a rate policy produces an invalid delay.

    Indicates a programming defect, never a recoverable runtime condition.
    """
