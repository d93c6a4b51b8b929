"""Human-readable progress output for sync sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from theme_sync.log import get_logger
from theme_sync.models import EventKind


if TYPE_CHECKING:
    from theme_sync.config import SyncConfig
    from theme_sync.session import SessionStats


logger = get_logger(__name__)


def format_counts(stats: SessionStats) -> str:
    """Format processed items per kind, e.g. `Content count: 2 Deletion count: 1 ...`."""
    return " ".join(
        f"{kind.value.capitalize()} count: {stats.processed(kind)}" for kind in EventKind
    )


def format_summary(stats: SessionStats) -> str:
    """Format totals once a session is done."""
    return f"Synced {stats.success_count} file(s), {stats.error_count} error(s)"


def format_connection_message(config: SyncConfig) -> list[str]:
    """Lines announcing the store and theme a session is bound to."""
    return [
        f"Connected to: {config.resolved_host} theme id: {config.theme_id} "
        f"theme name: {config.theme_name}",
        f"Browser to: {config.preview_url}",
    ]


class ProgressLogger:
    """Progress handler logging counters after every processed item."""

    def __call__(self, stats: SessionStats) -> None:
        logger.info(format_counts(stats), errors=stats.error_count)
