"""File event sources feeding the sync pipeline."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Self

from watchfiles import Change, awatch

from theme_sync.log import get_logger
from theme_sync.models import FileChangeEvent


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


logger = get_logger(__name__)


def _iter_files(path: Path) -> Iterator[Path]:
    if path.is_dir():
        yield from sorted(p for p in path.rglob("*") if not p.is_dir())
    else:
        yield path


def _read_event(path: str | Path) -> FileChangeEvent | None:
    try:
        return FileChangeEvent.from_path(path)
    except IsADirectoryError:
        return None
    except OSError as e:
        logger.warning("Skipping unreadable file", path=str(path), error=str(e))
        return None


def collect_events(paths: list[str | Path]) -> list[FileChangeEvent]:
    """Build one event per file below the given paths, in sorted order.

    Missing paths produce deletion events. Unreadable files are logged and skipped.
    """
    return [
        event
        for path in paths
        for file in _iter_files(Path(path))
        if (event := _read_event(file)) is not None
    ]


def event_for_change(change: Change, path: str) -> FileChangeEvent | None:
    """Translate a watchfiles change into a file event.

    Returns None for directories and unreadable files.
    """
    if change == Change.deleted:
        return FileChangeEvent.deletion(path)
    return _read_event(path)


@dataclass
class AssetWatcher:
    """Async iterator of file events using watchfiles.

    Each batch of changes is emitted sorted by path.

    Example:
        ```python
        async with AssetWatcher(paths=["theme"]) as watcher:
            async for event in pipeline.stream(watcher):
                ...
        ```
    """

    paths: list[str | Path]
    """Paths to watch (files or directories)."""

    debounce: int = 100
    """Debounce time in milliseconds."""

    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    """Event to signal stop."""

    def stop(self) -> None:
        """Stop watching; the iterator ends after the current batch."""
        self._stop_event.set()

    async def events(self) -> AsyncIterator[FileChangeEvent]:
        """Yield events for changes until stopped."""
        existing_paths = [str(p) for p in self.paths if Path(p).exists()]
        if not existing_paths:
            logger.warning("No existing paths to watch", paths=[str(p) for p in self.paths])
            return

        self._stop_event.clear()
        logger.info("Watching for changes", paths=existing_paths)
        async for changes in awatch(
            *existing_paths,
            debounce=self.debounce,
            stop_event=self._stop_event,
        ):
            for change, path in sorted(changes, key=lambda item: item[1]):
                if event := event_for_change(change, path):
                    yield event

    def __aiter__(self) -> AsyncIterator[FileChangeEvent]:
        return self.events()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        """Stop watching on context exit."""
        self.stop()
