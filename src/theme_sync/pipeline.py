"""Rate-limited, order-preserving asset sync pipeline.

Every event goes through the same states:

    Received -> Classified -> (Skipped | Admitted) -> (Succeeded | Failed) -> Forwarded

Admission is single-lane: one item at a time is between admission and
forwarding, so events leave in exactly the order they came in, one output per
input, whatever the remote said.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from theme_sync.exceptions import RemoteError, UnsupportedPayloadError
from theme_sync.keys import (
    DEFAULT_IGNORE_PATTERNS,
    get_file_name,
    is_ignored,
    make_asset_key,
    make_path_relative,
)
from theme_sync.log import get_logger
from theme_sync.models import EventKind, SyncFailure
from theme_sync.rate import AdmissionContext, check_delay, create_rate_controller
from theme_sync.session import SyncSession


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Sequence

    from theme_sync.config import SyncConfig
    from theme_sync.models import FileChangeEvent, RateBudgetSnapshot
    from theme_sync.rate import RateController
    from theme_sync.session import SessionStats

    ProgressHandler = Callable[[SessionStats], None]
    Sleep = Callable[[float], Awaitable[None]]


logger = get_logger(__name__)


class SkipReason(StrEnum):
    """Why an event bypassed the remote entirely."""

    IGNORED = "ignored"
    """Path matches an ignore pattern."""

    NO_THEME = "no_theme"
    """Session has no target theme."""


class AssetClient(Protocol):
    """The part of the remote client the pipeline depends on."""

    async def update_asset(
        self, theme_id: str, key: str, payload: bytes
    ) -> RateBudgetSnapshot | None: ...

    async def delete_asset(self, theme_id: str, key: str) -> RateBudgetSnapshot | None: ...

    def current_budget(self) -> RateBudgetSnapshot | None: ...


class SyncPipeline:
    """Turns an ordered stream of file events into remote asset calls.

    Remote failures are recorded in the session and never stop the stream.
    Each input event is forwarded exactly once, unmodified and in input order.

    Example:
        ```python
        pipeline = SyncPipeline(session, client, PositionPolicy(burst=40))
        async for event in pipeline.stream(events):
            sink.write(event)
        print(pipeline.session.stats())
        ```
    """

    def __init__(
        self,
        session: SyncSession,
        client: AssetClient,
        rate_controller: RateController,
        *,
        ignore_patterns: Sequence[str] = DEFAULT_IGNORE_PATTERNS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the pipeline.

        Args:
            session: Session state this pipeline owns and updates
            client: Remote asset client
            rate_controller: Policy deciding the delay before each call
            ignore_patterns: Glob patterns for path components never synced
            sleep: Coroutine used to await admission delays
        """
        self.session = session
        self.client = client
        self.rate_controller = rate_controller
        self.ignore_patterns = tuple(ignore_patterns)
        self._sleep = sleep
        self._progress_handlers: list[ProgressHandler] = []

    def register_progress_handler(self, handler: ProgressHandler) -> None:
        """Register a callback receiving session stats after every item."""
        self._progress_handlers.append(handler)

    def classify(self, event: FileChangeEvent) -> SkipReason | None:
        """Decide whether an event is skipped before any remote processing."""
        if not self.session.theme_id:
            return SkipReason.NO_THEME
        if is_ignored(event.path, self.ignore_patterns, self.session.base_path):
            return SkipReason.IGNORED
        return None

    async def process(self, event: FileChangeEvent) -> FileChangeEvent:
        """Run one event through the pipeline and return it for forwarding.

        Only cancellation and programming errors propagate. Cancelling while an
        item waits for admission means its remote call is never issued.
        """
        if reason := self.classify(event):
            logger.debug("Skipping file", file=get_file_name(event.path), reason=reason.value)
        elif event.kind is EventKind.UNSUPPORTED:
            self._record_unsupported(event)
        else:
            task = asyncio.create_task(self._sync(event))
            try:
                await task
            except asyncio.CancelledError:
                task.cancel()
                raise
        self._notify()
        return event

    async def stream(
        self,
        events: AsyncIterable[FileChangeEvent] | Iterable[FileChangeEvent],
    ) -> AsyncIterator[FileChangeEvent]:
        """Process events one by one, yielding each once it is done."""
        if isinstance(events, AsyncIterable):
            async for event in events:
                yield await self.process(event)
        else:
            for event in events:
                yield await self.process(event)

    async def run(
        self,
        events: AsyncIterable[FileChangeEvent] | Iterable[FileChangeEvent],
    ) -> list[FileChangeEvent]:
        """Process all events and collect the forwarded ones."""
        return [event async for event in self.stream(events)]

    async def _sync(self, event: FileChangeEvent) -> None:
        theme_id = self.session.theme_id
        assert theme_id, "classify() lets no event through without a theme"
        kind = event.kind
        key = make_asset_key(event.path, self.session.base_path)
        path = make_path_relative(event.path, self.session.base_path)
        context = AdmissionContext(kind=kind, budget=self.client.current_budget())
        delay = check_delay(self.rate_controller.next_delay(context))

        self.session.begin(kind)
        try:
            if delay:
                logger.debug("Delaying remote call", key=key, delay=delay)
            await self._sleep(delay)
            try:
                if kind is EventKind.CONTENT:
                    assert event.payload is not None
                    logger.info("Upload started", path=path, key=key)
                    await self.client.update_asset(theme_id, key, event.payload)
                    logger.info("Upload finished", path=path)
                else:
                    logger.info("Delete started", path=path, key=key)
                    await self.client.delete_asset(theme_id, key)
                    logger.info("Delete finished", path=path)
            except RemoteError as e:
                action = "upload" if kind is EventKind.CONTENT else "delete"
                logger.error(
                    "Remote call failed",
                    action=action,
                    path=path,
                    key=key,
                    kind=e.kind.value,
                    error=e.message,
                )
                failure = SyncFailure(path=event.path, message=e.message, error_kind=e.kind.value)
                self.session.record_failure(kind, failure)
            else:
                self.session.record_success(kind)
        finally:
            self.session.end(kind)

    def _record_unsupported(self, event: FileChangeEvent) -> None:
        error = UnsupportedPayloadError(event.path)
        logger.error("Unsupported payload", path=event.path)
        failure = SyncFailure(path=event.path, message=str(error), error_kind="unsupported_payload")
        self.session.record_failure(EventKind.UNSUPPORTED, failure)

    def _notify(self) -> None:
        stats = self.session.stats()
        for handler in self._progress_handlers:
            try:
                handler(stats)
            except Exception:
                logger.exception("Progress handler failed")


def create_pipeline(
    config: SyncConfig,
    client: AssetClient,
    *,
    rate_controller: RateController | None = None,
    sleep: Sleep = asyncio.sleep,
) -> SyncPipeline:
    """Create a pipeline for a fully configured session.

    Raises:
        ConfigurationError: If credentials, host or theme id are missing
    """
    config.validate_credentials()
    theme_id = config.require_theme()
    session = SyncSession(theme_id=theme_id, base_path=config.resolved_base_path)
    return SyncPipeline(
        session,
        client,
        rate_controller or create_rate_controller(config.rate),
        ignore_patterns=config.ignore_patterns,
        sleep=sleep,
    )
