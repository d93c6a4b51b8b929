"""Command line interface for theme sync."""

from __future__ import annotations

import asyncio
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer as t

from theme_sync.client import ThemeAssetClient
from theme_sync.config import load_config
from theme_sync.exceptions import ConfigurationError, ThemeSyncError
from theme_sync.log import configure_logging, get_logger
from theme_sync.pipeline import create_pipeline
from theme_sync.reporting import ProgressLogger, format_connection_message, format_summary
from theme_sync.themes import ThemeResolver, build_theme_choices
from theme_sync.watcher import AssetWatcher, collect_events


if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Callable, Iterable

    from theme_sync.config import SyncConfig
    from theme_sync.models import FileChangeEvent, ThemeDescriptor
    from theme_sync.session import SessionStats
    from theme_sync.themes import ThemeChoice

    EventSource = Callable[[SyncConfig], AsyncIterable[FileChangeEvent] | Iterable[FileChangeEvent]]


logger = get_logger(__name__)

app = t.Typer(help="Sync local theme files to a remote theme store", no_args_is_help=True)

CONFIG_HELP = "Path to a YAML config file"
STORE_HELP = "Store name (host defaults to <store>.myshopify.com)"
THEME_HELP = "Target theme id (prompts for a theme if unknown)"
BASE_PATH_HELP = "Directory asset keys are relative to"
POLICY_HELP = "Rate policy. One of: telemetry, position"
BROWSER_HELP = "Open the theme preview in a browser"
VERBOSE_HELP = "Enable debug logging"
PATHS_HELP = "Files or directories to sync (default: base path)"

ConfigOpt = Annotated[Path | None, t.Option("-c", "--config", help=CONFIG_HELP)]
StoreOpt = Annotated[str | None, t.Option("--store", "-s", help=STORE_HELP)]
ThemeOpt = Annotated[str | None, t.Option("--theme-id", "-t", help=THEME_HELP)]
BasePathOpt = Annotated[str | None, t.Option("--base-path", "-b", help=BASE_PATH_HELP)]
PolicyOpt = Annotated[str | None, t.Option("--policy", help=POLICY_HELP)]
BrowserOpt = Annotated[bool, t.Option("--open-browser", help=BROWSER_HELP)]
VerboseOpt = Annotated[bool, t.Option("-v", "--verbose", help=VERBOSE_HELP)]
PathsArg = Annotated[list[Path] | None, t.Argument(help=PATHS_HELP)]


def prompt_theme(choices: list[ThemeChoice]) -> ThemeDescriptor:
    """Ask on the terminal which theme to use."""
    for index, choice in enumerate(choices, start=1):
        t.echo(f"  {index}) {choice.name}")
    selected = t.prompt(
        "Which theme would you like to use?",
        type=t.IntRange(1, len(choices)),
    )
    return choices[selected - 1].value


def _load(
    config: Path | None,
    *,
    store: str | None = None,
    theme_id: str | None = None,
    base_path: str | None = None,
    policy: str | None = None,
    open_browser: bool = False,
    verbose: bool = False,
) -> SyncConfig:
    configure_logging("DEBUG" if verbose else "INFO")
    rate = {"policy": policy} if policy else None
    try:
        return load_config(
            config,
            name=store,
            theme_id=theme_id,
            base_path=base_path,
            open_browser=open_browser or None,
            rate=rate,
        )
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=str(e))
        raise t.Exit(1) from e


async def _prepare(config: SyncConfig, client: ThemeAssetClient) -> SyncConfig:
    """Resolve the theme, announce the connection and open the preview."""
    config = await ThemeResolver(client).apply(config, prompt_theme)
    for line in format_connection_message(config):
        logger.info(line)
    if config.open_browser:
        import webbrowser

        webbrowser.open(config.preview_url)
    return config


async def _sync(config: SyncConfig, source: EventSource) -> SessionStats:
    async with ThemeAssetClient.from_config(config) as client, AsyncExitStack() as stack:
        config = await _prepare(config, client)
        pipeline = create_pipeline(config, client)
        pipeline.register_progress_handler(ProgressLogger())
        events = source(config)
        if isinstance(events, AbstractAsyncContextManager):
            # Watchers are stopped on every exit path, interrupts included.
            events = await stack.enter_async_context(events)
        async for _event in pipeline.stream(events):
            pass
        return pipeline.session.stats()


def _run_sync(config: SyncConfig, source: EventSource) -> None:
    try:
        stats = asyncio.run(_sync(config, source))
    except ThemeSyncError as e:
        logger.error("Sync aborted", error=str(e))
        raise t.Exit(1) from e
    logger.info(format_summary(stats))


@app.command("themes")
def list_themes(
    config: ConfigOpt = None,
    store: StoreOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """List the themes of the store."""
    settings = _load(config, store=store, verbose=verbose)

    async def fetch() -> list[ThemeChoice]:
        async with ThemeAssetClient.from_config(settings) as client:
            return build_theme_choices(await ThemeResolver(client).list_themes())

    try:
        choices = asyncio.run(fetch())
    except ThemeSyncError as e:
        logger.error("Could not list themes", error=str(e))
        raise t.Exit(1) from e
    for choice in choices:
        t.echo(choice.name)


@app.command("upload")
def upload(
    paths: PathsArg = None,
    config: ConfigOpt = None,
    store: StoreOpt = None,
    theme_id: ThemeOpt = None,
    base_path: BasePathOpt = None,
    policy: PolicyOpt = None,
    open_browser: BrowserOpt = False,
    verbose: VerboseOpt = False,
) -> None:
    """Upload files to the theme, deleting assets whose files are gone."""
    settings = _load(
        config,
        store=store,
        theme_id=theme_id,
        base_path=base_path,
        policy=policy,
        open_browser=open_browser,
        verbose=verbose,
    )
    _run_sync(settings, lambda cfg: collect_events(list(paths or [cfg.resolved_base_path])))


@app.command("watch")
def watch(
    paths: PathsArg = None,
    config: ConfigOpt = None,
    store: StoreOpt = None,
    theme_id: ThemeOpt = None,
    base_path: BasePathOpt = None,
    policy: PolicyOpt = None,
    open_browser: BrowserOpt = False,
    verbose: VerboseOpt = False,
) -> None:
    """Watch files and sync every change until interrupted."""
    settings = _load(
        config,
        store=store,
        theme_id=theme_id,
        base_path=base_path,
        policy=policy,
        open_browser=open_browser,
        verbose=verbose,
    )
    try:
        _run_sync(settings, lambda cfg: AssetWatcher(list(paths or [cfg.resolved_base_path])))
    except KeyboardInterrupt:
        logger.info("Stopped watching")


if __name__ == "__main__":
    app()
