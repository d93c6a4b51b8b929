"""Resolution of the target theme before a sync session starts."""

from __future__ import annotations

from dataclasses import dataclass
import inspect
from typing import TYPE_CHECKING, Protocol

from theme_sync.exceptions import ConfigurationError
from theme_sync.log import get_logger


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from theme_sync.config import SyncConfig
    from theme_sync.models import ThemeDescriptor


logger = get_logger(__name__)


class ThemeLister(Protocol):
    async def list_themes(self) -> list[ThemeDescriptor]: ...


@dataclass(frozen=True, slots=True)
class ThemeChoice:
    """One entry of an interactive theme selection."""

    name: str
    """Full label, e.g. `123 - Dawn (main)`."""

    short: str
    """Short label shown after selection."""

    value: ThemeDescriptor
    """Theme selected by this choice."""


type ThemeChooser = Callable[[list[ThemeChoice]], ThemeDescriptor | Awaitable[ThemeDescriptor]]
"""Callback picking a theme from the offered choices (sync or async)."""


def build_theme_choices(themes: Mapping[str, ThemeDescriptor]) -> list[ThemeChoice]:
    """Build selection entries labelled `<id> - <name>` plus ` (<role>)` if set."""
    choices: list[ThemeChoice] = []
    for theme in themes.values():
        label = f"{theme.id} - {theme.name}"
        if theme.role:
            label += f" ({theme.role})"
        choices.append(ThemeChoice(name=label, short=theme.name, value=theme))
    return choices


class ThemeResolver:
    """Finds the theme a session should target.

    A configured theme id that exists on the store is used directly; otherwise
    the chooser callback picks one of the available themes.
    """

    def __init__(self, client: ThemeLister):
        self.client = client

    async def list_themes(self) -> dict[str, ThemeDescriptor]:
        """Get the store's themes indexed by id."""
        themes = await self.client.list_themes()
        return {theme.id: theme for theme in themes}

    async def resolve(
        self,
        theme_id: str | None,
        chooser: ThemeChooser | None = None,
    ) -> ThemeDescriptor:
        """Resolve a theme id to a descriptor.

        Args:
            theme_id: Configured theme id, if any
            chooser: Callback selecting a theme when the id is unknown

        Raises:
            ConfigurationError: If the store has no themes, or the id is unknown
                and no chooser was given
        """
        themes = await self.list_themes()
        if not themes:
            msg = "Can not get any themes"
            raise ConfigurationError(msg)
        if theme_id and theme_id in themes:
            return themes[theme_id]
        if chooser is None:
            msg = f"Theme {theme_id!r} not found. Available: {', '.join(themes)}"
            raise ConfigurationError(msg)

        logger.debug("Theme not found, asking for selection", theme_id=theme_id)
        selected = chooser(build_theme_choices(themes))
        if inspect.isawaitable(selected):
            selected = await selected
        return selected

    async def apply(self, config: SyncConfig, chooser: ThemeChooser | None = None) -> SyncConfig:
        """Return a copy of the config bound to the resolved theme."""
        theme = await self.resolve(config.theme_id, chooser)
        return config.merged(theme_id=theme.id, theme_name=theme.name)
