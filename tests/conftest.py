"""Test configuration and shared fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from theme_sync import RemoteError, RemoteErrorKind


if TYPE_CHECKING:
    from pathlib import Path

    from theme_sync import RateBudgetSnapshot


class FakeAssetClient:
    """In-memory stand-in for the remote asset client."""

    def __init__(
        self,
        fail_keys: set[str] | None = None,
        budgets: list[RateBudgetSnapshot] | None = None,
        log: list[tuple[str, object]] | None = None,
    ):
        self.calls: list[tuple[str, str, str]] = []
        self.payloads: dict[str, bytes] = {}
        self.fail_keys = fail_keys or set()
        self._budgets = list(budgets or [])
        self._budget: RateBudgetSnapshot | None = None
        self._log = log

    def current_budget(self) -> RateBudgetSnapshot | None:
        return self._budget

    async def _call(self, method: str, theme_id: str, key: str) -> RateBudgetSnapshot | None:
        self.calls.append((method, theme_id, key))
        if self._log is not None:
            self._log.append(("call", key))
        if self._budgets:
            self._budget = self._budgets.pop(0)
        if key in self.fail_keys:
            raise RemoteError(RemoteErrorKind.INVALID_REQUEST, f"422 cannot save {key}")
        return self._budget

    async def update_asset(
        self, theme_id: str, key: str, payload: bytes
    ) -> RateBudgetSnapshot | None:
        self.payloads[key] = payload
        return await self._call("update", theme_id, key)

    async def delete_asset(self, theme_id: str, key: str) -> RateBudgetSnapshot | None:
        return await self._call("delete", theme_id, key)


class RecordingSleep:
    """Sleep replacement that records requested delays without waiting."""

    def __init__(self, log: list[tuple[str, object]] | None = None):
        self.delays: list[float] = []
        self._log = log

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._log is not None:
            self._log.append(("sleep", delay))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Keep credentials from the real environment out of the tests."""
    for name in ("THEME_SYNC_API_KEY", "THEME_SYNC_PASSWORD", "THEME_SYNC_STORE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_client() -> FakeAssetClient:
    return FakeAssetClient()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def theme_dir(tmp_path: Path) -> Path:
    """A small theme tree on disk."""
    (tmp_path / "templates").mkdir()
    (tmp_path / "templates" / "index.liquid").write_text("{{ content_for_layout }}")
    (tmp_path / "assets").mkdir()
    (tmp_path / "assets" / "theme.css").write_text("body { margin: 0; }")
    (tmp_path / "assets" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")
    (tmp_path / "assets" / ".DS_Store").write_bytes(b"\x00\x00\x00\x01Bud1")
    return tmp_path


@pytest.fixture
def make_client() -> type[FakeAssetClient]:
    """Factory for fake clients with failures or budget telemetry."""
    return FakeAssetClient


@pytest.fixture
def make_sleep() -> type[RecordingSleep]:
    """Factory for recording sleeps sharing an event log."""
    return RecordingSleep
