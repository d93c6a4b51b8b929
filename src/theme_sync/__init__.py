"""Rate-limited synchronization of local theme files to a remote asset store.

This package provides:
- An order-preserving pipeline turning file events into asset update/delete calls
- Two interchangeable admission delay policies (call budget telemetry, leaky bucket)
- An HTTP client for the remote theme asset API
- Theme resolution, file watching and a command line interface around them
"""

from __future__ import annotations

from theme_sync.client import ThemeAssetClient, encode_asset_payload
from theme_sync.config import RateConfig, SyncConfig, load_config
from theme_sync.exceptions import (
    ConfigurationError,
    RateControllerError,
    RemoteError,
    RemoteErrorKind,
    ThemeSyncError,
    UnsupportedPayloadError,
)
from theme_sync.keys import (
    DEFAULT_IGNORE_PATTERNS,
    get_file_name,
    is_ignored,
    make_asset_key,
    make_path_relative,
)
from theme_sync.models import (
    EventKind,
    FileChangeEvent,
    RateBudgetSnapshot,
    SyncFailure,
    ThemeDescriptor,
)
from theme_sync.pipeline import SkipReason, SyncPipeline, create_pipeline
from theme_sync.rate import (
    AdmissionContext,
    PositionPolicy,
    RateController,
    TelemetryPolicy,
    create_rate_controller,
)
from theme_sync.session import SessionStats, SyncSession
from theme_sync.themes import ThemeChoice, ThemeResolver, build_theme_choices
from theme_sync.watcher import AssetWatcher, collect_events

__all__ = [
    "DEFAULT_IGNORE_PATTERNS",
    "AdmissionContext",
    "AssetWatcher",
    "ConfigurationError",
    "EventKind",
    "FileChangeEvent",
    "PositionPolicy",
    "RateBudgetSnapshot",
    "RateConfig",
    "RateController",
    "RateControllerError",
    "RemoteError",
    "RemoteErrorKind",
    "SessionStats",
    "SkipReason",
    "SyncConfig",
    "SyncFailure",
    "SyncPipeline",
    "SyncSession",
    "TelemetryPolicy",
    "ThemeAssetClient",
    "ThemeChoice",
    "ThemeDescriptor",
    "ThemeResolver",
    "ThemeSyncError",
    "UnsupportedPayloadError",
    "build_theme_choices",
    "collect_events",
    "create_pipeline",
    "create_rate_controller",
    "encode_asset_payload",
    "get_file_name",
    "is_ignored",
    "load_config",
    "make_asset_key",
    "make_path_relative",
]
