"""Tests for asset key derivation."""

from __future__ import annotations

import pytest

from theme_sync import get_file_name, is_ignored, make_asset_key, make_path_relative


def test_key_is_relative_to_base_path(tmp_path):
    """Test basic relative key derivation."""
    path = tmp_path / "templates" / "index.liquid"
    assert make_asset_key(path, tmp_path) == "templates/index.liquid"


def test_key_is_uri_encoded(tmp_path):
    """Test that spaces and non-ASCII characters are percent-encoded."""
    assert make_asset_key(tmp_path / "assets" / "my logo.png", tmp_path) == "assets/my%20logo.png"
    assert make_asset_key(tmp_path / "assets" / "grün.css", tmp_path) == "assets/gr%C3%BCn.css"


def test_reserved_characters_are_kept(tmp_path):
    """Test that URI reserved characters survive encoding."""
    key = make_asset_key(tmp_path / "assets" / "a+b&c=(1)!.js", tmp_path)
    assert key == "assets/a+b&c=(1)!.js"


def test_key_is_pure(tmp_path):
    """Test that identical arguments give identical keys."""
    path = tmp_path / "sections" / "header.liquid"
    assert make_asset_key(path, tmp_path) == make_asset_key(path, tmp_path)


def test_separator_style_does_not_matter(tmp_path):
    """Test that backslash and slash separators map to the same key."""
    base = str(tmp_path)
    forward = make_asset_key(f"{base}/snippets/card.liquid", base)
    backward = make_asset_key(f"{base}\\snippets\\card.liquid", base)
    assert forward == backward == "snippets/card.liquid"


@pytest.mark.parametrize("base_path", [None, ""])
def test_missing_base_path_means_cwd(tmp_path, monkeypatch, base_path):
    """Test that an empty or missing base path falls back to the working dir."""
    monkeypatch.chdir(tmp_path)
    assert make_asset_key("layout/theme.liquid", base_path) == "layout/theme.liquid"


def test_relative_base_path_is_resolved(tmp_path, monkeypatch):
    """Test that a relative base path is made absolute first."""
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "theme" / "config" / "settings.json"
    assert make_asset_key(path, "theme") == "config/settings.json"


def test_make_path_relative_is_not_encoded(tmp_path):
    """Test the human-readable relative path."""
    path = tmp_path / "assets" / "my logo.png"
    assert make_path_relative(path, tmp_path) == "assets/my logo.png"


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/theme/assets/app.js", "app.js"),
        ("C:\\theme\\assets\\app.js", "app.js"),
        ("app.js", "app.js"),
    ],
)
def test_get_file_name(path, expected):
    """Test extracting the last path component."""
    assert get_file_name(path) == expected


@pytest.mark.parametrize(
    ("path", "ignored"),
    [
        ("/theme/assets/.DS_Store", True),
        ("theme\\assets\\.DS_Store", True),
        ("/theme/.DS_Store/inner.css", True),
        ("/theme/assets/Thumbs.db", True),
        ("/theme/assets/DS_Store.css", False),
        ("/theme/templates/index.liquid", False),
    ],
)
def test_is_ignored_defaults(path, ignored):
    """Test the default ignore patterns."""
    assert is_ignored(path) is ignored


def test_is_ignored_custom_patterns():
    """Test glob patterns supplied by configuration."""
    assert is_ignored("/theme/assets/app.js.swp", ["*.swp"])
    assert not is_ignored("/theme/assets/.DS_Store", ["*.swp"])


def test_is_ignored_only_checks_components_below_base_path(tmp_path):
    """Test that directories above the base path never match."""
    base = tmp_path / "tmp-projects" / "theme"
    assert not is_ignored(base / "assets" / "app.js", ["tmp*"], base)
    assert is_ignored(base / "tmp-cache" / "app.js", ["tmp*"], base)


if __name__ == "__main__":
    pytest.main([__file__, "-vv"])
