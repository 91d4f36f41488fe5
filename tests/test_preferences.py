from __future__ import annotations

import pytest

from resource_vault.core.config import Settings
from resource_vault.store.backend import MemoryBackend
from resource_vault.store.preferences import ThemePreference, detect_system_theme


@pytest.mark.parametrize(
    "environ, expected",
    [
        ({"COLORFGBG": "15;0"}, "dark"),
        ({"COLORFGBG": "0;default;8"}, "dark"),
        ({"COLORFGBG": "0;15"}, "light"),
        ({"COLORFGBG": "garbage"}, "light"),
        ({}, "light"),
    ],
)
def test_detect_system_theme(environ, expected) -> None:
    assert detect_system_theme(environ) == expected


def test_configured_default_used_on_first_load() -> None:
    theme = ThemePreference.open(Settings(default_theme="dark"), backend=MemoryBackend())
    assert theme.get() == "dark"


def test_ambient_preference_used_without_configured_default(monkeypatch) -> None:
    monkeypatch.setenv("COLORFGBG", "15;0")
    theme = ThemePreference.open(Settings(default_theme=None), backend=MemoryBackend())
    assert theme.get() == "dark"


def test_set_and_toggle_persist() -> None:
    backend = MemoryBackend()
    config = Settings(default_theme="light")
    theme = ThemePreference.open(config, backend=backend)

    assert theme.set("dark") == "dark"
    assert ThemePreference.open(config, backend=backend).get() == "dark"
    assert theme.toggle() == "light"
    assert backend.get_item(config.theme_key) == '"light"'


def test_unknown_theme_is_rejected() -> None:
    theme = ThemePreference.open(Settings(default_theme="light"), backend=MemoryBackend())
    with pytest.raises(ValueError):
        theme.set("sepia")


def test_stored_garbage_reads_as_default() -> None:
    config = Settings(default_theme="light")
    backend = MemoryBackend({config.theme_key: '"neon"'})
    assert ThemePreference.open(config, backend=backend).get() == "light"


def test_theme_and_collection_keys_are_independent() -> None:
    config = Settings(default_theme="light")
    backend = MemoryBackend()
    ThemePreference.open(config, backend=backend).set("dark")

    assert backend.get_item(config.collection_key) is None
