"""Light/dark theme preference stored under its own key."""

from __future__ import annotations

import json
import os
from typing import Mapping, Optional

from resource_vault.core.config import Settings, settings as default_settings
from resource_vault.store.backend import JsonFileBackend, StorageBackend
from resource_vault.store.persistent import PersistentStore
from resource_vault.utils.resource_models import THEMES


def detect_system_theme(environ: Optional[Mapping[str, str]] = None) -> str:
    """Guess the ambient preference from the terminal's ``COLORFGBG`` hint.

    ``COLORFGBG`` is ``"<fg>;<bg>"``; background colours 0-6 and 8 are dark.
    """
    env = os.environ if environ is None else environ
    hint = env.get("COLORFGBG", "")
    background = hint.rsplit(";", 1)[-1].strip()
    if background.isdigit() and int(background) in {0, 1, 2, 3, 4, 5, 6, 8}:
        return "dark"
    return "light"


class ThemePreference:
    def __init__(self, store: PersistentStore[str]) -> None:
        self._store = store

    @classmethod
    def open(
        cls,
        settings: Optional[Settings] = None,
        *,
        backend: Optional[StorageBackend] = None,
    ) -> "ThemePreference":
        config = settings or default_settings
        medium = backend or JsonFileBackend(config.storage_dir)
        default = config.default_theme or detect_system_theme()
        return cls(
            PersistentStore(
                config.theme_key,
                default,
                backend=medium,
                deserializer=_decode_theme,
            )
        )

    def get(self) -> str:
        return self._store.value

    def set(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self._store.write(theme)
        return theme

    def toggle(self) -> str:
        return self.set("dark" if self.get() == "light" else "light")


def _decode_theme(text: str) -> str:
    value = json.loads(text)
    if value not in THEMES:
        raise ValueError(f"unknown theme {value!r}")
    return value
