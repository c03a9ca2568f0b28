"""
JSON-file persistence for model settings.

Stored under the user's config directory as img-solve-settings.json.
Missing or malformed data silently falls back to defaults.
"""

import json
import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Optional

from ..models import Settings
from .constants import PROVIDERS, SETTINGS_KEY
from .errors import ExportError

logger = logging.getLogger(__name__)


def default_settings_path() -> Path:
    """Settings file location ($XDG_CONFIG_HOME/sketchsolve or ~/.config/sketchsolve)."""
    base = os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "sketchsolve" / f"{SETTINGS_KEY}.json"


class SettingsStore:
    """
    Load and save Settings as a flat JSON object.

    Usage:
        store = SettingsStore()
        settings = store.load()
        settings.temperature = 0.5
        store.save(settings)
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_settings_path()

    def load(self) -> Settings:
        """
        Read settings, falling back to defaults field by field.

        Never raises: unreadable files and bad values are logged and ignored.
        """
        defaults = Settings()
        if not self.path.exists():
            return defaults

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            return defaults

        if not isinstance(raw, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", self.path)
            return defaults

        return coerce_settings(raw)

    def save(self, settings: Settings) -> None:
        """
        Write settings to disk.

        Raises:
            ExportError: If the file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            raise ExportError("Could not save settings", technical_details=str(e))
        logger.debug("Settings saved to %s", self.path)

    def clear(self) -> None:
        """Delete the stored settings (next load returns defaults)."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ExportError("Could not reset settings", technical_details=str(e))


def coerce_settings(raw: dict) -> Settings:
    """Build Settings from a loosely-typed dict, keeping only valid fields."""
    settings = Settings()
    known = {f.name for f in fields(Settings)}

    for key, value in raw.items():
        if key not in known:
            continue
        if key == "temperature":
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                settings.temperature = min(1.0, max(0.0, float(value)))
            else:
                logger.warning("Ignoring invalid temperature %r", value)
        elif isinstance(value, str) and value.strip():
            setattr(settings, key, value)
        else:
            logger.warning("Ignoring invalid %s %r", key, value)

    if settings.provider not in PROVIDERS:
        logger.warning("Unknown provider %r, using default", settings.provider)
        settings.provider = Settings().provider
    return settings
