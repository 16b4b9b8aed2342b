"""Persistent editor settings (``_settings.json`` next to main.py)."""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields

log = logging.getLogger(__name__)

# Settings file lives next to main.py
SETTINGS_FILE = os.path.join(os.path.dirname(os.path.dirname(__file__)), "_settings.json")


@dataclass
class EditorSettings:
    last_project_dir: str = ""
    plugin_name: str = "CharacterPictureManager"
    parameter_name: str = "PictureList"
    pictures_subdir: str = "pictures"
    thumbnail_size: int = 96
    dark_mode: bool = True
    confirm_deletes: bool = True

    @classmethod
    def load(cls, path: str = SETTINGS_FILE) -> "EditorSettings":
        """Load saved settings; missing or corrupt files give defaults."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                cfg = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError, OSError):
            return cls()
        if not isinstance(cfg, dict):
            return cls()

        settings = cls()
        for f in fields(cls):
            if f.name not in cfg:
                continue
            value = cfg[f.name]
            default = getattr(settings, f.name)
            # Reject values of the wrong type (hand-edited files)
            if type(value) is not type(default):
                log.warning("Ignoring setting %s=%r", f.name, value)
                continue
            setattr(settings, f.name, value)
        return settings

    def save(self, path: str = SETTINGS_FILE):
        """Persist current settings."""
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(asdict(self), f, ensure_ascii=False, indent=2)
        except OSError as exc:
            log.warning("Settings not saved: %s", exc)
