"""
CoverSync Settings Manager
Handles dynamic configuration management using settings.json
"""

import ast
import json
import os
import shutil
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from logging_config import get_logger

logger = get_logger(__name__)

# Allow overriding the settings file location via environment variable
if getattr(sys, 'frozen', False):
    ROOT_DIR = Path(sys.executable).parent
else:
    ROOT_DIR = Path(__file__).parent

SETTINGS_FILE = Path(os.getenv("COVERSYNC_SETTINGS_FILE", str(ROOT_DIR / "settings.json")))


@dataclass
class Setting:
    """Represents a single configurable setting"""
    name: str
    type: type
    default: Any
    category: Optional[str] = None
    description: Optional[str] = None
    min_val: Optional[float] = None
    max_val: Optional[float] = None

    def validate_and_convert(self, value: Any) -> Any:
        try:
            if self.type == bool and isinstance(value, str):
                return value.lower() in ('true', '1', 'yes', 'on')

            if self.type == list:
                if isinstance(value, list):
                    return value
                if isinstance(value, str):
                    value = value.strip()
                    # Accepts ['a', 'b'], ["a", "b"] and a, b
                    try:
                        parsed = ast.literal_eval(value)
                        if isinstance(parsed, list):
                            return parsed
                    except (ValueError, SyntaxError):
                        pass
                    clean_value = value.strip("[]")
                    if clean_value:
                        return [v.strip().strip("'").strip('"') for v in clean_value.split(',') if v.strip()]
                    return []
                return self.default

            converted = self.type(value)
            if self.min_val is not None and converted < self.min_val:
                return self.type(self.min_val)
            if self.max_val is not None and converted > self.max_val:
                return self.type(self.max_val)
            return converted
        except (ValueError, TypeError):
            return self.default


class SettingsManager:
    def __init__(self, settings_file: Optional[Path] = None):
        self._settings: Dict[str, Any] = {}
        self.settings_file = Path(settings_file) if settings_file else SETTINGS_FILE

        self._definitions = {
            # Debug
            "debug.log_file": Setting("Log File", str, "coversync.log", "Debug", "Log file name"),
            "debug.log_level": Setting("Log Level", str, "INFO", "Debug", "Console logging verbosity"),
            "debug.log_providers": Setting("Log Providers", bool, True, "Debug", "Log provider requests"),
            "debug.log_to_console": Setting("Log to Console", bool, True, "Debug", "Print logs to terminal"),
            "debug.log_rotation.max_bytes": Setting("Max Log Size", int, 1048576, "Debug", "Max log file size (bytes)"),
            "debug.log_rotation.backup_count": Setting("Log Backups", int, 10, "Debug", "Number of backups to keep"),

            # General
            "general.overwrite_cover": Setting("Overwrite Cover", bool, False, "General", "Replace covers that already exist"),
            "general.overwrite_only_higher": Setting("Only Higher Resolution", bool, True, "General", "Replace an existing cover only with a larger one"),
            "general.manual_image_selection": Setting("Manual Selection", bool, False, "General", "Collect all results and choose a cover by hand"),
            "general.auto_last_audio": Setting("Reuse Last Cover", bool, True, "General", "Reuse the previous track's cover for the same album and folder"),

            # Search
            "search.timeout": Setting("Search Timeout", int, 10, "Search", "Per-provider timeout (s)", min_val=1, max_val=120),
            "cover.max_size": Setting("Max Cover Size", int, 1000, "Cover", "Downscale covers larger than this (px, 0 disables)", min_val=0, max_val=10000),

            # Providers
            "providers.itunes.enabled": Setting("iTunes", bool, True, "Providers", "Enable iTunes Search API"),
            "providers.itunes.priority": Setting("iTunes Priority", int, 1, "Providers", "Search priority (lower = first)", min_val=1, max_val=10),
            "providers.itunes.timeout": Setting("Timeout", int, 10, "Providers", "HTTP timeout (s)"),
            "providers.itunes.max_results": Setting("Max Results", int, 3, "Providers", "Candidates per search"),

            "providers.deezer.enabled": Setting("Deezer", bool, True, "Providers", "Enable Deezer"),
            "providers.deezer.priority": Setting("Deezer Priority", int, 2, "Providers", "Search priority (lower = first)", min_val=1, max_val=10),
            "providers.deezer.timeout": Setting("Timeout", int, 10, "Providers", "HTTP timeout (s)"),
            "providers.deezer.max_results": Setting("Max Results", int, 3, "Providers", "Candidates per search"),

            "providers.musicbrainz.enabled": Setting("MusicBrainz", bool, True, "Providers", "Enable MusicBrainz / Cover Art Archive"),
            "providers.musicbrainz.priority": Setting("MusicBrainz Priority", int, 3, "Providers", "Search priority (lower = first)", min_val=1, max_val=10),
            "providers.musicbrainz.timeout": Setting("Timeout", int, 10, "Providers", "HTTP timeout (s)"),
            "providers.musicbrainz.max_results": Setting("Max Results", int, 2, "Providers", "Candidates per search"),

            "providers.lastfm.enabled": Setting("Last.fm", bool, True, "Providers", "Enable Last.fm (needs LASTFM_API_KEY)"),
            "providers.lastfm.priority": Setting("Last.fm Priority", int, 4, "Providers", "Search priority (lower = first)", min_val=1, max_val=10),
            "providers.lastfm.timeout": Setting("Timeout", int, 10, "Providers", "HTTP timeout (s)"),
            "providers.lastfm.max_results": Setting("Max Results", int, 1, "Providers", "Candidates per search"),
        }

        self.load_settings()

    def load_settings(self) -> None:
        """Load settings from JSON, fall back to defaults"""
        self._settings = {}

        for key, definition in self._definitions.items():
            self._settings[key] = definition.default

        if not self.settings_file.exists():
            logger.debug(f"No settings file at {self.settings_file}, using defaults")
            return

        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                saved = json.load(f)
            for key, val in saved.items():
                if key in self._definitions:
                    self._settings[key] = self._definitions[key].validate_and_convert(val)
                else:
                    # Unknown keys are kept as-is
                    self._settings[key] = val
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"Failed to load {self.settings_file.name}: {e} - resetting to defaults")
            backup_path = self.settings_file.with_suffix('.json.corrupted')
            try:
                shutil.copy2(self.settings_file, backup_path)
                logger.info(f"Backed up corrupted settings to {backup_path}")
            except OSError as backup_err:
                logger.warning(f"Could not back up corrupted settings: {backup_err}")
            self._settings = {key: d.default for key, d in self._definitions.items()}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.
        Priority:
        1. Loaded value (from JSON or Schema Default)
        2. Schema Default (if key in definitions but not in settings dict yet)
        3. Provided 'default' argument (if key unknown)
        """
        if key in self._settings:
            return self._settings[key]

        if key in self._definitions:
            return self._definitions[key].default

        return default

    def set(self, key: str, value: Any) -> bool:
        """Set a known setting; returns False for unknown keys."""
        if key not in self._definitions:
            return False
        self._settings[key] = self._definitions[key].validate_and_convert(value)
        return True

    def save_to_config(self) -> None:
        """Save current memory settings to JSON file"""
        temp_path = self.settings_file.parent / f"settings_{uuid.uuid4().hex}.json.tmp"
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(self._settings, f, indent=4, sort_keys=True)
            # Atomic replace (works on both Windows and Unix)
            os.replace(temp_path, self.settings_file)
        except OSError as e:
            logger.error(f"Failed to save settings: {e}")
            if temp_path.exists():
                temp_path.unlink()

    def get_all(self) -> Dict:
        """Return settings grouped by category"""
        result = {}
        for key, val in self._settings.items():
            defin = self._definitions.get(key)
            if not defin:
                continue

            cat = defin.category or "Misc"
            result.setdefault(cat, {})[key] = {
                "value": val,
                "name": defin.name,
                "description": defin.description,
                "type": defin.type.__name__,
                "min": defin.min_val,
                "max": defin.max_val,
            }
        return result

    def reset_to_defaults(self):
        if self.settings_file.exists():
            os.remove(self.settings_file)
        self.load_settings()


settings = SettingsManager()
