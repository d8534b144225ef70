"""
CoverSync Configuration Loader
Loads values from settings.json via the settings manager.
"""
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from settings import settings
from cover_search.models import SearchConfig

# ==========================================
# Path Configuration
# ==========================================
if getattr(sys, 'frozen', False):
    ROOT_DIR = Path(sys.executable).parent
else:
    ROOT_DIR = Path(__file__).parent

# ==========================================
# Version
# ==========================================
VERSION = "1.0.0"

# Only load .env if it exists (LASTFM_API_KEY lives there)
env_file = ROOT_DIR / '.env'
if env_file.exists():
    load_dotenv(env_file)


# Helper to prefer Env Var > Settings JSON > Default
def conf(key, default=None):
    # 1. Env var, e.g. general.overwrite_cover -> GENERAL_OVERWRITE_COVER
    env_val = os.getenv(key.upper().replace('.', '_'))
    if env_val is not None:
        return env_val

    # 2. Settings JSON
    json_val = settings.get(key)
    if json_val is not None:
        return json_val

    # 3. Default
    return default


def as_bool(value: Any) -> bool:
    """Env vars arrive as strings; settings.json values are already typed."""
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'on')
    return bool(value)


# ==========================================
# EXPORTED CONFIG DICTS
# ==========================================

DEBUG = {
    "log_file": conf("debug.log_file", "coversync.log"),
    "log_level": conf("debug.log_level", "INFO"),
    "log_providers": as_bool(conf("debug.log_providers", True)),
    "log_to_console": as_bool(conf("debug.log_to_console", True)),
    "log_rotation": {
        "max_bytes": int(conf("debug.log_rotation.max_bytes", 1048576)),
        "backup_count": int(conf("debug.log_rotation.backup_count", 10))
    }
}

GENERAL = {
    "overwrite_cover": as_bool(conf("general.overwrite_cover", False)),
    "overwrite_only_higher": as_bool(conf("general.overwrite_only_higher", True)),
    "manual_image_selection": as_bool(conf("general.manual_image_selection", False)),
    "auto_last_audio": as_bool(conf("general.auto_last_audio", True)),
}

SEARCH = {
    "timeout": int(conf("search.timeout", 10)),
    "max_cover_size": int(conf("cover.max_size", 1000)),
}

USER_AGENT = f"CoverSync/{VERSION} ( https://github.com/coversync/coversync )"

PROVIDERS = {
    "itunes": {
        "enabled": as_bool(conf("providers.itunes.enabled", True)),
        "priority": int(conf("providers.itunes.priority", 1)),
        "base_url": "https://itunes.apple.com/search",
        "timeout": int(conf("providers.itunes.timeout", 10)),
        "max_results": int(conf("providers.itunes.max_results", 3)),
    },
    "deezer": {
        "enabled": as_bool(conf("providers.deezer.enabled", True)),
        "priority": int(conf("providers.deezer.priority", 2)),
        "base_url": "https://api.deezer.com/search/album",
        "timeout": int(conf("providers.deezer.timeout", 10)),
        "max_results": int(conf("providers.deezer.max_results", 3)),
    },
    "musicbrainz": {
        "enabled": as_bool(conf("providers.musicbrainz.enabled", True)),
        "priority": int(conf("providers.musicbrainz.priority", 3)),
        "base_url": "https://musicbrainz.org/ws/2",
        "cover_art_url": "https://coverartarchive.org",
        "timeout": int(conf("providers.musicbrainz.timeout", 10)),
        "max_results": int(conf("providers.musicbrainz.max_results", 2)),
    },
    "lastfm": {
        "enabled": as_bool(conf("providers.lastfm.enabled", True)),
        "priority": int(conf("providers.lastfm.priority", 4)),
        "base_url": "https://ws.audioscrobbler.com/2.0/",
        "timeout": int(conf("providers.lastfm.timeout", 10)),
        "max_results": int(conf("providers.lastfm.max_results", 1)),
    },
}


# Helper functions
def get_provider_config(name: str) -> dict:
    return PROVIDERS.get(name, {"enabled": False, "priority": 100})


def is_provider_enabled(name: str) -> bool:
    return PROVIDERS.get(name, {}).get("enabled", False)


def get_provider_priority(name: str) -> int:
    return PROVIDERS.get(name, {}).get("priority", 100)


def get_search_config(**overrides) -> SearchConfig:
    """
    Build the engine configuration from the exported dicts.

    Args:
        **overrides: SearchConfig fields to replace (e.g. from CLI flags);
            None values are ignored

    Returns:
        Immutable SearchConfig
    """
    enabled = sorted(
        (name for name in PROVIDERS if is_provider_enabled(name)),
        key=get_provider_priority
    )
    values = {
        "overwrite_cover": GENERAL["overwrite_cover"],
        "overwrite_only_higher": GENERAL["overwrite_only_higher"],
        "manual_image_selection": GENERAL["manual_image_selection"],
        "auto_reuse_last_cover": GENERAL["auto_last_audio"],
        "search_timeout": SEARCH["timeout"],
        "max_cover_size": SEARCH["max_cover_size"],
        "enabled_providers": tuple(enabled),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return SearchConfig(**values)
