"""
Cover providers.

Each provider reads its settings from config.PROVIDERS under its lowercase name.
"""
from typing import Iterable, List, Optional

from logging_config import get_logger

from .base import CoverProvider
from .deezer import DeezerProvider
from .itunes import ITunesProvider
from .lastfm import LastFMProvider
from .musicbrainz import MusicBrainzProvider

logger = get_logger(__name__)

# Config key -> provider class
available_providers = {
    "itunes": ITunesProvider,
    "deezer": DeezerProvider,
    "musicbrainz": MusicBrainzProvider,
    "lastfm": LastFMProvider,
}


def build_providers(names: Optional[Iterable[str]] = None) -> List[CoverProvider]:
    """
    Instantiate providers.

    Args:
        names: Config keys to build (e.g. SearchConfig.enabled_providers).
            None builds every known provider.

    Returns:
        Provider instances sorted by priority
    """
    selected = list(available_providers) if names is None else list(names)
    providers = []
    for name in selected:
        cls = available_providers.get(name.lower())
        if cls is None:
            logger.warning(f"Unknown provider '{name}', ignoring")
            continue
        providers.append(cls())
    return sorted(providers, key=lambda p: p.priority)


__all__ = [
    'CoverProvider',
    'DeezerProvider',
    'ITunesProvider',
    'LastFMProvider',
    'MusicBrainzProvider',
    'available_providers',
    'build_providers',
]
