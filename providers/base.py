"""
Base Provider Class
All cover providers must inherit from this base class.
"""

from abc import abstractmethod
from typing import Any, Dict, List, Optional

import requests

from config import USER_AGENT, get_provider_config
from cover_search.interfaces import CoverSource
from cover_search.models import CandidateImage, Track
from logging_config import get_logger
from system_utils.helpers import clean_search_term
from system_utils.image import decode_image

logger = get_logger(__name__)


class CoverProvider(CoverSource):
    """Base class for all cover providers."""

    def __init__(self, provider_name: str):
        """
        Initialize the provider using configuration from config.py

        Args:
            provider_name (str): Name of the provider (must match config key)
        """
        config = get_provider_config(provider_name.lower())

        self.name = provider_name
        self.priority = config.get('priority', 100)
        self.enabled = config.get('enabled', True)
        self.timeout = config.get('timeout', 10)
        self.max_results = max(1, int(config.get('max_results', 1)))
        self.base_url = config.get('base_url', '')

        self.session = requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})

        if self.enabled:
            logger.info(f"Initialized {self.name} provider (priority: {self.priority})")
        else:
            logger.info(f"{self.name} provider is disabled")

    @abstractmethod
    def search(self, track: Track) -> List[CandidateImage]:
        """
        Search covers for the track's album.

        Request failures propagate; the coordinators turn them into
        ProviderError. A single image that fails to download is skipped.

        Args:
            track: Track whose album cover is wanted

        Returns:
            List[CandidateImage]: Best match first, at most max_results
        """

    def _search_terms(self, track: Track) -> Optional[Dict[str, str]]:
        """Cleaned artist/album used for querying, None if there is nothing to search for."""
        artist = clean_search_term(track.artist)
        album = clean_search_term(track.album)
        if not artist and not album:
            logger.debug(f"{self.name}: no artist/album tags on {track.name}, skipping")
            return None
        return {"artist": artist, "album": album}

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _download(self, url: str) -> Optional[CandidateImage]:
        """
        Download and decode one image.

        Returns:
            CandidateImage or None if the download or decoding failed
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.debug(f"{self.name}: failed to download {url}: {e}")
            return None
        return decode_image(response.content, source=self.name, url=url)

    def _download_all(self, urls: List[str]) -> List[CandidateImage]:
        candidates = []
        for url in urls[:self.max_results]:
            candidate = self._download(url)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def __str__(self) -> str:
        """String representation of the provider"""
        status = "enabled" if self.enabled else "disabled"
        return f"{self.name} Provider (Priority: {self.priority}, Status: {status})"

    def __repr__(self) -> str:
        """Detailed representation of the provider"""
        return f"<{self.__class__.__name__} name='{self.name}' priority={self.priority} enabled={self.enabled}>"
