"""
Deezer cover provider.
Public album search API, no authentication. cover_xl is 1000x1000.
"""
from typing import List

from cover_search.models import CandidateImage, Track
from logging_config import get_logger

from .base import CoverProvider

logger = get_logger(__name__)

# Largest first
COVER_KEYS = ("cover_xl", "cover_big", "cover_medium")


class DeezerProvider(CoverProvider):
    def __init__(self):
        super().__init__("Deezer")

    def search(self, track: Track) -> List[CandidateImage]:
        terms = self._search_terms(track)
        if terms is None:
            return []

        # Deezer advanced search syntax: artist:"..." album:"..."
        parts = []
        if terms["artist"]:
            parts.append(f'artist:"{terms["artist"]}"')
        if terms["album"]:
            parts.append(f'album:"{terms["album"]}"')
        query = " ".join(parts)

        data = self._get_json(self.base_url, params={"q": query, "limit": 10})
        if isinstance(data, dict) and "error" in data:
            # Deezer reports quota and query errors with HTTP 200
            error = data["error"]
            raise RuntimeError(f"Deezer API error: {error.get('message', error) if isinstance(error, dict) else error}")

        urls = []
        for item in data.get("data") or []:
            url = next((item[key] for key in COVER_KEYS if item.get(key)), None)
            if url and url not in urls:
                urls.append(url)

        candidates = self._download_all(urls)
        logger.info(f"Deezer: {len(candidates)} cover(s) for {query}")
        return candidates
