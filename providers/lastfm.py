"""
Last.fm cover provider.

Requires LASTFM_API_KEY (from env only, never from settings.json). Without
a key the provider returns no candidates.
"""
import os
import re
from typing import List, Optional

from cover_search.models import CandidateImage, Track
from logging_config import get_logger

from .base import CoverProvider

logger = get_logger(__name__)

SIZE_ORDER = {"small": 1, "medium": 2, "large": 3, "extralarge": 4, "mega": 5}


def strip_size_segment(url: str) -> str:
    """
    Remove the size segment so Last.fm serves the original upload.

    '.../i/u/300x300/hash.jpg' -> '.../i/u/hash.jpg'
    """
    modified = re.sub(r'/\d+x?\d*s/', '/', url)
    modified = re.sub(r'/\d+x\d+/', '/', modified)
    # Collapse double slashes but keep '://'
    return re.sub(r'(?<!:)/+', '/', modified)


class LastFMProvider(CoverProvider):
    def __init__(self):
        super().__init__("LastFM")
        self.api_key = os.getenv("LASTFM_API_KEY")
        if self.enabled and not self.api_key:
            logger.info("Last.fm API key missing (set LASTFM_API_KEY in .env), provider will return nothing")

    def _largest_image(self, images: list) -> Optional[str]:
        best_url, best_rank = None, 0
        for img in images:
            if not isinstance(img, dict):
                continue
            url = img.get("#text", "")
            rank = SIZE_ORDER.get(img.get("size", "").lower(), 0)
            if url and rank >= best_rank:
                best_url, best_rank = url, rank
        return best_url

    def search(self, track: Track) -> List[CandidateImage]:
        if not self.api_key:
            return []
        terms = self._search_terms(track)
        if terms is None or not terms["artist"] or not terms["album"]:
            return []

        params = {
            "method": "album.getInfo",
            "api_key": self.api_key,
            "artist": terms["artist"],
            "album": terms["album"],
            "autocorrect": 1,
            "format": "json",
        }
        data = self._get_json(self.base_url, params=params)

        if "error" in data:
            # Error 6 is "album not found", anything else is a real failure
            if data.get("error") == 6:
                return []
            raise RuntimeError(f"Last.fm API error {data.get('error')}: {data.get('message', 'Unknown error')}")

        url = self._largest_image((data.get("album") or {}).get("image") or [])
        if not url:
            return []

        urls = [strip_size_segment(url)]
        if urls[0] != url:
            # Fall back to the sized variant if the original is unavailable
            urls.append(url)

        for candidate_url in urls:
            candidate = self._download(candidate_url)
            if candidate is not None:
                logger.info(f"Last.fm: found {candidate.width}x{candidate.height} cover for {terms['artist']} - {terms['album']}")
                return [candidate]
        return []
