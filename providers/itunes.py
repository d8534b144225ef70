"""
iTunes/Apple Music cover provider.

Free, no authentication, rate limited to roughly 20 requests/minute per IP.
Artwork URLs are upgraded with the Ben Dodson method: replacing the size
segment with 9999x9999 returns the original upload (often 3000-5000px).
"""
import re
from typing import List, Optional

from cover_search.models import CandidateImage, Track
from logging_config import get_logger
from system_utils.helpers import normalize_key

from .base import CoverProvider

logger = get_logger(__name__)

SIZE_SEGMENT = re.compile(r"/(\d+)x(\d+)(bb)?\.(jpg|png|webp)$")


def enhance_artwork_url(url: str) -> str:
    """'.../100x100bb.jpg' -> '.../9999x9999bb.jpg'"""
    if not url:
        return url
    return SIZE_SEGMENT.sub(lambda m: f"/9999x9999{m.group(3) or ''}.{m.group(4)}", url)


class ITunesProvider(CoverProvider):
    def __init__(self):
        super().__init__("iTunes")

    def _rank(self, results: list, artist: str, album: str) -> list:
        """Exact album matches first, then partial, then the rest; stable within each group."""
        target_album = normalize_key(album)
        target_artist = normalize_key(artist)

        def score(item: dict) -> int:
            value = 0
            found_album = normalize_key(item.get("collectionName", ""))
            found_artist = normalize_key(item.get("artistName", ""))
            if target_album and found_album == target_album:
                value += 50
            elif target_album and found_album and (target_album in found_album or found_album in target_album):
                value += 30
            if target_artist and found_artist == target_artist:
                value += 20
            return value

        return sorted(results, key=score, reverse=True)

    def search(self, track: Track) -> List[CandidateImage]:
        terms = self._search_terms(track)
        if terms is None:
            return []

        params = {
            "term": f"{terms['artist']} {terms['album']}".strip(),
            "media": "music",
            "entity": "album",
            "limit": 10,
        }
        data = self._get_json(self.base_url, params=params)
        results = data.get("results") or []
        if not results:
            logger.debug(f"iTunes: no results for '{params['term']}'")
            return []

        urls = []
        for item in self._rank(results, terms["artist"], terms["album"]):
            artwork_url: Optional[str] = item.get("artworkUrl100") or item.get("artworkUrl60")
            if artwork_url:
                url = enhance_artwork_url(artwork_url)
                if url not in urls:
                    urls.append(url)

        candidates = self._download_all(urls)
        logger.info(f"iTunes: {len(candidates)} cover(s) for '{params['term']}'")
        return candidates
