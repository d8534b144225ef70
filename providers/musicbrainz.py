"""
MusicBrainz / Cover Art Archive provider.

Two-step process:
1. Search MusicBrainz for release MBIDs
2. Fetch the front cover of each release from the Cover Art Archive

MusicBrainz requires a descriptive User-Agent and allows about one
request per second.
"""
from typing import List

from config import get_provider_config
from cover_search.models import CandidateImage, Track
from logging_config import get_logger

from .base import CoverProvider

logger = get_logger(__name__)

# front-1200 is the largest pre-rendered thumbnail the archive serves
ARTWORK_SIZE = "1200"


def _escape_lucene(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class MusicBrainzProvider(CoverProvider):
    def __init__(self):
        super().__init__("MusicBrainz")
        self.cover_art_url = get_provider_config("musicbrainz").get(
            "cover_art_url", "https://coverartarchive.org"
        )

    def _search_releases(self, artist: str, album: str) -> List[str]:
        clauses = []
        if artist:
            clauses.append(f'artist:"{_escape_lucene(artist)}"')
        if album:
            clauses.append(f'release:"{_escape_lucene(album)}"')
        params = {
            "query": " AND ".join(clauses),
            "fmt": "json",
            "limit": max(self.max_results * 2, 5),
        }
        data = self._get_json(f"{self.base_url}/release/", params=params)
        mbids = [release["id"] for release in data.get("releases") or [] if release.get("id")]
        logger.debug(f"MusicBrainz: {len(mbids)} release(s) for {params['query']}")
        return mbids

    def search(self, track: Track) -> List[CandidateImage]:
        terms = self._search_terms(track)
        if terms is None or not terms["album"]:
            # Release search without an album name matches far too much
            return []

        mbids = self._search_releases(terms["artist"], terms["album"])
        candidates = []
        for mbid in mbids:
            if len(candidates) >= self.max_results:
                break
            # Releases without artwork answer 404 here; _download skips them
            candidate = self._download(f"{self.cover_art_url}/release/{mbid}/front-{ARTWORK_SIZE}")
            if candidate is not None:
                candidates.append(candidate)

        logger.info(f"MusicBrainz: {len(candidates)} cover(s) for {terms['artist']} - {terms['album']}")
        return candidates
