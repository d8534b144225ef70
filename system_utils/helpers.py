"""
Helper functions for system_utils package.
Pure utility functions with no package dependencies.
"""
from __future__ import annotations

import re
from pathlib import Path


def remove_text_inside_parentheses_and_brackets(text: str) -> str:
    """Remove text inside parentheses () and brackets []."""
    return re.sub(r"\([^)]*\)|\[[^\]]*\]", '', text)


def clean_search_term(text: str) -> str:
    """Strip bracketed suffixes like '(Remastered)' or '[Deluxe]' and collapse whitespace."""
    if not text:
        return ""
    return " ".join(remove_text_inside_parentheses_and_brackets(text).split())


def normalize_key(text: str) -> str:
    """Lowercase alphanumeric form used for loose name comparisons."""
    if not text:
        return ""
    return "".join(c for c in text.lower() if c.isalnum())


def create_search_string(track) -> str:
    """
    Human readable label for a track: 'Artist - Album'.

    Falls back to the title when the album tag is missing and to the file
    name when the track carries no usable tags at all.
    """
    artist = (track.artist or "").strip()
    subject = (track.album or "").strip() or (track.title or "").strip()

    if artist and subject:
        return f"{artist} - {subject}"
    if artist or subject:
        return artist or subject
    return Path(track.path).stem
