"""
System Utils Package - filesystem and tag adapters for the cover engine

    helpers.py  - Pure utility functions
    image.py    - Image decoding/encoding
    tags.py     - Embedded artwork read/write (mutagen)
    library.py  - Audio file scanning
"""

# --- Level 0: Pure helpers (no package imports) ---
from .helpers import (
    clean_search_term,
    create_search_string,
    normalize_key,
    remove_text_inside_parentheses_and_brackets,
)

# --- Level 1: Image I/O ---
from .image import (
    decode_image,
    encode_image,
    get_image_extension,
    get_mime_type,
)

# --- Level 2: Tags and library ---
from .tags import MutagenTagStore, SUPPORTED_EXTENSIONS
from .library import iter_audio_files, read_track, scan_tracks

__all__ = [
    'MutagenTagStore',
    'SUPPORTED_EXTENSIONS',
    'clean_search_term',
    'create_search_string',
    'decode_image',
    'encode_image',
    'get_image_extension',
    'get_mime_type',
    'iter_audio_files',
    'normalize_key',
    'read_track',
    'remove_text_inside_parentheses_and_brackets',
    'scan_tracks',
]
