"""
Resolution policy: when to downscale a cover and when to replace an existing one.
"""
from __future__ import annotations

from typing import Optional

from PIL import Image

from .models import CandidateImage


def resize_if_needed(image: CandidateImage, max_dim: int) -> CandidateImage:
    """
    Downscale an image so that both sides fit within max_dim.

    The aspect ratio is preserved and images already within bounds are
    returned unchanged, so applying this twice equals applying it once.

    Args:
        image: Candidate to check
        max_dim: Largest allowed width/height in pixels

    Returns:
        The same candidate, or a copy carrying the scaled bitmap
    """
    if max_dim <= 0:
        return image
    if image.width <= max_dim and image.height <= max_dim:
        return image

    scale = min(max_dim / image.width, max_dim / image.height)
    new_size = (
        max(1, min(max_dim, round(image.width * scale))),
        max(1, min(max_dim, round(image.height * scale))),
    )
    resized = image.image.resize(new_size, Image.Resampling.LANCZOS)
    return image.with_image(resized)


def is_new_resolution_higher(existing: CandidateImage, candidate: CandidateImage) -> bool:
    # Strict: an equal pixel count is not an upgrade
    return candidate.area > existing.area


def should_overwrite(
    existing: Optional[CandidateImage],
    candidate: CandidateImage,
    overwrite_only_higher: bool,
    overwrite_cover: bool = True
) -> bool:
    """
    Decide whether candidate may replace the track's current cover.

    Args:
        existing: Cover currently embedded in the file, None if there is none
        candidate: Cover about to be written
        overwrite_only_higher: Only replace with a strictly larger image
        overwrite_cover: Global overwrite switch

    Returns:
        True if the candidate should be written
    """
    if existing is None:
        return True
    if overwrite_only_higher:
        return is_new_resolution_higher(existing, candidate)
    return overwrite_cover
