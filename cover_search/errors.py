"""
Error taxonomy for the cover search engine.

ProviderTimeout and ProviderError never leave the coordinators; NotWritable
is reported per track. Everything else is an unexpected fault and reaches the
pipeline's error handler. Cancellation is not an error: it surfaces as
RunStatus.CANCELLED.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class CoverSearchError(Exception):
    """Base class for all cover search errors."""


class ProviderTimeout(CoverSearchError):
    """A provider did not answer within the per-call timeout."""

    def __init__(self, provider: str, timeout: float):
        super().__init__(f"{provider} did not answer within {timeout}s")
        self.provider = provider
        self.timeout = timeout


class ProviderError(CoverSearchError):
    """A provider call failed (transport, HTTP status, bad payload, ...)."""

    def __init__(self, provider: str, cause: Optional[BaseException] = None):
        detail = f"{type(cause).__name__}: {cause}" if cause else "unknown error"
        super().__init__(f"{provider} failed - {detail}")
        self.provider = provider
        self.cause = cause


class NotWritable(CoverSearchError):
    """The cover could not be written to the track's file."""

    def __init__(self, path: Union[str, Path], reason: str = "file is not writable"):
        super().__init__(f"Cannot write cover to {path}: {reason}")
        self.path = Path(path)
        self.reason = reason
