"""
Cover Search Package - the orchestration engine

    models.py       - Track, CandidateImage, SearchConfig, enums
    errors.py       - ProviderTimeout, ProviderError, NotWritable
    interfaces.py   - CoverSource, TagStore, ImagePicker
    observer.py     - Event sink
    policy.py       - Resize and overwrite rules
    cache.py        - Last-result cache
    coordinators.py - Race (first result) and aggregate searches
    resolver.py     - Per-track decision
    pipeline.py     - Sequential background stage runner
    orchestrator.py - Batch runs
"""

from .cache import LastCoverCache
from .coordinators import order_providers, search_all, search_first
from .errors import CoverSearchError, NotWritable, ProviderError, ProviderTimeout
from .interfaces import CoverSource, ImagePicker, TagStore
from .models import (
    BatchState,
    CacheEntry,
    CandidateImage,
    CoverOutcome,
    RunStatus,
    SearchConfig,
    SearchMode,
    Track,
)
from .observer import LoggingObserver, SearchObserver
from .orchestrator import BatchOrchestrator, BatchRun
from .pipeline import AsyncPipeline
from .policy import resize_if_needed, should_overwrite
from .resolver import CoverResolver

__all__ = [
    'AsyncPipeline',
    'BatchOrchestrator',
    'BatchRun',
    'BatchState',
    'CacheEntry',
    'CandidateImage',
    'CoverOutcome',
    'CoverResolver',
    'CoverSearchError',
    'CoverSource',
    'ImagePicker',
    'LastCoverCache',
    'LoggingObserver',
    'NotWritable',
    'ProviderError',
    'ProviderTimeout',
    'RunStatus',
    'SearchConfig',
    'SearchMode',
    'SearchObserver',
    'TagStore',
    'Track',
    'order_providers',
    'resize_if_needed',
    'search_all',
    'search_first',
    'should_overwrite',
]
