"""
Provider coordination.

Two shapes only:
1. search_first: one provider at a time, in priority order, each call bounded
   by the timeout. The first non-empty result wins and later providers are
   never started.
2. search_all: every provider at once, each call bounded by the timeout,
   results concatenated in priority order.

Provider calls are blocking (requests), so every call gets a worker thread of
its own and the timeout only ever measures that call. A call that exceeds its
timeout is abandoned, not interrupted: its thread keeps running until the
HTTP client gives up, and its result is dropped.
"""
from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

from logging_config import get_logger

from .errors import ProviderError, ProviderTimeout
from .interfaces import CoverSource
from .models import CandidateImage, Track

logger = get_logger(__name__)


def order_providers(providers: Sequence[CoverSource]) -> List[CoverSource]:
    """Enabled providers sorted by priority (lower = first, stable)."""
    active = [p for p in providers if getattr(p, "enabled", True)]
    return sorted(active, key=lambda p: getattr(p, "priority", 100))


async def call_provider(provider: CoverSource, track: Track, timeout: float) -> List[CandidateImage]:
    """
    Run one provider search on a dedicated thread, bounded by timeout.

    Raises:
        ProviderTimeout: the call did not finish in time
        ProviderError: the call raised (including its own TimeoutError)
    """
    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"CoverSync_{provider.name}")
    future = loop.run_in_executor(executor, provider.search, track)
    # The submitted call still runs; the thread exits once it returns
    executor.shutdown(wait=False)

    done, _ = await asyncio.wait({future}, timeout=timeout)
    if not done:
        future.cancel()
        raise ProviderTimeout(provider.name, timeout)

    try:
        result = future.result()
    except Exception as e:
        raise ProviderError(provider.name, e) from e
    return list(result or [])


async def search_first(
    providers: Sequence[CoverSource],
    track: Track,
    timeout: float
) -> List[CandidateImage]:
    """
    Race mode: return the first non-empty provider result.

    Args:
        providers: Candidate providers (disabled ones are ignored)
        track: Track to search for
        timeout: Per-provider timeout in seconds

    Returns:
        Covers of the winning provider, or [] if nobody found anything
    """
    for provider in order_providers(providers):
        try:
            covers = await call_provider(provider, track, timeout)
        except ProviderTimeout:
            logger.error(f"{timeout} seconds timeout for search engine {provider.name}")
            continue
        except ProviderError as e:
            logger.error(str(e), exc_info=e.cause)
            continue

        if covers:
            logger.info(f"Found {len(covers)} cover(s) using {provider.name} for {track.name}")
            return covers
        logger.debug(f"{provider.name} found nothing for {track.name}")

    return []


async def search_all(
    providers: Sequence[CoverSource],
    track: Track,
    timeout: float
) -> List[CandidateImage]:
    """
    Aggregate mode: query every provider concurrently and merge the results.

    Order is deterministic: provider priority first, then each provider's own
    order. A provider that times out or fails contributes nothing.

    Args:
        providers: Candidate providers (disabled ones are ignored)
        track: Track to search for
        timeout: Per-provider timeout in seconds

    Returns:
        All covers found, possibly []
    """
    ordered = order_providers(providers)
    if not ordered:
        return []

    results = await asyncio.gather(
        *(call_provider(p, track, timeout) for p in ordered),
        return_exceptions=True
    )

    all_covers: List[CandidateImage] = []
    for provider, result in zip(ordered, results):
        if isinstance(result, ProviderTimeout):
            logger.error(f"{timeout} seconds timeout for search engine {provider.name}")
            continue
        if isinstance(result, ProviderError):
            logger.error(str(result), exc_info=result.cause)
            continue
        if isinstance(result, BaseException):
            raise result
        all_covers.extend(result)

    logger.info(f"Collected {len(all_covers)} cover(s) from {len(ordered)} provider(s) for {track.name}")
    return all_covers
