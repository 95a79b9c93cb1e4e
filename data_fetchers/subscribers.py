# data_fetchers/subscribers.py
# --------------------------------------------
# Fetches subscriber counts for every lottery in the table.
# Design goals:
#  - Bounded load on the Dira API: lotteries are fetched in chunks of 10,
#    one chunk at a time, the chunk's requests running concurrently.
#  - Testable offline: the per-lottery fetcher and the HTTP client are
#    injectable.
#  - Failure policy is explicit: "raise" (default) or "skip".
# --------------------------------------------

from __future__ import annotations

import asyncio
import logging
import warnings
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import httpx

from providers.dira_api import (
    DEFAULT_TIMEOUT,
    RemoteDataError,
    SubscriberCounts,
    fetch_subscribers,
)

logger = logging.getLogger(__name__)

BATCH_SIZE = 10
ON_ERROR_RAISE = "raise"
ON_ERROR_SKIP = "skip"

# SubscriberMap entry, keyed by the LotteryNumber exactly as given:
#   {"1943": {"_registrants": 3526, "_localRegistrants": 438}}
SubscriberEntry = Dict[str, int]
Fetcher = Callable[..., Awaitable[SubscriberCounts]]


class KeyCollisionWarning(UserWarning):
    """The same lottery number appeared more than once; the last one wins."""


def chunked(items: Iterable[Any], size: int = BATCH_SIZE) -> Iterator[List[Any]]:
    """Yield consecutive lists of `size` items; the last may be shorter."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    chunk: List[Any] = []
    for item in items:
        chunk.append(item)
        if len(chunk) == size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk


def _to_entry(counts: SubscriberCounts) -> SubscriberEntry:
    return {
        "_registrants": counts.total_subscribers,
        "_localRegistrants": counts.total_local_subscribers,
    }


async def _fetch_chunk(
    pairs: Sequence[Tuple[Any, Any]],
    fetcher: Fetcher,
    on_error: str,
) -> List[Tuple[Any, Optional[SubscriberEntry]]]:
    """
    Run one chunk concurrently. In "raise" mode the first failure cancels the
    siblings still in flight and propagates. In "skip" mode failed lotteries
    come back with None.
    """
    async def one(project, lottery):
        counts = await fetcher(project, lottery)
        return lottery, _to_entry(counts)

    tasks = [asyncio.ensure_future(one(project, lottery)) for project, lottery in pairs]

    if on_error == ON_ERROR_SKIP:
        results = await asyncio.gather(*tasks, return_exceptions=True)
        out: List[Tuple[Any, Optional[SubscriberEntry]]] = []
        for (project, lottery), result in zip(pairs, results):
            if isinstance(result, RemoteDataError):
                logger.warning("subscribers.skip project=%s lottery=%s err=%s",
                               project, lottery, result.reason)
                out.append((lottery, None))
            elif isinstance(result, BaseException):
                raise result
            else:
                out.append(result)
        return out

    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def fetch_all_subscribers(
    data: Sequence[Mapping[str, Any]],
    *,
    fetcher: Optional[Fetcher] = None,
    client: Optional[httpx.AsyncClient] = None,
    url: Optional[str] = None,
    batch_size: int = BATCH_SIZE,
    on_error: str = ON_ERROR_RAISE,
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[Any, SubscriberEntry]:
    """
    Fetch subscriber counts for every row (needs ProjectNumber/LotteryNumber)
    and return {LotteryNumber: {"_registrants", "_localRegistrants"}}.

    Chunks run strictly one after another; a chunk's fetches run together.
    With on_error="raise" the first RemoteDataError aborts the whole run.
    A lottery number listed twice triggers KeyCollisionWarning up front;
    the last successful result for it is kept.

    `timeout` only applies to the client opened here. It is ignored when a
    `client` or `fetcher` is passed in; configure that one yourself.
    """
    if on_error not in (ON_ERROR_RAISE, ON_ERROR_SKIP):
        raise ValueError(f"Unknown on_error policy: {on_error!r}")

    pairs = [(row["ProjectNumber"], row["LotteryNumber"]) for row in data]
    if not pairs:
        return {}

    if fetcher is None and client is None:
        async with httpx.AsyncClient(timeout=timeout) as own_client:
            return await fetch_all_subscribers(
                data, client=own_client, url=url,
                batch_size=batch_size, on_error=on_error)

    seen = set()
    for _, lottery in pairs:
        if lottery in seen:
            logger.warning("subscribers.duplicate lottery=%s", lottery)
            warnings.warn(
                f"Lottery {lottery} appears more than once; keeping the last result",
                KeyCollisionWarning, stacklevel=2)
        seen.add(lottery)

    if fetcher is None:
        async def fetcher(project, lottery):
            return await fetch_subscribers(project, lottery, client=client, url=url)

    result: Dict[Any, SubscriberEntry] = {}
    for index, chunk in enumerate(chunked(pairs, batch_size)):
        logger.debug("subscribers.chunk index=%d size=%d", index, len(chunk))
        for lottery, entry in await _fetch_chunk(chunk, fetcher, on_error):
            if entry is not None:
                result[lottery] = entry

    logger.info("subscribers.done lotteries=%d fetched=%d", len(pairs), len(result))
    return result


def merge_subscribers(rows: Sequence[Mapping[str, Any]],
                      subscribers: Mapping[Any, SubscriberEntry]) -> List[Dict[str, Any]]:
    """
    Return copies of the display rows with _registrants/_localRegistrants
    added where the lottery has counts. Matching is on the raw LotteryNumber.
    """
    merged: List[Dict[str, Any]] = []
    for row in rows:
        entry = subscribers.get(row.get("LotteryNumber"))
        merged.append({**row, **entry} if entry else dict(row))
    return merged
