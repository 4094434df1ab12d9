"""Directory emulation over paginated prefix listings.

An object store can only list flat keys under a prefix, a page at a time.
Every bulk directory operation (delete, copy, move, list) is expressed as a
per-page action applied to the lazy page sequence produced by ``iter_pages``.
Pages are fetched sequentially: the action for one page completes before the
next page is requested, and no page is fetched twice.
"""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Tuple

from filestore.core.logger import logger


@dataclass(frozen=True)
class ListPage:
    keys: Tuple[str, ...] = field(default_factory=tuple)
    next_cursor: Optional[str] = None
    is_truncated: bool = False


# (prefix, cursor) -> page; cursor is None for the first request
PageFetcher = Callable[[str, Optional[str]], Awaitable[ListPage]]

# Returning False stops the loop; any other value continues it.
PageAction = Callable[[ListPage], Awaitable[Optional[bool]]]


async def iter_pages(fetch_page: PageFetcher, prefix: str) -> AsyncIterator[ListPage]:
    """Yield the pages of keys under ``prefix`` until the listing is exhausted."""
    cursor: Optional[str] = None
    while True:
        # cancellation checkpoint before each backend call
        await asyncio.sleep(0)
        page = await fetch_page(prefix, cursor)
        if not page.keys:
            return
        yield page
        if not page.is_truncated or page.next_cursor is None:
            return
        cursor = page.next_cursor


async def for_each_page(pages: AsyncIterator[ListPage], action: PageAction) -> int:
    """Run ``action`` once per page, in listing order. Returns the number of pages processed.

    The page generator is closed as soon as the action asks to stop, so no
    further listing call is made.
    """
    processed = 0
    async with aclosing(pages) as stream:
        async for page in stream:
            processed += 1
            if await action(page) is False:
                logger.debug("Pagination stopped by action after %d page(s)", processed)
                break
    return processed


async def collect_keys(pages: AsyncIterator[ListPage]) -> List[str]:
    keys: List[str] = []

    async def _gather(page: ListPage) -> bool:
        keys.extend(page.keys)
        return True

    await for_each_page(pages, _gather)
    return keys
