"""
Paginated retrieval of contiguous block ranges.

The node serves at most 50 blocks per ``/blocks`` request, so a range is
split into pages. Pages can be in flight concurrently (bounded by
``max_concurrency``) but are always handed back in ascending height order.
"""
import asyncio
from collections import deque
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from aleolib import config
from aleolib.core.records import HeightRange
from aleolib.errors import FetchError, RefetchError

PageFetcher = Callable[[int, int], Awaitable[List[Dict]]]


def block_height(block: Dict) -> Optional[int]:
    try:
        height = block["header"]["metadata"]["height"]
    except (KeyError, TypeError):
        return None
    if isinstance(height, bool) or not isinstance(height, int):
        return None
    return height


class BlockRangeFetcher:
    """Fetches blocks page by page; each height is requested at most once per instance"""

    def __init__(self, fetch_page: PageFetcher, page_size: Optional[int] = None, max_concurrency: Optional[int] = None):
        self._fetch_page = fetch_page
        self.page_size = min(page_size or config.block_page_size(), config.MAX_BLOCK_PAGE_SIZE)
        self.max_concurrency = max(1, max_concurrency or config.max_concurrency())
        self._fetched: Set[int] = set()
        self.requests_made = 0

    @property
    def heights_fetched(self) -> int:
        return len(self._fetched)

    async def fetch_range(self, start: int, end: int) -> List[Dict]:
        """All blocks in ``[start, end)`` in ascending height order."""
        height_range = HeightRange.validated(start, end)
        blocks: List[Dict] = []
        async for _, page_blocks in self.iter_pages(height_range):
            blocks.extend(page_blocks)
        return blocks

    async def iter_pages(self, height_range: HeightRange) -> AsyncIterator[Tuple[HeightRange, List[Dict]]]:
        pages = height_range.pages(self.page_size)
        pending = deque()
        index = 0
        try:
            while index < len(pages) or pending:
                while index < len(pages) and len(pending) < self.max_concurrency:
                    page = pages[index]
                    pending.append((page, asyncio.ensure_future(self._request_page(page))))
                    index += 1
                page, task = pending.popleft()
                blocks = await task
                yield page, blocks
        finally:
            for _, task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*(task for _, task in pending), return_exceptions=True)

    async def _request_page(self, page: HeightRange) -> List[Dict]:
        overlap = [height for height in page if height in self._fetched]
        if overlap:
            raise RefetchError(f"Heights {overlap[0]}..{overlap[-1]} were already fetched")
        self._fetched.update(page)
        self.requests_made += 1

        message = f"Error fetching blocks between {page.start} and {page.end}."
        try:
            blocks = await self._fetch_page(page.start, page.end)
        except FetchError as e:
            raise e.with_message(message, start=page.start, end=page.end) from e

        if not isinstance(blocks, list):
            raise FetchError(message + " Response is not a list.", start=page.start, end=page.end)
        if len(blocks) != len(page):
            raise FetchError(
                message + f" Expected {len(page)} blocks, got {len(blocks)}.",
                start=page.start,
                end=page.end,
            )
        for expected, block in zip(page, blocks):
            height = block_height(block) if isinstance(block, dict) else None
            if height != expected:
                raise FetchError(
                    message + f" Expected height {expected}, got {height}.",
                    start=page.start,
                    end=page.end,
                )
        return blocks
