"""InMemoryFeedStore: Dict-backed FeedStore for local runs and tests."""

from __future__ import annotations

import logging
from dataclasses import replace
from uuid import uuid4

from .errors import StoreError
from .FeedStore import Feed, FeedStore, ResultRequest

logger = logging.getLogger(__name__)


class InMemoryFeedStore(FeedStore):
    """FeedStore implementation keeping everything in process memory.

    Returned records are copies; mutating them never changes stored rows.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._feeds: dict[str, Feed] = {}
        self._results: dict[str, list[ResultRequest]] = {}

    async def get_feed(self, feed_full_name: str) -> Feed | None:
        feed = self._feeds.get(feed_full_name)
        return replace(feed) if feed else None

    async def insert_feed(self, feed: Feed) -> Feed:
        if feed.feed_full_name in self._feeds:
            raise StoreError("insert_feed", f"feed {feed.feed_full_name} already exists")
        stored = replace(feed, id=uuid4().hex)
        self._feeds[stored.feed_full_name] = stored
        logger.debug(f"Stored feed {stored.feed_full_name} ({stored.id})")
        return replace(stored)

    async def update_feed(self, feed: Feed) -> Feed | None:
        current = self._feeds.get(feed.feed_full_name)
        if current is None:
            return None
        stored = replace(feed, id=current.id)
        self._feeds[stored.feed_full_name] = stored
        return replace(stored)

    async def get_last_result(self, feed_full_name: str) -> ResultRequest | None:
        results = self._results.get(feed_full_name)
        if not results:
            return None
        latest = max(results, key=lambda r: int(r.timestamp))
        return replace(latest)

    async def insert_result(self, result: ResultRequest) -> ResultRequest:
        stored = replace(result, id=uuid4().hex)
        self._results.setdefault(stored.feed_full_name, []).append(stored)
        return replace(stored)

    def list_feeds(
        self, page: int = 1, size: int = 10, network: str | None = None
    ) -> tuple[list[Feed], int]:
        """List feeds ordered by key, one page at a time.

        :param page: 1-based page number.
        :param size: Page size.
        :param network: Optional network filter.
        :returns: Tuple of (feeds on the page, total matching feeds).
        """
        feeds = sorted(
            (f for f in self._feeds.values() if network is None or f.network == network),
            key=lambda f: f.feed_full_name,
        )
        start = max(0, page - 1) * size
        return [replace(f) for f in feeds[start:start + size]], len(feeds)

    def get_results(self, feed_full_name: str) -> list[ResultRequest]:
        """Get all results of a feed, newest first."""
        results = self._results.get(feed_full_name, [])
        return [
            replace(r)
            for r in sorted(results, key=lambda r: int(r.timestamp), reverse=True)
        ]
