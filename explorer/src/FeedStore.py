"""FeedStore: Abstract persistence interface for feeds and results."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class Feed:
    """Persisted feed record.

    :ivar feed_full_name: Unique feed key.
    :ivar address: Currently resolved price-feed contract address.
    :ivar id: Store-assigned identifier (empty until inserted).
    """

    feed_full_name: str
    address: str
    name: str
    network: str
    label: str
    block_explorer: str
    id: str = ""


@dataclass
class ResultRequest:
    """Persisted settled data request.

    :ivar request_id: On-chain query identifier.
    :ivar dr_tx_hash: Data request transaction hash, hex without "0x".
    :ivar result: Reported price as a decimal string.
    :ivar timestamp: On-chain timestamp as a string-encoded integer.
    :ivar feed_full_name: Key of the owning feed.
    :ivar id: Store-assigned identifier (empty until inserted).
    """

    request_id: str
    dr_tx_hash: str
    result: str
    timestamp: str
    feed_full_name: str
    id: str = ""


class FeedStore(ABC):
    """Abstract base class for feed and result persistence.

    Implementations raise StoreError for any storage failure.
    """

    @abstractmethod
    async def get_feed(self, feed_full_name: str) -> Feed | None:
        """Fetch a feed by its unique key.

        :param feed_full_name: Feed key.
        :returns: The stored feed, or None if absent.
        """
        pass

    @abstractmethod
    async def insert_feed(self, feed: Feed) -> Feed:
        """Insert a new feed.

        :param feed: Feed to store.
        :returns: The stored feed with its assigned id.
        """
        pass

    @abstractmethod
    async def update_feed(self, feed: Feed) -> Feed | None:
        """Replace the stored fields of an existing feed.

        :param feed: Feed carrying the new field values.
        :returns: The updated feed, or None if it does not exist.
        """
        pass

    @abstractmethod
    async def get_last_result(self, feed_full_name: str) -> ResultRequest | None:
        """Fetch the most recent result of a feed.

        :param feed_full_name: Feed key.
        :returns: Latest result by timestamp, or None if the feed has none.
        """
        pass

    @abstractmethod
    async def insert_result(self, result: ResultRequest) -> ResultRequest:
        """Append a result.

        :param result: Result to store.
        :returns: The stored result with its assigned id.
        """
        pass
