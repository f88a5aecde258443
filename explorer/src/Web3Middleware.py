"""Web3Middleware: Supervisor of the per-feed pollers.

Architecture:
    - Feeds on unknown networks are skipped before anything else
    - FeedRegistry reconciles configured feeds with the store and seeds the
      dedup cursor from the last stored results
    - Every registered feed resolves its contract address and gets its own
      FeedPoller task
    - Failures are contained per feed: one feed failing to start or to poll
      never stops the others
    - A feed whose address cannot be resolved is not retried until the
      next process start
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .AddressResolver import ADDRESS_TIMEOUT, ZERO_ADDRESS, ContractAddressResolver
from .ContractUtility import ContractReader
from .FeedPoller import FeedPoller
from .FeedRegistry import FeedRegistry, RegisteredFeed
from .NetworkResolver import resolve_endpoint

if TYPE_CHECKING:
    from .FeedConfig import FeedConfig
    from .FeedStore import FeedStore, ResultRequest

logger = logging.getLogger(__name__)


class Web3Middleware:
    """Owns the pollers of all configured feeds.

    :ivar store: Persistence interface.
    :ivar data_feeds: Configured feeds.
    :ivar last_stored_result: Dedup cursor, last stored result per feed.
    :ivar pollers: Active pollers keyed by feed_full_name.
    """

    def __init__(
        self,
        store: FeedStore,
        data_feeds: list[FeedConfig],
        reader: ContractReader | None = None,
        address_timeout: float = ADDRESS_TIMEOUT,
    ) -> None:
        """Initialize the supervisor.

        :param store: Persistence interface.
        :param data_feeds: Configured feeds.
        :param reader: Contract reader (default: a new ContractReader).
        :param address_timeout: Deadline for router lookups (default: 10.0).
        """
        self.store = store
        self.data_feeds = data_feeds
        self.reader = reader or ContractReader()
        self.resolver = ContractAddressResolver(self.reader, timeout=address_timeout)
        self.last_stored_result: dict[str, ResultRequest] = {}
        self.registry = FeedRegistry(store, self.resolver, self.last_stored_result)
        self.pollers: dict[str, FeedPoller] = {}
        self._stopped_pollers: list[FeedPoller] = []
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return bool(self.pollers)

    def _usable_feeds(self) -> list[FeedConfig]:
        feeds = []
        for config in self.data_feeds:
            if resolve_endpoint(config.network) is None:
                logger.error(
                    f"Provider not set for network {config.network}, "
                    f"skipping {config.feed_full_name}"
                )
                continue
            feeds.append(config)
        return feeds

    async def _start_feed(self, entry: RegisteredFeed) -> None:
        config = entry.config
        address = await self.resolver.resolve_address(config)
        if not address or address == ZERO_ADDRESS:
            logger.error(f"Pricefeed address not set for {config.feed_full_name}")
            return

        if self._stop_event.is_set():
            return

        poller = FeedPoller(
            config=config,
            feed_id=entry.feed_id,
            contract_address=address,
            reader=self.reader,
            store=self.store,
            cursor=self.last_stored_result,
        )
        self.pollers[config.feed_full_name] = poller
        poller.start()

    async def start(self) -> None:
        """Bootstrap the registry and start a poller for every usable feed."""
        self._stop_event.clear()
        feeds = self._usable_feeds()
        registered = await self.registry.reconcile(feeds)

        entries = list(registered.values())
        results = await asyncio.gather(
            *(self._start_feed(entry) for entry in entries),
            return_exceptions=True,
        )
        for entry, result in zip(entries, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    f"Error starting poller for {entry.config.feed_full_name}: {result}"
                )

        logger.info(
            f"Started {len(self.pollers)} pollers for {len(self.data_feeds)} configured feeds"
        )

    def stop(self) -> None:
        """Stop every poller. Safe to call repeatedly."""
        for poller in self.pollers.values():
            poller.stop()
            self._stopped_pollers.append(poller)
        if self.pollers:
            logger.info(f"Stopped {len(self.pollers)} pollers")
        self.pollers = {}
        self._stop_event.set()

    async def wait_stopped(self) -> None:
        """Wait for stopped pollers to finish their in-flight ticks."""
        while self._stopped_pollers:
            await self._stopped_pollers.pop().wait_stopped()

    async def run(self) -> None:
        """Start polling and keep running until stop() is called.

        Connections are closed only once every in-flight tick and address
        refresh has finished.
        """
        try:
            await self.start()
            await self._stop_event.wait()
        finally:
            self.stop()
            await self.wait_stopped()
            await self.registry.wait_refreshed()
            await self.reader.close()
