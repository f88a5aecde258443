"""FeedRegistry: Reconcile configured feeds against persisted feed records.

At startup every configured feed is matched with its stored record:

- Known feeds get their last stored result loaded into the dedup cursor so
  a restart never stores the same timestamp twice, then their address is
  refreshed from the router.
- Unknown feeds are inserted once their address resolves. A feed whose
  address cannot be resolved stays unregistered until the next start.

Feeds are reconciled concurrently and independently; an error in one never
affects another.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .FeedStore import Feed, ResultRequest

if TYPE_CHECKING:
    from .AddressResolver import ContractAddressResolver
    from .FeedConfig import FeedConfig
    from .FeedStore import FeedStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredFeed:
    """A configured feed with a persisted record.

    :ivar feed_id: Store identifier of the feed record.
    :ivar config: Static feed configuration.
    """

    feed_id: str
    config: FeedConfig


def _feed_from_config(config: FeedConfig, address: str) -> Feed:
    return Feed(
        feed_full_name=config.feed_full_name,
        address=address,
        name=config.name,
        network=config.network,
        label=config.label,
        block_explorer=config.block_explorer,
    )


class FeedRegistry:
    """Bootstraps feed records and the dedup cursor.

    :ivar store: Persistence interface.
    :ivar resolver: Router address resolver.
    :ivar cursor: Dedup cursor to seed, keyed by feed_full_name.
    """

    def __init__(
        self,
        store: FeedStore,
        resolver: ContractAddressResolver,
        cursor: dict[str, ResultRequest],
    ) -> None:
        """Initialize the registry.

        :param store: Persistence interface.
        :param resolver: Router address resolver.
        :param cursor: Dedup cursor owned by the caller; seeded in place.
        """
        self.store = store
        self.resolver = resolver
        self.cursor = cursor
        self._refresh_tasks: set[asyncio.Task] = set()

    async def refresh_address(self, config: FeedConfig) -> None:
        """Update the stored feed address if the router reports a new one.

        A failed resolution never overwrites a stored address.

        :param config: Feed configuration.
        """
        address = await self.resolver.resolve_address(config)
        if address is None:
            return

        try:
            feed = await self.store.get_feed(config.feed_full_name)
            if feed is None or feed.address == address:
                return
            await self.store.update_feed(_feed_from_config(config, address))
        except Exception as e:
            logger.warning(f"Error updating address of {config.feed_full_name}: {e}")
            return

        logger.info(
            f"Updated {config.feed_full_name} address {feed.address} -> {address}"
        )

    def _schedule_refresh(self, config: FeedConfig) -> None:
        task = asyncio.create_task(self.refresh_address(config))
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def _reconcile_feed(self, config: FeedConfig) -> Feed | None:
        feed = await self.store.get_feed(config.feed_full_name)
        if feed is not None:
            last_result = await self.store.get_last_result(config.feed_full_name)
            if last_result is not None:
                self.cursor[config.feed_full_name] = last_result
            self._schedule_refresh(config)
            return feed

        address = await self.resolver.resolve_address(config)
        if address is None:
            logger.error(
                f"Feed {config.feed_full_name} not registered: address unavailable"
            )
            return None

        feed = await self.store.insert_feed(_feed_from_config(config, address))
        logger.info(f"Registered feed {config.feed_full_name} at {address}")
        return feed

    async def reconcile(
        self, configs: list[FeedConfig]
    ) -> dict[str, RegisteredFeed]:
        """Reconcile all configured feeds with the store.

        :param configs: Configured feeds.
        :returns: Dict mapping feed_full_name to the registered feed, for
            every feed that has a persisted record.
        """
        results = await asyncio.gather(
            *(self._reconcile_feed(config) for config in configs),
            return_exceptions=True,
        )

        registered: dict[str, RegisteredFeed] = {}
        for config, result in zip(configs, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(f"Error reconciling feed {config.feed_full_name}: {result}")
            elif result is not None:
                registered[config.feed_full_name] = RegisteredFeed(
                    feed_id=result.id, config=config
                )

        logger.info(f"Reconciled {len(registered)}/{len(configs)} feeds")
        return registered

    async def wait_refreshed(self) -> None:
        """Wait for scheduled address refreshes to finish."""
        if self._refresh_tasks:
            await asyncio.gather(*self._refresh_tasks, return_exceptions=True)
