"""Unit tests for FeedRegistry."""

import logging
from unittest.mock import AsyncMock

import pytest

from conftest import FakeReader, make_feed
from explorer.src.AddressResolver import ContractAddressResolver
from explorer.src.errors import StoreError
from explorer.src.FeedRegistry import FeedRegistry
from explorer.src.FeedStore import Feed, ResultRequest
from explorer.src.InMemoryFeedStore import InMemoryFeedStore

ETH_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
BTC_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"


def _registry(reader: FakeReader, store=None, timeout: float = 1.0):
    store = store or InMemoryFeedStore()
    cursor: dict[str, ResultRequest] = {}
    resolver = ContractAddressResolver(reader, timeout=timeout)
    return FeedRegistry(store, resolver, cursor), store, cursor


async def _stored_feed(store: InMemoryFeedStore, address: str) -> Feed:
    config = make_feed()
    return await store.insert_feed(
        Feed(
            feed_full_name=config.feed_full_name,
            address=address,
            name=config.name,
            network=config.network,
            label=config.label,
            block_explorer=config.block_explorer,
        )
    )


class TestReconcile:
    """Test startup reconciliation."""

    @pytest.mark.asyncio
    async def test_inserts_new_feeds(self, reader: FakeReader) -> None:
        """Unknown feeds should be stored with their resolved address."""
        reader.addresses["Price-ETH/USD-6"] = ETH_ADDRESS
        registry, store, _ = _registry(reader)
        config = make_feed()

        registered = await registry.reconcile([config])

        feed = await store.get_feed(config.feed_full_name)
        assert feed.address == ETH_ADDRESS
        assert feed.label == "$"
        assert feed.network == "ethereum-goerli"
        assert registered[config.feed_full_name].feed_id == feed.id
        assert registered[config.feed_full_name].config is config

    @pytest.mark.asyncio
    async def test_unresolved_feed_not_registered(self, reader: FakeReader, caplog) -> None:
        """Feeds whose address cannot be resolved should stay unregistered."""
        registry, store, _ = _registry(reader)

        with caplog.at_level(logging.ERROR):
            registered = await registry.reconcile([make_feed()])

        assert registered == {}
        assert await store.get_feed(make_feed().feed_full_name) is None
        assert "not registered" in caplog.text

    @pytest.mark.asyncio
    async def test_idempotent(self, reader: FakeReader) -> None:
        """Running reconciliation twice should keep one feed with a stable id."""
        reader.addresses["Price-ETH/USD-6"] = ETH_ADDRESS
        registry, store, _ = _registry(reader)
        config = make_feed()

        first = await registry.reconcile([config])
        second = await registry.reconcile([config])
        await registry.wait_refreshed()

        assert first == second
        feeds, total = store.list_feeds()
        assert total == 1
        assert feeds[0].address == ETH_ADDRESS

    @pytest.mark.asyncio
    async def test_seeds_cursor(self, reader: FakeReader) -> None:
        """Known feeds should load their last stored result into the cursor."""
        reader.addresses["Price-ETH/USD-6"] = ETH_ADDRESS
        registry, store, cursor = _registry(reader)
        config = make_feed()
        await _stored_feed(store, ETH_ADDRESS)
        for timestamp in ("100", "200"):
            await store.insert_result(
                ResultRequest("1", "ab12", "42", timestamp, config.feed_full_name)
            )

        await registry.reconcile([config])
        await registry.wait_refreshed()

        assert cursor[config.feed_full_name].timestamp == "200"

    @pytest.mark.asyncio
    async def test_known_feed_without_results(self, reader: FakeReader) -> None:
        """Known feeds without results should register with an empty cursor."""
        reader.addresses["Price-ETH/USD-6"] = ETH_ADDRESS
        registry, store, cursor = _registry(reader)
        await _stored_feed(store, ETH_ADDRESS)

        registered = await registry.reconcile([make_feed()])
        await registry.wait_refreshed()

        assert make_feed().feed_full_name in registered
        assert cursor == {}

    @pytest.mark.asyncio
    async def test_failure_isolated(self, reader: FakeReader, caplog) -> None:
        """A store failure for one feed should not affect the others."""
        reader.addresses["Price-ETH/USD-6"] = ETH_ADDRESS
        reader.addresses["Price-BTC/USD-6"] = BTC_ADDRESS
        store = InMemoryFeedStore()
        real_get = store.get_feed

        async def flaky_get(name: str):
            if name.endswith("eth-usd_6"):
                raise StoreError("get_feed", "connection lost")
            return await real_get(name)

        store.get_feed = flaky_get
        registry, _, _ = _registry(reader, store=store)
        eth, btc = make_feed(), make_feed("Price-BTC/USD-6")

        with caplog.at_level(logging.ERROR):
            registered = await registry.reconcile([eth, btc])

        assert list(registered) == [btc.feed_full_name]
        assert "connection lost" in caplog.text


class TestRefreshAddress:
    """Test the address refresh path."""

    @pytest.mark.asyncio
    async def test_updates_changed_address(self, reader: FakeReader) -> None:
        reader.addresses["Price-ETH/USD-6"] = BTC_ADDRESS
        registry, store, _ = _registry(reader)
        stored = await _stored_feed(store, ETH_ADDRESS)

        await registry.refresh_address(make_feed())

        feed = await store.get_feed(stored.feed_full_name)
        assert feed.address == BTC_ADDRESS
        assert feed.id == stored.id

    @pytest.mark.asyncio
    async def test_failed_resolution_never_overwrites(self, reader: FakeReader) -> None:
        """A failed lookup should keep the stored address."""
        reader.failing.add("getPriceFeed")
        registry, store, _ = _registry(reader)
        await _stored_feed(store, ETH_ADDRESS)

        await registry.refresh_address(make_feed())

        assert (await store.get_feed(make_feed().feed_full_name)).address == ETH_ADDRESS

    @pytest.mark.asyncio
    async def test_timeout_never_overwrites(self, reader: FakeReader) -> None:
        reader.addresses["Price-ETH/USD-6"] = BTC_ADDRESS
        reader.router_delay = 1.0
        registry, store, _ = _registry(reader, timeout=0.01)
        await _stored_feed(store, ETH_ADDRESS)

        await registry.refresh_address(make_feed())

        assert (await store.get_feed(make_feed().feed_full_name)).address == ETH_ADDRESS

    @pytest.mark.asyncio
    async def test_unchanged_address_not_written(self, reader: FakeReader) -> None:
        reader.addresses["Price-ETH/USD-6"] = ETH_ADDRESS
        store = InMemoryFeedStore()
        await _stored_feed(store, ETH_ADDRESS)
        store.update_feed = AsyncMock()
        registry, _, _ = _registry(reader, store=store)

        await registry.refresh_address(make_feed())

        store.update_feed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_feed_not_created(self, reader: FakeReader) -> None:
        """Refresh only updates; it never inserts."""
        reader.addresses["Price-ETH/USD-6"] = ETH_ADDRESS
        registry, store, _ = _registry(reader)

        await registry.refresh_address(make_feed())

        assert await store.get_feed(make_feed().feed_full_name) is None

    @pytest.mark.asyncio
    async def test_store_error_logged(self, reader: FakeReader, caplog) -> None:
        reader.addresses["Price-ETH/USD-6"] = BTC_ADDRESS
        store = InMemoryFeedStore()
        await _stored_feed(store, ETH_ADDRESS)
        store.update_feed = AsyncMock(side_effect=StoreError("update_feed", "down"))
        registry, _, _ = _registry(reader, store=store)

        with caplog.at_level(logging.WARNING):
            await registry.refresh_address(make_feed())

        assert "update_feed: down" in caplog.text

    @pytest.mark.asyncio
    async def test_reconcile_schedules_refresh(self, reader: FakeReader) -> None:
        """Known feeds should pick up a new router address after reconcile."""
        reader.addresses["Price-ETH/USD-6"] = BTC_ADDRESS
        registry, store, _ = _registry(reader)
        await _stored_feed(store, ETH_ADDRESS)

        await registry.reconcile([make_feed()])
        await registry.wait_refreshed()

        assert (await store.get_feed(make_feed().feed_full_name)).address == BTC_ADDRESS
