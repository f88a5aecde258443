"""Shared fixtures: feed configurations and a fake contract reader."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from web3 import Web3

from explorer.src.errors import ContractReadError, UnknownNetworkError
from explorer.src.FeedConfig import FeedConfig
from explorer.src.NetworkResolver import resolve_endpoint

ROUTER = "0x1cF3Aa9DBF4880d797945726B94B9d29164211BE"
SETTLED_HASH = bytes.fromhex("ab12" + "00" * 30)
ZERO_HASH = bytes(32)


class FakeReader:
    """In-memory stand-in for ContractReader.

    :ivar addresses: Router answers, caption -> feed contract address.
    :ivar values: lastValue() answers, feed address -> 4-tuple.
    :ivar query_ids: latestQueryId() answers, feed address -> int.
    :ivar router_delay: Seconds every router call hangs.
    :ivar failing: Method names that raise ContractReadError.
    :ivar last_args: Arguments of the latest call, per method.
    """

    def __init__(self) -> None:
        self.addresses: dict[str, Any] = {}
        self.values: dict[str, tuple] = {}
        self.query_ids: dict[str, int] = {}
        self.router_delay = 0.0
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str, str]] = []
        self.last_args: dict[str, tuple] = {}
        self.closed = False

    def set_value(
        self,
        address: str,
        price: int,
        timestamp: int,
        dr_tx_hash: bytes = SETTLED_HASH,
        query_id: int = 1,
    ) -> None:
        self.values[address] = (price, timestamp, dr_tx_hash, 200)
        self.query_ids[address] = query_id

    def method_calls(self, method: str) -> int:
        return sum(1 for _, _, m in self.calls if m == method)

    async def call(self, network: str, address: str, abi: list, method: str, *args: Any) -> Any:
        self.calls.append((network, address, method))
        self.last_args[method] = args
        if resolve_endpoint(network) is None:
            raise UnknownNetworkError(f"No RPC endpoint configured for {network}")
        if method in self.failing:
            raise ContractReadError(f"{method}() reverted")

        if method == "currencyPairId":
            await asyncio.sleep(self.router_delay)
            return Web3.keccak(text=args[0])
        if method == "getPriceFeed":
            await asyncio.sleep(self.router_delay)
            if len(args[0]) != 4:
                raise ContractReadError(f"getPriceFeed() expects bytes4, got {args[0]!r}")
            for caption, feed_address in self.addresses.items():
                if Web3.keccak(text=caption)[:4] == args[0]:
                    return feed_address
            raise ContractReadError(f"unknown pair id {args[0].hex()}")
        if method == "lastValue":
            if address not in self.values:
                raise ContractReadError(f"no contract at {address}")
            return self.values[address]
        if method == "latestQueryId":
            return self.query_ids.get(address, 0)
        raise ContractReadError(f"unexpected method {method}")

    async def close(self) -> None:
        self.closed = True


def make_feed(
    caption: str = "Price-ETH/USD-6",
    network: str = "ethereum-goerli",
    polling_period: int = 10,
) -> FeedConfig:
    """Build a feed configuration without touching bundled ABIs."""
    name, decimals = caption.split("-")[1].lower(), caption.split("-")[2]
    return FeedConfig(
        feed_full_name=f"{network}_{name.replace('/', '-')}_{decimals}",
        id=caption,
        name=name,
        network=network,
        address=ROUTER,
        polling_period=polling_period,
        label="$",
        color="#627eea",
        block_explorer="https://goerli.etherscan.io/address/{address}",
    )


@pytest.fixture
def reader() -> FakeReader:
    return FakeReader()


@pytest.fixture
def feed_factory():
    return make_feed
