"""AddressResolver: Router lookup of the current price-feed contract address.

Price-feed contracts can be redeployed; the router maps a feed's currency
pair caption to whatever contract currently serves it. Pollers only ever see
the concrete address returned here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .deadline import with_deadline

if TYPE_CHECKING:
    from .ContractUtility import ContractReader
    from .FeedConfig import FeedConfig

logger = logging.getLogger(__name__)

# Deadline for the whole router lookup in seconds.
ADDRESS_TIMEOUT = 10.0

# Address the router returns for captions it does not know.
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class ContractAddressResolver:
    """Resolves feed contract addresses through the router contract.

    :ivar reader: Read-only contract call capability.
    :ivar timeout: Deadline for a lookup in seconds.
    """

    def __init__(self, reader: ContractReader, timeout: float = ADDRESS_TIMEOUT) -> None:
        """Initialize the resolver.

        :param reader: Contract reader used for router calls.
        :param timeout: Deadline for a lookup (default: 10.0).
        """
        self.reader = reader
        self.timeout = timeout

    async def _lookup(self, feed: FeedConfig) -> str:
        pair_id = await self.reader.call(
            feed.network, feed.address, feed.router_abi, "currencyPairId", feed.id
        )
        # The router indexes feeds by the first four bytes of the pair id
        erc2362_id = bytes(pair_id[:4])
        address = await self.reader.call(
            feed.network, feed.address, feed.router_abi, "getPriceFeed", erc2362_id
        )
        if not isinstance(address, str) or not address.startswith("0x"):
            raise ValueError(f"malformed router answer {address!r}")
        return address

    async def resolve_address(self, feed: FeedConfig) -> str | None:
        """Resolve the current price-feed address for a feed.

        Never raises: timeouts, unreachable endpoints and malformed router
        answers all yield None.

        :param feed: Feed configuration holding router address and ABI.
        :returns: Contract address, or None if resolution failed.
        """
        return await with_deadline(
            self._lookup(feed),
            self.timeout,
            description=f"reading pricefeed contract address for {feed.feed_full_name}",
        )
