"""ContractUtility: Web3 connections, read-only contract calls and ABI loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from web3 import AsyncWeb3

from .errors import ContractReadError, UnknownNetworkError
from .NetworkResolver import resolve_endpoint

logger = logging.getLogger(__name__)

# Timeout for a single JSON-RPC request in seconds.
DEFAULT_REQUEST_TIMEOUT = 10.0


class ContractReader:
    """Read-only contract calls against the configured networks.

    One ``AsyncWeb3`` instance is created lazily per network and reused by
    every feed on that network.

    :ivar request_timeout: Per-request HTTP timeout in seconds.
    """

    def __init__(self, request_timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        """Initialize the contract reader.

        :param request_timeout: Per-request HTTP timeout in seconds.
        """
        self.request_timeout = request_timeout
        self._connections: dict[str, AsyncWeb3] = {}

    def get_web3(self, network: str) -> AsyncWeb3:
        """Get or create the Web3 connection for a network.

        :param network: Logical network identifier (e.g., "ethereum-goerli").
        :returns: Connected AsyncWeb3 instance.
        :raises UnknownNetworkError: If no endpoint is known for the network.
        """
        w3 = self._connections.get(network)
        if w3 is not None:
            return w3

        endpoint = resolve_endpoint(network)
        if endpoint is None:
            raise UnknownNetworkError(f"No RPC endpoint configured for {network}")

        w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                endpoint.rpc_url,
                request_kwargs={"timeout": self.request_timeout},
            )
        )
        self._connections[network] = w3
        logger.debug(f"Connected to {network} via {endpoint.rpc_url}")
        return w3

    async def call(
        self,
        network: str,
        address: str,
        abi: list,
        method: str,
        *args: Any,
    ) -> Any:
        """Call a read-only contract method.

        :param network: Network the contract lives on.
        :param address: Contract address.
        :param abi: Contract ABI.
        :param method: Name of the view method to call.
        :param args: Positional method arguments.
        :returns: Decoded return value(s).
        :raises UnknownNetworkError: If the network has no endpoint.
        :raises ContractReadError: If the call fails for any other reason.
        """
        w3 = self.get_web3(network)
        try:
            contract = w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(address), abi=abi
            )
            return await getattr(contract.functions, method)(*args).call()
        except Exception as e:
            raise ContractReadError(
                f"{method}() on {address} ({network}) failed: {e}"
            ) from e

    async def close(self) -> None:
        """Close every cached provider session."""
        for network, w3 in list(self._connections.items()):
            disconnect = getattr(w3.provider, "disconnect", None)
            if disconnect is None:
                continue
            try:
                await disconnect()
            except Exception as e:
                logger.warning(f"Error closing connection to {network}: {e}")
        self._connections = {}


def get_abi(contract_name: str) -> list:
    """Fetch the ABI of a contract from the bundled abi folder.

    :param contract_name: Name of the contract (e.g., "WitnetPriceRouter").
    :returns: Contract ABI.
    :raises FileNotFoundError: If no ABI is bundled under that name.
    """
    abi_path = (Path(__file__).parent.parent / "abi" / f"{contract_name}.json").resolve()

    with open(abi_path, "r") as file:
        contract_data = json.load(file)

    # Accept both a bare ABI list and a compiler artifact with an "abi" key.
    if isinstance(contract_data, dict):
        return contract_data["abi"]
    return contract_data
