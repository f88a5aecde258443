"""NetworkResolver: Static mapping from network identifiers to RPC endpoints.

.. code-block:: python

    >>> resolve_endpoint("celo-mainnet").rpc_url
    'https://forno.celo.org'
    >>> resolve_endpoint("unknown-net") is None
    True
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class NetworkEndpoint:
    """RPC endpoint for a network.

    :ivar network: Logical network identifier.
    :ivar label: Human readable network name.
    :ivar rpc_url: JSON-RPC HTTP endpoint.
    """

    network: str
    label: str
    rpc_url: str


# Default public endpoints per network.
NETWORKS: dict[str, tuple[str, str]] = {
    "ethereum-mainnet": ("Ethereum Mainnet", "https://ethereum-rpc.publicnode.com"),
    "ethereum-goerli": ("Ethereum Goerli", "https://ethereum-goerli.publicnode.com"),
    "ethereum-rinkeby": ("Ethereum Rinkeby", "https://rinkeby.infura.io/v3/"),
    "conflux-testnet": ("Conflux Testnet", "https://evmtestnet.confluxrpc.com"),
    "conflux-tethys": ("Conflux Tethys", "https://evm.confluxrpc.com"),
    "celo-alfajores": ("Celo Alfajores", "https://alfajores-forno.celo-testnet.org"),
    "celo-mainnet": ("Celo Mainnet", "https://forno.celo.org"),
    "boba-rinkeby": ("Boba Rinkeby", "https://rinkeby.boba.network"),
    "boba-mainnet": ("Boba Mainnet", "https://mainnet.boba.network"),
    "metis-rinkeby": ("Metis Rinkeby", "https://stardust.metis.io/?owner=588"),
    "harmony-testnet": ("Harmony Testnet", "https://api.s0.b.hmny.io"),
    "kcc-testnet": ("KCC Testnet", "https://rpc-testnet.kcc.network"),
    "kcc-mainnet": ("KCC Mainnet", "https://rpc-mainnet.kcc.network"),
    "polygon-goerli": ("Polygon Goerli", "https://rpc-mumbai.maticvigil.com"),
}


def _env_override(network: str) -> str | None:
    """Return the RPC_URL_<NETWORK> environment override, if set."""
    var = "RPC_URL_" + network.upper().replace("-", "_")
    return os.environ.get(var) or None


def resolve_endpoint(network: str) -> NetworkEndpoint | None:
    """Resolve the RPC endpoint for a network.

    :param network: Logical network identifier (e.g., "ethereum-goerli").
    :returns: The endpoint, or None if the network is unknown.
    """
    entry = NETWORKS.get(network)
    if entry is None:
        return None
    label, rpc_url = entry
    return NetworkEndpoint(
        network=network,
        label=label,
        rpc_url=_env_override(network) or rpc_url,
    )


def list_networks() -> list[NetworkEndpoint]:
    """List all known networks, sorted by identifier."""
    return [resolve_endpoint(network) for network in sorted(NETWORKS)]
