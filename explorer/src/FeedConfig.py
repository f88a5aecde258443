"""FeedConfig: Static feed configuration loaded from a network file.

The network file groups feeds by network, with the router address and
polling period shared by every feed on that network:

.. code-block:: json

    {
      "ethereum-goerli": {
        "name": "Ethereum Goerli",
        "address": "0x1cF3Aa9DBF4880d797945726B94B9d29164211BE",
        "blockExplorer": "https://goerli.etherscan.io/address/{address}",
        "color": "#627eea",
        "pollingPeriod": 15000,
        "feeds": {
          "Price-ETH/USD-6": {
            "label": "$",
            "deviationPercentage": 1,
            "maxSecsBetweenUpdates": 3600,
            "minSecsBetweenUpdates": 900
          }
        }
      }
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .ContractUtility import get_abi
from .errors import ConfigError

logger = logging.getLogger(__name__)

ROUTER_CONTRACT = "WitnetPriceRouter"
FEED_CONTRACT = "WitnetPriceFeed"


@dataclass(frozen=True)
class FeedConfig:
    """Configuration of a single price feed.

    :ivar feed_full_name: Unique feed key (e.g., "ethereum-goerli_eth-usd_6").
    :ivar id: Router currency pair caption (e.g., "Price-ETH/USD-6").
    :ivar name: Pair name (e.g., "eth/usd").
    :ivar network: Network identifier.
    :ivar address: Router contract address.
    :ivar polling_period: Milliseconds between contract reads.
    """

    feed_full_name: str
    id: str
    name: str
    network: str
    address: str
    polling_period: int
    label: str = ""
    color: str = ""
    block_explorer: str = ""
    deviation: str = ""
    heartbeat: str = ""
    finality: str = ""
    router_abi: list = field(default_factory=list, repr=False, compare=False)
    abi: list = field(default_factory=list, repr=False, compare=False)


def parse_caption(caption: str) -> tuple[str, str]:
    """Split a router caption into pair name and decimals.

    :param caption: Caption like "Price-ETH/USD-6".
    :returns: Tuple of (name, decimals), e.g. ("eth/usd", "6").
    :raises ConfigError: If the caption is not of the form kind-PAIR-decimals.

    .. code-block:: python

        >>> parse_caption("Price-BTC/USD-6")
        ('btc/usd', '6')
    """
    parts = caption.split("-")
    if len(parts) != 3 or "/" not in parts[1] or not parts[2].isdigit():
        raise ConfigError(
            f"Invalid feed caption '{caption}'. Expected e.g. 'Price-ETH/USD-6'"
        )
    return parts[1].lower(), parts[2]


def create_feed_full_name(network: str, name: str, decimals: str) -> str:
    """Build the unique feed key.

    .. code-block:: python

        >>> create_feed_full_name("celo-mainnet", "celo/eur", "6")
        'celo-mainnet_celo-eur_6'
    """
    return f"{network}_{name.replace('/', '-')}_{decimals}"


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise ConfigError(f"Missing '{key}' in {where}")
    return data[key]


def _seconds_as_millis(params: dict[str, Any], key: str, where: str) -> str:
    seconds = params.get(key, 0)
    # bool is an int subclass but never a valid duration
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise ConfigError(f"'{key}' in {where} must be a number of seconds")
    return str(int(seconds * 1000))


def parse_feed_configs(
    data: dict[str, Any],
    router_abi: list | None = None,
    feed_abi: list | None = None,
) -> list[FeedConfig]:
    """Expand a parsed network file into feed configurations.

    :param data: Parsed network file.
    :param router_abi: Router ABI (default: bundled WitnetPriceRouter).
    :param feed_abi: Feed ABI (default: bundled WitnetPriceFeed).
    :returns: One FeedConfig per configured feed.
    :raises ConfigError: If the structure is invalid or a feed key repeats.
    """
    if not isinstance(data, dict):
        raise ConfigError("Network file must be a JSON object keyed by network")

    if router_abi is None:
        router_abi = get_abi(ROUTER_CONTRACT)
    if feed_abi is None:
        feed_abi = get_abi(FEED_CONTRACT)

    configs: list[FeedConfig] = []
    seen: set[str] = set()
    for network, network_config in data.items():
        if not isinstance(network_config, dict):
            raise ConfigError(f"Network '{network}' must be a JSON object")

        router_address = _require(network_config, "address", network)
        polling_period = _require(network_config, "pollingPeriod", network)
        if not isinstance(polling_period, int) or polling_period <= 0:
            raise ConfigError(f"pollingPeriod for '{network}' must be a positive integer")

        feeds = _require(network_config, "feeds", network)
        if not isinstance(feeds, dict):
            raise ConfigError(f"feeds for '{network}' must be a JSON object")

        for caption, params in feeds.items():
            name, decimals = parse_caption(caption)
            if not isinstance(params, dict):
                raise ConfigError(f"Feed '{caption}' in '{network}' must be a JSON object")
            feed_full_name = create_feed_full_name(network, name, decimals)
            if feed_full_name in seen:
                raise ConfigError(f"Duplicate feed '{feed_full_name}'")
            seen.add(feed_full_name)

            configs.append(
                FeedConfig(
                    feed_full_name=feed_full_name,
                    id=caption,
                    name=name,
                    network=network,
                    address=router_address,
                    polling_period=polling_period,
                    label=params.get("label", ""),
                    color=network_config.get("color", ""),
                    block_explorer=network_config.get("blockExplorer", ""),
                    deviation=str(params.get("deviationPercentage", "")),
                    heartbeat=_seconds_as_millis(params, "maxSecsBetweenUpdates", caption),
                    finality=_seconds_as_millis(params, "minSecsBetweenUpdates", caption),
                    router_abi=router_abi,
                    abi=feed_abi,
                )
            )

    return configs


def load_feed_configs(path: str | Path) -> list[FeedConfig]:
    """Load feed configurations from a JSON network file.

    :param path: Path to the network file.
    :returns: Parsed feed configurations.
    :raises ConfigError: If the file cannot be read or is invalid.
    """
    try:
        with open(path, "r") as file:
            data = json.load(file)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot load feed configuration {path}: {e}") from e

    configs = parse_feed_configs(data)
    logger.info(f"Loaded {len(configs)} feeds from {path}")
    return configs
