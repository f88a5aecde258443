#!/usr/bin/env python3
"""Data Feeds Explorer ingestion service.

Watches the configured on-chain price feeds and records every settled
result they report.

Start with a network file describing the feeds. See explorer/config/feeds.json
for an example.
"""

import argparse
import asyncio
import logging
import os
import sys

from .src.AddressResolver import ADDRESS_TIMEOUT
from .src.errors import ConfigError
from .src.FeedConfig import load_feed_configs
from .src.InMemoryFeedStore import InMemoryFeedStore
from .src.NetworkResolver import NETWORKS
from .src.Web3Middleware import Web3Middleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_networks(networks_str: str | None) -> list[str]:
    """Parse a comma-separated network allow-list.

    :param networks_str: Comma-separated network identifiers.
    :returns: List of network identifiers, empty if none given.
    """
    if not networks_str:
        return []
    return [n.strip().lower() for n in networks_str.split(",") if n.strip()]


def main() -> None:
    """Main entry point for the feed ingestion CLI."""
    parser = argparse.ArgumentParser(
        description="Data Feeds Explorer: on-chain price feed ingestion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Known networks:
  {', '.join(sorted(NETWORKS))}

Examples:
  # Watch every feed of a network file
  python -m explorer.main --config explorer/config/feeds.json

  # Only watch Celo feeds, with a custom RPC endpoint
  RPC_URL_CELO_MAINNET=https://my-node:8545 python -m explorer.main \\
      --config feeds.json --networks celo-mainnet

Environment variables (CLI args take precedence):
  FEEDS_CONFIG, ADDRESS_TIMEOUT, NETWORKS, RPC_URL_<NETWORK>
""",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to the JSON network file describing the feeds",
        default=os.environ.get("FEEDS_CONFIG"),
    )

    parser.add_argument(
        "--address-timeout",
        dest="address_timeout",
        type=float,
        help=f"Timeout for router address lookups in seconds (default: {ADDRESS_TIMEOUT})",
        default=float(os.environ.get("ADDRESS_TIMEOUT") or ADDRESS_TIMEOUT),
    )

    parser.add_argument(
        "--networks",
        type=str,
        help="Comma-separated networks to watch (default: all configured)",
        default=os.environ.get("NETWORKS"),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.config:
        parser.error("--config (or FEEDS_CONFIG) is required")

    if args.address_timeout <= 0:
        parser.error("--address-timeout must be positive")

    try:
        feeds = load_feed_configs(args.config)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    networks = parse_networks(args.networks)
    if networks:
        feeds = [f for f in feeds if f.network in networks]

    if not feeds:
        parser.error("No feeds to watch")

    logger.info("=" * 60)
    logger.info("Data Feeds Explorer - Feed Ingestion")
    logger.info("=" * 60)
    logger.info(f"Config:            {args.config}")
    logger.info(f"Feeds:             {len(feeds)}")
    logger.info(f"Networks:          {', '.join(sorted({f.network for f in feeds}))}")
    logger.info(f"Address Timeout:   {args.address_timeout}s")
    logger.info("=" * 60)

    middleware = Web3Middleware(
        store=InMemoryFeedStore(),
        data_feeds=feeds,
        address_timeout=args.address_timeout,
    )
    try:
        asyncio.run(middleware.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
