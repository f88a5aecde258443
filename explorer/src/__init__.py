"""
Data Feeds Explorer - Feed Ingestion Module

This module watches on-chain price feeds and records their settled results:
- NetworkResolver: Network identifier to RPC endpoint lookup
- ContractAddressResolver: Router lookup of current feed contract addresses
- FeedRegistry: Startup reconciliation of configured and stored feeds
- FeedPoller: Per-feed recurring contract reads
- SnapshotReconciler: Deduplication of contract snapshots
- Web3Middleware: Supervisor for all feed pollers
"""

from .AddressResolver import ADDRESS_TIMEOUT, ZERO_ADDRESS, ContractAddressResolver
from .ContractUtility import ContractReader, get_abi
from .errors import (
    ConfigError,
    ContractReadError,
    ExplorerError,
    StoreError,
    UnknownNetworkError,
)
from .FeedConfig import FeedConfig, load_feed_configs, parse_feed_configs
from .FeedPoller import FeedPoller, PollerState
from .FeedRegistry import FeedRegistry, RegisteredFeed
from .FeedStore import Feed, FeedStore, ResultRequest
from .InMemoryFeedStore import InMemoryFeedStore
from .NetworkResolver import NetworkEndpoint, list_networks, resolve_endpoint
from .SnapshotReconciler import ContractSnapshot, decode_dr_tx_hash, reconcile
from .Web3Middleware import Web3Middleware

__all__ = [
    "ADDRESS_TIMEOUT",
    "ZERO_ADDRESS",
    "ConfigError",
    "ContractAddressResolver",
    "ContractReadError",
    "ContractReader",
    "ContractSnapshot",
    "ExplorerError",
    "Feed",
    "FeedConfig",
    "FeedPoller",
    "FeedRegistry",
    "FeedStore",
    "InMemoryFeedStore",
    "NetworkEndpoint",
    "PollerState",
    "RegisteredFeed",
    "ResultRequest",
    "StoreError",
    "UnknownNetworkError",
    "Web3Middleware",
    "decode_dr_tx_hash",
    "get_abi",
    "list_networks",
    "load_feed_configs",
    "parse_feed_configs",
    "reconcile",
    "resolve_endpoint",
]
