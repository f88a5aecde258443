"""SnapshotReconciler: Decide whether an on-chain snapshot is a new result.

A snapshot is persisted when the contract reports a settled request (non-zero
data request transaction hash) with a timestamp different from the last one
recorded for the feed. Prices are never compared: an unchanged price with a
new timestamp is a new result.

.. code-block:: python

    >>> snapshot = ContractSnapshot("42.5", "150", "ab12", "7")
    >>> reconcile(None, snapshot, "celo-mainnet_celo-eur_6").timestamp
    '150'
"""

from __future__ import annotations

from dataclasses import dataclass

from web3 import Web3

from .FeedStore import ResultRequest

# Hex length of a bytes32 transaction hash.
DR_TX_HASH_LENGTH = 64
ZERO_DR_TX_HASH = "0" * DR_TX_HASH_LENGTH


@dataclass(frozen=True)
class ContractSnapshot:
    """Values read from a price-feed contract in a single poll.

    :ivar last_price: Last reported price as a decimal string.
    :ivar last_timestamp: Timestamp of the last update as a string integer.
    :ivar last_dr_tx_hash: Raw transaction hash (bytes or hex string).
    :ivar request_id: Latest query identifier as a string.
    """

    last_price: str
    last_timestamp: str
    last_dr_tx_hash: bytes | str
    request_id: str


def decode_dr_tx_hash(value: bytes | str | None) -> str:
    """Decode a transaction hash to lowercase hex without the "0x" prefix.

    :param value: Hash as returned by the contract call.
    :returns: Canonical hex string, empty if the value is empty.

    .. code-block:: python

        >>> decode_dr_tx_hash(b"\\xab\\x12")
        'ab12'
        >>> decode_dr_tx_hash("0xAB12")
        'ab12'
    """
    if not value:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(bytes(value))[2:]
    return Web3.to_hex(hexstr=value)[2:].lower()


def is_settled(dr_tx_hash: str) -> bool:
    """Check whether a decoded hash marks a committed oracle answer."""
    return bool(dr_tx_hash) and dr_tx_hash != ZERO_DR_TX_HASH


def _normalize_timestamp(timestamp: int | str | None) -> str | None:
    if timestamp is None:
        return None
    return str(int(timestamp))


def reconcile(
    cursor: ResultRequest | None,
    snapshot: ContractSnapshot,
    feed_full_name: str,
) -> ResultRequest | None:
    """Shape the record to persist for a snapshot, if any.

    :param cursor: Last result persisted for the feed, or None.
    :param snapshot: Freshly read contract state.
    :param feed_full_name: Key of the feed the snapshot belongs to.
    :returns: New ResultRequest to persist, or None if nothing changed or
        the request is not settled yet.
    """
    dr_tx_hash = decode_dr_tx_hash(snapshot.last_dr_tx_hash)
    if not is_settled(dr_tx_hash):
        return None

    timestamp = _normalize_timestamp(snapshot.last_timestamp)
    if cursor is not None and _normalize_timestamp(cursor.timestamp) == timestamp:
        return None

    return ResultRequest(
        request_id=str(snapshot.request_id),
        dr_tx_hash=dr_tx_hash,
        result=str(snapshot.last_price),
        timestamp=timestamp,
        feed_full_name=feed_full_name,
    )
