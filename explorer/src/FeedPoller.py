"""FeedPoller: Recurring contract reads for a single price feed.

Each poller owns one asyncio task. Every ``polling_period`` milliseconds it
reads the feed contract, asks the reconciler whether the snapshot is a new
result, and stores it. Ticks of one feed never overlap: a tick that takes
longer than the period delays the next one instead of running beside it.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import TYPE_CHECKING

from .SnapshotReconciler import ContractSnapshot, reconcile

if TYPE_CHECKING:
    from .ContractUtility import ContractReader
    from .FeedConfig import FeedConfig
    from .FeedStore import FeedStore, ResultRequest

logger = logging.getLogger(__name__)


class PollerState(enum.Enum):
    """Lifecycle of a feed poller."""

    UNSTARTED = "unstarted"
    POLLING = "polling"
    STOPPED = "stopped"


class FeedPoller:
    """Poller for a single feed contract.

    :ivar config: Static feed configuration.
    :ivar feed_id: Store identifier of the feed record.
    :ivar contract_address: Resolved price-feed contract address.
    :ivar state: Current lifecycle state.
    """

    def __init__(
        self,
        config: FeedConfig,
        feed_id: str,
        contract_address: str,
        reader: ContractReader,
        store: FeedStore,
        cursor: dict[str, ResultRequest],
    ) -> None:
        """Initialize the poller.

        :param config: Static feed configuration.
        :param feed_id: Store identifier of the feed record.
        :param contract_address: Resolved price-feed contract address.
        :param reader: Contract reader for the feed's network.
        :param store: Persistence interface.
        :param cursor: Shared dedup cursor, keyed by feed_full_name.
        """
        self.config = config
        self.feed_id = feed_id
        self.contract_address = contract_address
        self.reader = reader
        self.store = store
        self.cursor = cursor
        self.state = PollerState.UNSTARTED
        self._task: asyncio.Task | None = None
        self._sleeping = False

    @property
    def feed_full_name(self) -> str:
        return self.config.feed_full_name

    @property
    def period_seconds(self) -> float:
        return self.config.polling_period / 1000

    async def read_contract_state(self) -> ContractSnapshot:
        """Read the latest value of the feed contract.

        :returns: Snapshot of the contract state.
        :raises ContractReadError: If a contract call fails.
        """
        network, address, abi = self.config.network, self.contract_address, self.config.abi
        last_price, last_timestamp, last_dr_tx_hash, update_status = await self.reader.call(
            network, address, abi, "lastValue"
        )
        request_id = await self.reader.call(network, address, abi, "latestQueryId")
        logger.debug(f"{self.feed_full_name}: latest update status {update_status}")

        return ContractSnapshot(
            last_price=str(last_price),
            last_timestamp=str(last_timestamp),
            last_dr_tx_hash=last_dr_tx_hash,
            request_id=str(request_id),
        )

    async def poll_once(self) -> ResultRequest | None:
        """Run a single poll: read, reconcile and store.

        Errors are logged and never propagated; the dedup cursor only
        advances after a successful insert.

        :returns: The stored result, or None if nothing was stored.
        """
        logger.debug(
            f"Reading {self.feed_full_name} contract state at address: "
            f"{self.contract_address}"
        )
        try:
            snapshot = await self.read_contract_state()
            record = reconcile(
                self.cursor.get(self.feed_full_name), snapshot, self.feed_full_name
            )
            if record is None:
                return None

            stored = await self.store.insert_result(record)
        except Exception as e:
            logger.warning(f"Error reading {self.feed_full_name} contract state: {e}")
            return None

        self.cursor[self.feed_full_name] = stored
        logger.info(
            f"{self.feed_full_name}: stored result {stored.result} "
            f"(timestamp={stored.timestamp}, request={stored.request_id})"
        )
        return stored

    async def _poll_loop(self) -> None:
        period = self.period_seconds
        while self.state is PollerState.POLLING:
            self._sleeping = True
            try:
                await asyncio.sleep(period)
            finally:
                self._sleeping = False
            started = time.monotonic()
            await self.poll_once()
            # Next tick is due one period after this one started
            period = max(0.0, self.period_seconds - (time.monotonic() - started))

    def start(self) -> None:
        """Start polling. No-op unless the poller is unstarted."""
        if self.state is not PollerState.UNSTARTED:
            return
        self._task = asyncio.create_task(
            self._poll_loop(), name=f"poll:{self.feed_full_name}"
        )
        self.state = PollerState.POLLING
        logger.info(
            f"Polling {self.feed_full_name} at {self.contract_address} "
            f"every {self.config.polling_period}ms"
        )

    def stop(self) -> None:
        """Stop polling. The poller cannot be restarted.

        A tick that is already running is left to finish, store included;
        the loop exits after it. Only a pending sleep is cancelled.
        """
        self.state = PollerState.STOPPED
        if self._task is not None and self._sleeping:
            self._task.cancel()

    async def wait_stopped(self) -> None:
        """Wait until the poll task has finished after stop()."""
        task = self._task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
