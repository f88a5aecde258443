"""Race a fallible awaitable against a wall-clock deadline."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_deadline(
    awaitable: Awaitable[T],
    timeout: float,
    description: str = "awaiting operation",
) -> T | None:
    """Await a result, giving up after ``timeout`` seconds.

    The awaitable is cancelled when the deadline wins, so it never completes
    after this function has returned. Failures and timeouts are logged once
    and reported as None.

    :param awaitable: Coroutine or future to await.
    :param timeout: Deadline in seconds.
    :param description: Short label used in log messages.
    :returns: The awaited result, or None on timeout or failure.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Timeout after {timeout}s: {description}")
        return None
    except Exception as e:
        logger.warning(f"Error {description}: {e}")
        return None
