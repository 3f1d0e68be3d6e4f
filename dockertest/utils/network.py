"""TCP reachability probing.

A container can be running long before the service inside it listens,
so readiness is judged by whether its published port accepts a TCP
connection.
"""

import asyncio
import time
from typing import Tuple

import structlog

from ..models.errors import UnreachableError

logger = structlog.get_logger(__name__)

PROBE_INTERVAL = 0.1


def split_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` (or ``[v6host]:port``) into its parts."""
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"invalid address {address!r}, expected host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


async def is_reachable(address: str, timeout: float = 1.0) -> bool:
    """Make a single connection attempt to ``address``.

    Args:
        address: ``host:port`` to connect to
        timeout: Upper bound for the attempt in seconds

    Returns:
        True if the connection was accepted, False otherwise
    """
    host, port = split_address(address)
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


async def await_reachable(
    address: str,
    max_wait: float,
    interval: float = PROBE_INTERVAL,
) -> None:
    """Connect to ``address`` repeatedly until it answers or ``max_wait`` elapses.

    Each attempt is independent and bounded by the time remaining, so the
    call returns close to ``max_wait`` on failure and can be cancelled
    between attempts.

    Args:
        address: ``host:port`` to probe
        max_wait: Deadline in seconds
        interval: Pause between failed attempts in seconds

    Raises:
        UnreachableError: if no connection was accepted before the deadline
    """
    split_address(address)
    deadline = time.monotonic() + max_wait
    attempts = 0

    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        attempts += 1
        if await is_reachable(address, timeout=remaining):
            logger.debug("Address reachable", address=address, attempts=attempts)
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        await asyncio.sleep(min(interval, remaining))

    logger.debug("Address unreachable", address=address, attempts=attempts)
    raise UnreachableError(address, max_wait)
