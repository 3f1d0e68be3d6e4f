"""Unit tests for the reachability prober."""

import asyncio
import socket
import time

import pytest

from dockertest.models.errors import UnreachableError
from dockertest.utils.network import await_reachable, is_reachable, split_address


def _closed_port() -> int:
    """A localhost port that nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


async def _start_server():
    async def handle(reader, writer):
        writer.close()

    return await asyncio.start_server(handle, "127.0.0.1", 0)


class TestSplitAddress:
    """Test address parsing."""

    def test_host_and_port(self):
        assert split_address("172.17.0.2:6379") == ("172.17.0.2", 6379)

    def test_bracketed_ipv6(self):
        assert split_address("[::1]:5432") == ("::1", 5432)

    def test_hostname(self):
        assert split_address("localhost:80") == ("localhost", 80)

    @pytest.mark.parametrize("address", ["localhost", ":80", "host:", "host:port"])
    def test_invalid(self, address):
        with pytest.raises(ValueError):
            split_address(address)


class TestIsReachable:
    """Test single probes."""

    @pytest.mark.asyncio
    async def test_listening_port(self):
        server = await _start_server()
        port = server.sockets[0].getsockname()[1]
        try:
            assert await is_reachable(f"127.0.0.1:{port}") is True
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_closed_port(self):
        assert await is_reachable(f"127.0.0.1:{_closed_port()}") is False


class TestAwaitReachable:
    """Test polling until reachable."""

    @pytest.mark.asyncio
    async def test_returns_immediately_when_listening(self):
        server = await _start_server()
        port = server.sockets[0].getsockname()[1]
        try:
            start = time.monotonic()
            await await_reachable(f"127.0.0.1:{port}", max_wait=5.0)
            assert time.monotonic() - start < 1.0
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_times_out_after_max_wait(self):
        """Nothing listening: fails close to max_wait, neither early nor late."""
        address = f"127.0.0.1:{_closed_port()}"
        start = time.monotonic()
        with pytest.raises(UnreachableError) as exc_info:
            await await_reachable(address, max_wait=0.5)
        elapsed = time.monotonic() - start

        assert 0.45 <= elapsed < 1.0
        assert exc_info.value.address == address
        assert exc_info.value.max_wait == 0.5
        assert "unreachable" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_becomes_reachable_while_polling(self):
        """A server that starts late is picked up on a later attempt."""
        port = _closed_port()
        servers = []

        async def start_later():
            await asyncio.sleep(0.3)
            servers.append(
                await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", port)
            )

        task = asyncio.create_task(start_later())
        try:
            await await_reachable(f"127.0.0.1:{port}", max_wait=5.0)
        finally:
            await task
            for server in servers:
                server.close()
                await server.wait_closed()

    @pytest.mark.asyncio
    async def test_zero_wait_fails_without_attempt(self):
        with pytest.raises(UnreachableError):
            await await_reachable(f"127.0.0.1:{_closed_port()}", max_wait=0)

    @pytest.mark.asyncio
    async def test_can_be_cancelled(self):
        task = asyncio.create_task(
            await_reachable(f"127.0.0.1:{_closed_port()}", max_wait=30.0)
        )
        await asyncio.sleep(0.25)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
