"""
pytest configuration and fixtures.
"""

import asyncio
import socket
import time
from typing import Callable

import pytest

# Add the project root to path so the package imports without installing
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from relaychat.frame import FRAME_SIZE


class FakeConnection:
    """Stands in for a ChatConn in the registry: records frames instead of writing to a socket."""

    def __init__(self, conn_id: int, identity: str, fail: bool = False):
        self.conn_id = conn_id
        self.identity = identity
        self.fail = fail
        self.sent: list[bytes] = []
        self.closed = False

    def send_frame(self, frame: bytes) -> None:
        if self.fail:
            raise BrokenPipeError("simulated closed socket")
        self.sent.append(frame)

    def close(self) -> None:
        self.closed = True


class FakeTransport:
    """Minimal asyncio.Transport for driving protocols without a socket."""

    def __init__(self, peername=("127.0.0.1", 50000), sockname=("127.0.0.1", 8080)):
        self.extra = {"peername": peername, "sockname": sockname}
        self.written: list[bytes] = []
        self.closed = False

    def get_extra_info(self, name, default=None):
        return self.extra.get(name, default)

    def write(self, data: bytes) -> None:
        self.written.append(data)

    def is_closing(self) -> bool:
        return self.closed

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_conn() -> Callable[..., FakeConnection]:
    """Factory for fake registry connections with increasing ids."""
    ids = iter(range(1, 1000))

    def factory(identity: str, fail: bool = False) -> FakeConnection:
        return FakeConnection(next(ids), identity, fail)

    return factory


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Yield to the event loop until predicate() holds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


async def read_frame(reader: asyncio.StreamReader, timeout: float = 5.0) -> bytes:
    return await asyncio.wait_for(reader.readexactly(FRAME_SIZE), timeout)
