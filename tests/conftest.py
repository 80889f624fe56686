"""
Shared pytest fixtures for the chess room server tests.

Sockets and snapshot media are replaced with small in-memory doubles so the
room, gateway and app layers can be exercised without a network or Redis.
"""

import json
from typing import List, Optional, Tuple

import pytest

from errors import PersistenceWriteFailure
from gateway import Connection, SessionGateway
from room_store import RoomStore
from signer import AttestationSigner

# Well-known throwaway key from the eth-account documentation
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
WINNER_ADDRESS = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
LOSER_ADDRESS = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"

# f3 e5 g4 Qh4#
FOOLS_MATE = [("f2", "f3"), ("e7", "e5"), ("g2", "g4"), ("d8", "h4")]


class FakeWebSocket:
    """Records every frame the gateway sends."""

    def __init__(self, fail: bool = False):
        self.sent: List[dict] = []
        self.fail = fail

    async def send_text(self, text: str):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))

    def events(self) -> List[str]:
        return [frame["event"] for frame in self.sent]

    def payloads(self, event: str) -> list:
        return [frame["data"] for frame in self.sent if frame["event"] == event]

    def clear(self):
        self.sent.clear()


class MemoryBackend:
    """Snapshot backend holding the last written document in memory."""

    def __init__(self, text: Optional[str] = None, fail_writes: bool = False):
        self.text = text
        self.writes = 0
        self.fail_writes = fail_writes

    def read(self) -> Optional[str]:
        return self.text

    def write(self, text: str):
        if self.fail_writes:
            raise PersistenceWriteFailure("disk full")
        self.text = text
        self.writes += 1

    def document(self) -> dict:
        return json.loads(self.text)


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend) -> RoomStore:
    return RoomStore(backend)


@pytest.fixture
def signer() -> AttestationSigner:
    return AttestationSigner(TEST_PRIVATE_KEY)


@pytest.fixture
def gateway(store, signer) -> SessionGateway:
    return SessionGateway(store, signer=signer)


@pytest.fixture
def connect(gateway):
    """Factory returning (connection, socket) pairs registered with the gateway."""

    def _connect(fail: bool = False) -> Tuple[Connection, FakeWebSocket]:
        ws = FakeWebSocket(fail=fail)
        conn = Connection(ws)
        gateway.register(conn)
        return conn, ws

    return _connect


def frame(event: str, data=None) -> str:
    return json.dumps({"event": event, "data": data})
