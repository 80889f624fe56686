import json
import os
import tempfile
from typing import Dict, Iterable, List, Optional

import redis

from constants import REDIS_HOST, REDIS_PASSWORD, REDIS_PORT, SNAPSHOT_BACKEND, SNAPSHOT_PATH
from errors import PersistenceWriteFailure, SnapshotLoadCorrupt
from game_room import Participant, Room
from logging_config import get_logger
import rules
from redis_keys import REDIS_SNAPSHOT_KEY

logger = get_logger(__name__)


def encode_snapshot(rooms: Iterable[Room]) -> Dict[str, dict]:
    """Document layout: {roomId: {password, fen, players: [{playerId, address}]}}."""
    data = {}
    for room in rooms:
        data[room.room_id] = {
            "password": room.password,
            "fen": room.fen,
            "players": [
                {"playerId": p.player_id, "address": p.wallet_address}
                for p in room.participants
            ],
        }
    return data


def decode_snapshot(data) -> List[Room]:
    if not isinstance(data, dict):
        raise SnapshotLoadCorrupt("Snapshot root must be an object keyed by room id")

    rooms = []
    for room_id, room_data in data.items():
        try:
            fen = room_data["fen"]
            if not isinstance(fen, str):
                raise ValueError(f"fen must be a string, got {fen!r}")
            board = rules.new_board(fen)
            players = room_data.get("players") or []
            if len(players) > 2:
                raise ValueError(f"{len(players)} players seated")
            room = Room(room_id, room_data.get("password"), board=board)
            for index, player in enumerate(players):
                # connection ids are re-attached on reconnect
                room.seats[index] = Participant(
                    player_id=str(player["playerId"]),
                    wallet_address=player.get("address"),
                )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise SnapshotLoadCorrupt(f"Room '{room_id}' in snapshot is malformed: {e}") from e
        rooms.append(room)
    return rooms


def parse_snapshot(text: Optional[str]) -> List[Room]:
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotLoadCorrupt(f"Snapshot is not valid JSON: {e}") from e
    return decode_snapshot(data)


def render_snapshot(rooms: Iterable[Room]) -> str:
    return json.dumps(encode_snapshot(rooms), indent=2)


class FileSnapshotBackend:
    def __init__(self, path: str = SNAPSHOT_PATH):
        self.path = path
        logger.info(f"Using file snapshot backend at {os.path.abspath(path)}")

    def read(self) -> Optional[str]:
        if not os.path.exists(self.path):
            logger.info(f"No snapshot at {self.path}, starting empty")
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            return f.read()

    def write(self, text: str):
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".rooms-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, self.path)
            logger.debug(f"Snapshot written to {self.path} ({len(text)} bytes)")
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceWriteFailure(f"Could not write snapshot to {self.path}: {e}") from e


class RedisSnapshotBackend:
    def __init__(self, client: Optional[redis.Redis] = None, key: str = REDIS_SNAPSHOT_KEY):
        self.key = key
        if client is None:
            client = redis.Redis(host=REDIS_HOST, port=REDIS_PORT, password=REDIS_PASSWORD, decode_responses=True)
            try:
                client.ping()
                logger.info(f"Redis snapshot backend connected to {REDIS_HOST}:{REDIS_PORT}")
            except redis.RedisError as e:
                logger.error(f"Failed to connect to Redis at {REDIS_HOST}:{REDIS_PORT}: {e}", exc_info=True)
                raise
        self.redis_client = client

    def read(self) -> Optional[str]:
        value = self.redis_client.get(self.key)
        if value is None:
            logger.info(f"No snapshot under Redis key {self.key}, starting empty")
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def write(self, text: str):
        try:
            self.redis_client.set(self.key, text)
            logger.debug(f"Snapshot written to Redis key {self.key} ({len(text)} bytes)")
        except redis.RedisError as e:
            raise PersistenceWriteFailure(f"Could not write snapshot to Redis key {self.key}: {e}") from e


def create_backend(kind: str = SNAPSHOT_BACKEND, path: str = SNAPSHOT_PATH):
    kind = (kind or "file").strip().lower()
    if kind == "file":
        return FileSnapshotBackend(path)
    if kind == "redis":
        return RedisSnapshotBackend()
    raise ValueError(f"Unknown SNAPSHOT_BACKEND '{kind}', expected 'file' or 'redis'")
