from typing import Dict, Iterator, Optional

import backend as snapshot
from errors import PersistenceWriteFailure, RoomAlreadyExists, RoomNotFound
from game_room import Room
from logging_config import get_logger

logger = get_logger(__name__)


class RoomStore:
    """Owns every Room of the process. Mutations go through the methods below."""

    def __init__(self, backend=None):
        self.backend = backend
        self._rooms: Dict[str, Room] = {}

    @classmethod
    def load(cls, backend) -> "RoomStore":
        """Rebuild the store from the backend. SnapshotLoadCorrupt propagates."""
        store = cls(backend)
        for room in snapshot.parse_snapshot(backend.read()):
            store._rooms[room.room_id] = room
        logger.info(f"Loaded {len(store._rooms)} rooms from snapshot")
        return store

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return room_id in self._rooms

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    def find(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    def create(self, room_id: str, password: Optional[str] = None) -> Room:
        if room_id in self._rooms:
            raise RoomAlreadyExists(room_id)
        room = Room(room_id, password)
        self._rooms[room_id] = room
        logger.info(f"Room {room_id} created (password={'yes' if room.has_password else 'no'})")
        return room

    def delete(self, room_id: str) -> Room:
        room = self.get(room_id)
        del self._rooms[room_id]
        logger.info(f"Room {room_id} deleted")
        return room

    def release_connection(self, connection_id: str, keep: Optional[Room] = None):
        """Drop connection_id from every seat outside `keep`."""
        for room in self._rooms.values():
            if room is not keep and room.detach(connection_id):
                logger.debug(f"Connection {connection_id} released from room {room.room_id}")

    def detach(self, connection_id: str) -> Optional[str]:
        for room_id, room in self._rooms.items():
            if room.detach(connection_id):
                return room_id
        return None

    def persist(self):
        """Rewrite the whole snapshot. Failures are logged, memory stays authoritative."""
        if self.backend is None:
            return
        try:
            self.backend.write(snapshot.render_snapshot(self._rooms.values()))
        except PersistenceWriteFailure as e:
            logger.error(f"Snapshot write failed, continuing with in-memory state: {e}")
