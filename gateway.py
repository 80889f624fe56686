import asyncio
import json
import uuid
from typing import Any, Dict, Optional

from pydantic import ValidationError

from errors import ChessRoomError
from game_room import Room
from logging_config import get_logger
from room_store import RoomStore
from schemas.rooms import CreateRoomRequest, JoinRoomRequest, MoveRequest

logger = get_logger(__name__)

DRAW = "draw"


class Connection:
    """One live WebSocket. The id is ephemeral, player identity lives on the seat."""

    def __init__(self, websocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or str(uuid.uuid4())
        self.wallet_address: Optional[str] = None

    async def send(self, event: str, data: Any = None):
        await self.websocket.send_text(json.dumps({"event": event, "data": data}))


class SessionGateway:
    """Maps inbound events to room operations and fans the results out.

    Every event runs to completion under one lock, so a room is never mutated
    by two events at once and broadcasts leave in the order events arrived.
    """

    def __init__(
        self,
        store: RoomStore,
        signer=None,
        announce_result_on_join: bool = False,
        delete_empty_rooms: bool = False,
    ):
        self.store = store
        self.signer = signer
        self.announce_result_on_join = announce_result_on_join
        self.delete_empty_rooms = delete_empty_rooms
        self.connections: Dict[str, Connection] = {}
        self._lock = asyncio.Lock()
        self._handlers = {
            "createRoom": self.on_create_room,
            "joinRoom": self.on_join_room,
            "move": self.on_move,
            "setAddress": self.on_set_address,
        }

    def register(self, connection: Connection):
        self.connections[connection.connection_id] = connection
        logger.info(f"Connection {connection.connection_id} registered ({len(self.connections)} live)")

    async def dispatch(self, connection: Connection, raw: str):
        try:
            message = json.loads(raw)
            event = message["event"]
            data = message.get("data")
            if not isinstance(event, str):
                raise TypeError("event name must be a string")
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError):
            logger.warning(f"Malformed frame from connection {connection.connection_id}: {raw[:200]!r}")
            await self._safe_send(connection, "roomError", "Malformed message")
            return

        handler = self._handlers.get(event)
        if handler is None:
            logger.warning(f"Unknown event {event!r} from connection {connection.connection_id}")
            await self._safe_send(connection, "roomError", f"Unknown event '{event}'")
            return

        logger.debug(f"Dispatching {event} from connection {connection.connection_id}")
        async with self._lock:
            await handler(connection, data)

    async def on_create_room(self, connection: Connection, data):
        try:
            request = CreateRoomRequest.model_validate(data)
        except ValidationError:
            await self._safe_send(connection, "roomError", "Invalid createRoom payload")
            return

        try:
            room = self.store.create(request.room_id, request.password)
            self.store.release_connection(connection.connection_id, keep=room)
            result = room.bind_or_rejoin(
                connection.connection_id, request.player_id, connection.wallet_address, request.password
            )
        except ChessRoomError as e:
            logger.warning(f"createRoom {request.room_id} rejected: {e}")
            await self._safe_send(connection, "roomError", str(e))
            return

        await self._safe_send(connection, "roomCreated", {"roomId": room.room_id, "fen": room.fen})
        await self._safe_send(connection, "playerColor", result.color)
        self.store.persist()

    async def on_join_room(self, connection: Connection, data):
        try:
            request = JoinRoomRequest.model_validate(data)
        except ValidationError:
            await self._safe_send(connection, "roomError", "Invalid joinRoom payload")
            return

        try:
            room = self.store.get(request.room_id)
            result = room.bind_or_rejoin(
                connection.connection_id, request.player_id, connection.wallet_address, request.password
            )
        except ChessRoomError as e:
            logger.warning(f"joinRoom {request.room_id} by {request.player_id} rejected: {e}")
            await self._safe_send(connection, "roomError", str(e))
            return

        self.store.release_connection(connection.connection_id, keep=room)
        await self._safe_send(connection, "roomJoined", {"roomId": room.room_id, "fen": room.fen})
        await self._safe_send(connection, "playerColor", result.color)
        if result.game_started:
            logger.info(f"Game started in room {room.room_id}")
            await self.emit_to_room(room, "gameStart", {"fen": room.fen})
        self.store.persist()

        if self.announce_result_on_join and room.is_concluded:
            await self._announce_result(room)

    async def on_move(self, connection: Connection, data):
        try:
            request = MoveRequest.model_validate(data)
        except ValidationError:
            await self._safe_send(connection, "invalidMove", "Invalid move")
            return

        try:
            room = self.store.get(request.room_id)
            outcome = room.apply_move(connection.connection_id, request.move.from_square, request.move.to_square)
        except ChessRoomError as e:
            logger.debug(f"Move {request.move.from_square}{request.move.to_square} in {request.room_id} rejected: {e}")
            await self._safe_send(connection, "invalidMove", str(e))
            return

        await self.emit_to_room(room, "moveMade", outcome.to_payload())
        if outcome.game_over:
            await self._announce_result(room)
        self.store.persist()

    async def on_set_address(self, connection: Connection, data):
        if not isinstance(data, str):
            await self._safe_send(connection, "roomError", "Wallet address must be a string")
            return
        connection.wallet_address = data
        logger.info(f"Connection {connection.connection_id} set wallet address {data}")

        for room in self.store:
            seat = room.seat_of_connection(connection.connection_id)
            if seat is not None:
                room.seats[seat].wallet_address = data
                self.store.persist()
                break

    async def on_disconnect(self, connection: Connection):
        async with self._lock:
            self.connections.pop(connection.connection_id, None)
            room_id = self.store.detach(connection.connection_id)
            logger.info(f"Connection {connection.connection_id} disconnected (room: {room_id})")
            if room_id is None:
                return

            room = self.store.get(room_id)
            await self.emit_to_room(room, "playerDisconnected")
            if self.delete_empty_rooms and not room.live_connection_ids():
                logger.info(f"Room {room_id} has no live connections, deleting it")
                self.store.delete(room_id)
                self.store.persist()

    async def close_room(self, room_id: str) -> Room:
        """Administrative delete. RoomNotFound propagates to the caller."""
        async with self._lock:
            room = self.store.delete(room_id)
            await self.emit_to_room(room, "roomClosed", {"roomId": room_id})
            self.store.persist()
            return room

    async def emit_to_room(self, room: Room, event: str, data: Any = None):
        targets = [self.connections[cid] for cid in room.live_connection_ids() if cid in self.connections]
        if not targets:
            return
        logger.debug(f"Broadcasting {event} to {len(targets)} connections in room {room.room_id}")
        await asyncio.gather(*(self._safe_send(conn, event, data) for conn in targets))

    async def _safe_send(self, connection: Connection, event: str, data: Any = None) -> bool:
        try:
            await connection.send(event, data)
            return True
        except Exception as e:
            logger.warning(f"Error sending {event} to connection {connection.connection_id}: {e}")
            return False

    async def _announce_result(self, room: Room):
        winner = room.winner_color()
        if winner is None:
            logger.info(f"Game in room {room.room_id} ended in a draw")
            await self.emit_to_room(room, "gameEnd", {"winner": DRAW})
            return

        logger.info(f"Game in room {room.room_id} won by {winner}")
        participant = room.participant_for_color(winner)
        signature = await self._sign(room.room_id, participant.wallet_address if participant else None)
        if signature and participant.connection_id in self.connections:
            await self._safe_send(
                self.connections[participant.connection_id],
                "gameEnd",
                {"winner": winner, "signature": signature, "roomId": room.room_id},
            )
        await self.emit_to_room(room, "gameEnd", {"winner": winner})

    async def _sign(self, room_id: str, winner_address: Optional[str]) -> Optional[str]:
        if self.signer is None:
            return None
        if not winner_address:
            logger.warning(f"Winner of room {room_id} has no wallet address, skipping attestation")
            return None
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self.signer.sign, room_id, winner_address)
        except Exception as e:
            logger.error(f"Attestation for room {room_id} failed: {e}", exc_info=True)
            return None
