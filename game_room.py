from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import chess

import rules
from errors import AlreadySeated, GameConcluded, NotAParticipant, NotYourTurn, RoomFull, WrongPassword
from logging_config import get_logger

logger = get_logger(__name__)


class RoomStatus(str, Enum):
    EMPTY = "empty"
    ONE_SEATED = "one_seated"
    TWO_SEATED = "two_seated"
    CONCLUDED = "concluded"


class JoinRole(str, Enum):
    NEW_JOIN = "new_join"
    REJOIN = "rejoin"


@dataclass
class Participant:
    player_id: str
    wallet_address: Optional[str] = None
    connection_id: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return self.connection_id is not None


@dataclass
class JoinResult:
    seat: int
    color: str
    role: JoinRole
    game_started: bool = False


class Room:
    """Two seats around one board. Slot 0 plays white, slot 1 plays black."""

    def __init__(self, room_id: str, password: Optional[str] = None, board: Optional[chess.Board] = None):
        self.room_id = room_id
        self.password = password or None
        self.seats: List[Optional[Participant]] = [None, None]
        self.board = board if board is not None else rules.new_board()

    @property
    def fen(self) -> str:
        return self.board.fen()

    @property
    def has_password(self) -> bool:
        return self.password is not None

    @property
    def participants(self) -> List[Participant]:
        return [seat for seat in self.seats if seat is not None]

    @property
    def player_count(self) -> int:
        return len(self.participants)

    @property
    def is_concluded(self) -> bool:
        return self.board.is_game_over()

    @property
    def status(self) -> RoomStatus:
        if self.is_concluded:
            return RoomStatus.CONCLUDED
        return (RoomStatus.EMPTY, RoomStatus.ONE_SEATED, RoomStatus.TWO_SEATED)[self.player_count]

    def seat_of_player(self, player_id: str) -> Optional[int]:
        for index, seat in enumerate(self.seats):
            if seat is not None and seat.player_id == player_id:
                return index
        return None

    def seat_of_connection(self, connection_id: str) -> Optional[int]:
        for index, seat in enumerate(self.seats):
            if seat is not None and seat.connection_id == connection_id:
                return index
        return None

    def live_connection_ids(self) -> List[str]:
        return [seat.connection_id for seat in self.participants if seat.connection_id is not None]

    def participant_for_color(self, color: str) -> Optional[Participant]:
        return self.seats[rules.SEAT_COLORS.index(color)]

    def password_matches(self, password: Optional[str]) -> bool:
        if self.password is None:
            return True
        return self.password == password

    def bind_or_rejoin(
        self,
        connection_id: str,
        player_id: str,
        wallet_address: Optional[str] = None,
        password: Optional[str] = None,
    ) -> JoinResult:
        held = self.seat_of_connection(connection_id)
        seat = self.seat_of_player(player_id)
        if seat is not None:
            # a connection holds at most one seat
            if held is not None and held != seat:
                self.seats[held].connection_id = None
            participant = self.seats[seat]
            participant.connection_id = connection_id
            if wallet_address:
                participant.wallet_address = wallet_address
            logger.info(f"Player {player_id} rejoined room {self.room_id} as {rules.SEAT_COLORS[seat]}")
            return JoinResult(seat=seat, color=rules.SEAT_COLORS[seat], role=JoinRole.REJOIN)

        if held is not None:
            raise AlreadySeated(self.room_id)
        if not self.password_matches(password):
            raise WrongPassword(self.room_id)

        for index, occupant in enumerate(self.seats):
            if occupant is None:
                self.seats[index] = Participant(player_id, wallet_address, connection_id)
                logger.info(f"Player {player_id} seated in room {self.room_id} as {rules.SEAT_COLORS[index]}")
                return JoinResult(
                    seat=index,
                    color=rules.SEAT_COLORS[index],
                    role=JoinRole.NEW_JOIN,
                    game_started=self.player_count == 2,
                )

        raise RoomFull(self.room_id)

    def apply_move(self, connection_id: str, from_square: str, to_square: str) -> rules.MoveOutcome:
        seat = self.seat_of_connection(connection_id)
        if seat is None:
            raise NotAParticipant(self.room_id)
        if self.is_concluded:
            raise GameConcluded(self.room_id)
        if rules.SEAT_COLORS[seat] != rules.turn_color(self.board):
            raise NotYourTurn()
        return rules.apply_move(self.board, from_square, to_square)

    def detach(self, connection_id: str) -> bool:
        seat = self.seat_of_connection(connection_id)
        if seat is None:
            return False
        self.seats[seat].connection_id = None
        return True

    def winner_color(self) -> Optional[str]:
        return rules.winner_color(self.board)

    def __repr__(self):
        return f"Room({self.room_id!r}, status={self.status.value}, players={self.player_count})"
