"""Adapter over python-chess: the only place that knows how moves are validated."""
from dataclasses import dataclass
from typing import Optional

import chess

from errors import IllegalMove

WHITE = "white"
BLACK = "black"
SEAT_COLORS = (WHITE, BLACK)


@dataclass
class MoveOutcome:
    fen: str
    turn: str
    in_check: bool
    game_over: bool

    def to_payload(self) -> dict:
        return {
            "fen": self.fen,
            "turn": self.turn,
            "inCheck": self.in_check,
            "gameOver": self.game_over,
        }


def new_board(fen: Optional[str] = None) -> chess.Board:
    """Start position, or the position described by fen (ValueError if malformed)."""
    if fen is None:
        return chess.Board()
    return chess.Board(fen)


def turn_color(board: chess.Board) -> str:
    return WHITE if board.turn == chess.WHITE else BLACK


def turn_code(board: chess.Board) -> str:
    return "w" if board.turn == chess.WHITE else "b"


def build_move(board: chess.Board, from_square: str, to_square: str) -> chess.Move:
    try:
        origin = chess.parse_square(str(from_square).strip().lower())
        target = chess.parse_square(str(to_square).strip().lower())
    except ValueError:
        raise IllegalMove()

    # promotion always goes to a queen
    promotion = None
    if board.piece_type_at(origin) == chess.PAWN and chess.square_rank(target) in (0, 7):
        promotion = chess.QUEEN
    return chess.Move(origin, target, promotion=promotion)


def apply_move(board: chess.Board, from_square: str, to_square: str) -> MoveOutcome:
    """Push the move onto board if legal; the board is left untouched otherwise."""
    move = build_move(board, from_square, to_square)
    if not board.is_legal(move):
        raise IllegalMove()
    board.push(move)
    return MoveOutcome(
        fen=board.fen(),
        turn=turn_code(board),
        in_check=board.is_check(),
        game_over=board.is_game_over(),
    )


def winner_color(board: chess.Board) -> Optional[str]:
    """Color that delivered mate, None for draws and unfinished games."""
    outcome = board.outcome()
    if outcome is None or outcome.winner is None:
        return None
    return WHITE if outcome.winner == chess.WHITE else BLACK
