"""Game state machine: the single authoritative mutation path.

``apply_move`` validates a move, tests it on a scratch copy, and only then
commits it to the position. Status is derived after every commit in a fixed
priority order: checkmate, stalemate, insufficient material, move-limit draw.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from minichess.config import CONFIG
from minichess.core.board import Move, MoveRecord, Position, in_bounds
from minichess.core.errors import (
    GameAlreadyOver,
    IllegalDestination,
    MalformedMove,
    MoveError,
    NoPieceAtOrigin,
    OutOfBounds,
    PromotionRequired,
    SelfCheck,
    WrongSideToMove,
)
from minichess.core.movegen import (
    all_moves,
    is_attacked,
    leaves_king_attacked,
    piece_moves,
    promotion_rank,
)
from minichess.core.pieces import MINOR_TYPES, PROMOTION_TYPES, Color, Piece, PieceType, piece_for

logger = logging.getLogger(__name__)


class GameResult(Enum):
    NONE = "none"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    INSUFFICIENT_MATERIAL = "insufficient-material"
    MOVE_LIMIT_DRAW = "move-limit-draw"


class Winner(Enum):
    WHITE = "w"
    BLACK = "b"
    DRAW = "draw"
    NONE = "none"

    @classmethod
    def of(cls, color: Color) -> "Winner":
        return cls.WHITE if color is Color.WHITE else cls.BLACK


@dataclass(frozen=True)
class GameStatus:
    over: bool
    kind: GameResult
    winner: Winner
    message: str
    in_check: bool = False
    captured: Optional[Piece] = None

    def to_dict(self) -> dict:
        return {
            "isOver": self.over,
            "result": None if self.kind is GameResult.NONE else self.kind.value,
            "winner": None if self.winner is Winner.NONE else self.winner.value,
            "message": self.message,
            "inCheck": self.in_check,
            "captured": self.captured.symbol if self.captured else None,
        }


def is_check(position: Position, color: Color) -> bool:
    """One-ply test: does any pseudo-legal opponent move target ``color``'s king?"""
    king = position.find_king(color)
    if king is None:
        return False
    return is_attacked(position, king, color.opponent)


def has_legal_move(position: Position, color: Color) -> bool:
    """Simulate every candidate on a clone; True on the first one that commits."""
    for move in all_moves(position, color):
        trial = position.clone()
        trial.turn = color
        trial.result = None
        try:
            apply_move(trial, move, update_status=False)
        except MoveError:
            continue
        return True
    return False


def is_checkmate(position: Position, color: Color) -> bool:
    return is_check(position, color) and not has_legal_move(position, color)


def is_stalemate(position: Position, color: Color) -> bool:
    return not is_check(position, color) and not has_legal_move(position, color)


def is_insufficient_material(position: Position) -> bool:
    pieces = [p for _sq, p in position.squares()]
    if len(pieces) <= 2:
        return True
    if len(pieces) == 3:
        non_kings = [p for p in pieces if p.kind is not PieceType.KING]
        return len(non_kings) == 1 and non_kings[0].kind in MINOR_TYPES
    return False


def get_game_status(position: Position, captured: Optional[Piece] = None,
                    move_limit: Optional[int] = None) -> GameStatus:
    """Derive the status of ``position`` for the side to move."""
    side = position.turn
    mover = side.opponent
    in_check = is_check(position, side)
    limit = CONFIG.rules.move_limit if move_limit is None else move_limit

    if not has_legal_move(position, side):
        if in_check:
            return GameStatus(True, GameResult.CHECKMATE, Winner.of(mover),
                              f"Checkmate! {mover.label} wins!", True, captured)
        return GameStatus(True, GameResult.STALEMATE, Winner.DRAW,
                          "Game drawn by stalemate!", False, captured)

    if is_insufficient_material(position):
        return GameStatus(True, GameResult.INSUFFICIENT_MATERIAL, Winner.DRAW,
                          "Game drawn by insufficient material!", in_check, captured)

    if len(position.move_history) >= limit:
        return GameStatus(True, GameResult.MOVE_LIMIT_DRAW, Winner.DRAW,
                          "Game drawn by move limit!", in_check, captured)

    if in_check:
        return GameStatus(False, GameResult.NONE, Winner.NONE,
                          f"{side.label} is in check!", True, captured)
    return GameStatus(False, GameResult.NONE, Winner.NONE,
                      f"{side.label} to move", False, captured)


def _coerce_move(move: Union[Move, dict]) -> Move:
    if isinstance(move, Move):
        return move
    if isinstance(move, dict):
        return Move.from_coords(move.get("from"), move.get("to"), move.get("promotion"))
    raise MalformedMove("Invalid move format. Expected {from: [row, col], to: [row, col]}")


def apply_move(position: Position, move: Union[Move, dict],
               update_status: bool = True) -> Optional[GameStatus]:
    """Validate and commit ``move``; the position is untouched on failure.

    Returns the new status, or ``None`` when ``update_status`` is False (the
    search derives terminal states itself and skips the cost).
    """
    move = _coerce_move(move)
    if position.result is not None and position.result.over:
        raise GameAlreadyOver(f"Game is over: {position.result.message}")

    (fr, fc), (tr, tc) = move.from_sq, move.to_sq
    if not in_bounds(fr, fc) or not in_bounds(tr, tc):
        raise OutOfBounds("Move out of bounds")

    piece = position.board[fr][fc]
    if piece is None:
        raise NoPieceAtOrigin("No piece at selected position")
    if piece.color is not position.turn:
        raise WrongSideToMove(f"Not your turn. It is {position.turn.label}'s turn.")

    if not any(m.to_sq == move.to_sq for m in piece_moves(position, move.from_sq)):
        raise IllegalDestination("Invalid move for this piece")

    promotion = None
    if piece.kind is PieceType.PAWN and tr == promotion_rank(piece.color):
        if move.promotion not in PROMOTION_TYPES:
            raise PromotionRequired("Promotion required. Choose from q, r, b, n.")
        promotion = move.promotion

    if leaves_king_attacked(position, Move(move.from_sq, move.to_sq, promotion)):
        raise SelfCheck("Move would leave king in check")

    captured = position.board[tr][tc]
    position.board[tr][tc] = piece_for(piece.color, promotion) if promotion else piece
    position.board[fr][fc] = None
    position.move_history.append(
        MoveRecord(move.from_sq, move.to_sq, piece, captured is not None, promotion)
    )
    position.turn = position.turn.opponent

    if not update_status:
        return None

    status = get_game_status(position, captured)
    position.result = status
    logger.debug("%s played %s -> %s", piece.symbol, move, status.message)
    if status.over:
        logger.info("Game over: %s", status.message)
    return status
