"""Game facade: the four operations the outer layers (HTTP, CLI) consume."""

import logging
import random
from typing import List, Optional

from minichess.config import CONFIG, GAME_MODES
from minichess.core.board import Move, Position, Square, coerce_square, in_bounds
from minichess.core.errors import InvalidGameMode, NoPieceAtOrigin, OutOfBounds, WrongSideToMove
from minichess.core.evaluator import Evaluator
from minichess.core.movegen import legal_moves
from minichess.core.pieces import Color
from minichess.core.rules import GameStatus, apply_move, get_game_status
from minichess.core.search import BestMove, SearchEngine

logger = logging.getLogger(__name__)


def check_mode(mode: str) -> str:
    if mode not in GAME_MODES:
        raise InvalidGameMode(f"Invalid game mode: {mode!r}. Choose from {', '.join(GAME_MODES)}")
    return mode


def engine_for(mode: str, rng: Optional[random.Random] = None) -> SearchEngine:
    check_mode(mode)
    return SearchEngine(Evaluator(), rng=rng, depth=CONFIG.search.depth_for(mode))


def valid_moves(position: Position, square: Square, turn=None) -> List[Move]:
    """Legal moves of the mover's piece on ``square`` (post check-filter)."""
    side = Color.parse(turn) if turn is not None else position.turn
    square = coerce_square(square)
    row, col = square
    if not in_bounds(row, col):
        raise OutOfBounds("Square out of bounds")
    piece = position.piece_at(square)
    if piece is None:
        raise NoPieceAtOrigin("No piece at selected position")
    if piece.color is not side:
        raise WrongSideToMove(f"Invalid piece selection. It is {side.label}'s turn.")
    return legal_moves(position, square)


def play_move(position: Position, move) -> GameStatus:
    return apply_move(position, move)


def engine_move(position: Position, time_limit_ms: Optional[int] = None, mode: str = "ai",
                engine: Optional[SearchEngine] = None) -> BestMove:
    engine = engine or engine_for(mode)
    if time_limit_ms is None:
        time_limit_ms = CONFIG.search.time_limit_for(mode)
    return engine.get_best_move(position, time_limit_ms)


class Game:
    def __init__(self, mode: str = "human", position: Optional[Position] = None,
                 rng: Optional[random.Random] = None):
        self.mode = check_mode(mode)
        self.position = position or Position.initial()
        self.search = engine_for(mode, rng)
        self.time_limit_ms = CONFIG.search.time_limit_for(mode)

    @property
    def turn(self) -> Color:
        return self.position.turn

    def status(self) -> GameStatus:
        return self.position.result or get_game_status(self.position)

    def is_game_over(self) -> bool:
        return self.status().over

    def valid_moves(self, square: Square) -> List[Move]:
        return valid_moves(self.position, square)

    def make_move(self, move) -> GameStatus:
        return apply_move(self.position, move)

    def engine_move(self, time_limit_ms: Optional[int] = None) -> Optional[BestMove]:
        """Let the engine pick and play a move. Returns None if it has none."""
        if time_limit_ms is None:
            time_limit_ms = self.time_limit_ms
        best = self.search.get_best_move(self.position, time_limit_ms)
        if best.move is None:
            return None
        apply_move(self.position, best.move)
        logger.info("Engine plays %s (eval %.2f, depth %d)", best.move, best.evaluation, best.depth)
        return best

    def print_board(self):
        self.position.print_board()


def new_game(mode: str = "human", rng: Optional[random.Random] = None) -> Game:
    """Fresh standard 6x5 game, white to move."""
    return Game(mode, rng=rng)
