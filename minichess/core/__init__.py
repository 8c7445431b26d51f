"""Core engine components: board, move generation, rules, evaluator, search, and transposition table."""

from .board import Move, MoveRecord, Position, clone, in_bounds
from .evaluator import Evaluator
from .pieces import Color, Piece, PieceType
from .rules import GameResult, GameStatus, Winner, apply_move, get_game_status
from .search import BestMove, SearchEngine
from .transposition import TranspositionTable
