import logging
import random
import time
from collections import Counter
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from minichess.config import CONFIG, SearchConfig
from minichess.core.board import Move, Position
from minichess.core.errors import MoveError
from minichess.core.evaluator import Evaluator
from minichess.core.movegen import all_moves, captures, leaves_king_attacked
from minichess.core.pieces import Color
from minichess.core.rules import apply_move, is_check, is_insufficient_material
from minichess.core.transposition import TT_EXACT, TT_LOWER, TT_UPPER, TranspositionTable
from minichess.core.utils import format_search_info

logger = logging.getLogger(__name__)

INF = float("inf")


@dataclass
class SearchContext:
    """Per-call search state threaded through the recursion.

    ``stopped`` is the shared early-stop flag: once the deadline passes every
    frame unwinds with a best-effort score and nothing more is stored.
    """

    deadline: float
    tt: TranspositionTable
    stopped: bool = False
    nodes: int = 0

    def out_of_time(self) -> bool:
        if not self.stopped and time.monotonic() >= self.deadline:
            self.stopped = True
        return self.stopped


@dataclass
class SearchResult:
    score: float
    best_move: Optional[Move] = None


@dataclass
class BestMove:
    move: Optional[Move]
    evaluation: Optional[float]  # White's perspective
    depth: int = 0
    nodes: int = 0


class SearchEngine:
    """Iterative-deepening negamax with quiescence and a per-call TT.

    Root selection is randomized among near-best moves to avoid move loops in
    long games. Pass ``rng=random.Random(seed)`` (or set ``SearchConfig.seed``)
    to make it reproducible.
    """

    def __init__(self, evaluator: Optional[Evaluator] = None, config: Optional[SearchConfig] = None,
                 rng: Optional[random.Random] = None, depth: Optional[int] = None,
                 move_limit: Optional[int] = None):
        self.evaluator = evaluator or Evaluator()
        self.cfg = config or CONFIG.search
        self.max_depth = depth or self.cfg.depth
        self.mate_score = self.evaluator.cfg.mate_score
        self.move_limit = CONFIG.rules.move_limit if move_limit is None else move_limit
        self.rng = rng or random.Random(self.cfg.seed)
        self.last_tt: Optional[TranspositionTable] = None
        self.nodes = 0

    # ── Public entry point ────────────────────────────────────────────────

    def get_best_move(self, position: Position, time_limit_ms: Optional[int] = None,
                      max_depth: Optional[int] = None) -> BestMove:
        if time_limit_ms is None:
            time_limit_ms = self.cfg.time_limit_ms
        target_depth = max(1, min(max_depth or self.max_depth, self.cfg.max_depth_limit))

        start_time = time.monotonic()
        ctx = SearchContext(start_time + time_limit_ms / 1000.0, TranspositionTable(self.cfg.tt_capacity))
        self.last_tt = ctx.tt
        root = position.clone()

        legal = list(self._children(root))
        if not legal:
            score = self._no_move_score(root, 0)
            return BestMove(None, self._white_pov(root, score), 0, 0)
        if len(legal) == 1:
            move, child = legal[0]
            return BestMove(move, self._static_score(child), 0, 1)

        best_move = None
        best_score = None
        completed = 0

        # Iterative Deepening
        for d in range(1, target_depth + 1):
            if ctx.out_of_time():
                break
            result = self.alpha_beta(root, d, -INF, INF, ctx)
            if ctx.stopped:
                break  # keep the previous completed depth

            if result.best_move is not None:
                best_move = result.best_move
                best_score = result.score
                completed = d

            elapsed = time.monotonic() - start_time
            logger.info(format_search_info(d, result.score, ctx.nodes, elapsed, result.best_move,
                                           self.mate_score))
            if best_score is not None and abs(best_score) >= self.mate_score - target_depth:
                break

        self.nodes = ctx.nodes
        if best_move is None:
            move, _child = self.rng.choice(legal)
            logger.debug("No completed depth, falling back to a random legal move")
            return BestMove(move, self.evaluator.evaluate(root), 0, ctx.nodes)

        chosen = self._diversify(root, legal, best_move, completed, ctx)
        return BestMove(chosen, self._white_pov(root, best_score), completed, ctx.nodes)

    # ── Alpha-beta ────────────────────────────────────────────────────────

    def alpha_beta(self, position: Position, depth: int, alpha: float, beta: float,
                   ctx: SearchContext, ply: int = 0) -> SearchResult:
        """Negamax alpha-beta; scores are relative to the side to move."""
        ctx.nodes += 1
        if ctx.out_of_time():
            return SearchResult(self.evaluator.relative(position))

        alpha_orig = alpha

        # TT Lookup
        entry = ctx.tt.get(position)
        tt_move = None
        if entry is not None:
            tt_move = entry.best_move
            if entry.depth >= depth:
                if entry.flag == TT_EXACT:
                    return SearchResult(entry.value, entry.best_move)
                if entry.flag == TT_LOWER:
                    alpha = max(alpha, entry.value)
                elif entry.flag == TT_UPPER:
                    beta = min(beta, entry.value)
                if alpha >= beta:
                    return SearchResult(entry.value, entry.best_move)

        terminal = self._terminal_score(position, ply)
        if terminal is not None:
            return SearchResult(terminal)

        if depth <= 0:
            if not self._has_legal_move(position):
                return SearchResult(self._no_move_score(position, ply))
            return SearchResult(self.quiescence(position, alpha, beta, 0, ctx))

        best_score = -INF
        best_move = None
        searched = 0

        for move, child in self._children(position, tt_move):
            searched += 1
            score = -self.alpha_beta(child, depth - 1, -beta, -alpha, ctx, ply + 1).score
            if ctx.stopped:
                break

            if score > best_score:
                best_score = score
                best_move = move
            if score > alpha:
                alpha = score
            if alpha >= beta:
                break

        if searched == 0:
            score = self._no_move_score(position, ply)
            ctx.tt.store(position, depth, score, TT_EXACT, None)
            return SearchResult(score)

        if ctx.stopped:
            if best_move is None:
                return SearchResult(self.evaluator.relative(position))
            return SearchResult(best_score, best_move)

        if best_score <= alpha_orig:
            flag = TT_UPPER
        elif best_score >= beta:
            flag = TT_LOWER
        else:
            flag = TT_EXACT
        ctx.tt.store(position, depth, best_score, flag, best_move)
        return SearchResult(best_score, best_move)

    def quiescence(self, position: Position, alpha: float, beta: float, depth: int,
                   ctx: SearchContext) -> float:
        """Capture-only extension past the horizon, capped at ``q_max_depth``."""
        ctx.nodes += 1
        stand_pat = self.evaluator.relative(position)
        if not self.cfg.use_quiescence or depth >= self.cfg.q_max_depth or ctx.out_of_time():
            return stand_pat

        if stand_pat >= beta:
            return beta
        if stand_pat > alpha:
            alpha = stand_pat

        for move in self._order(position, captures(position)):
            child = self._play(position, move)
            if child is None:
                continue
            score = -self.quiescence(child, -beta, -alpha, depth + 1, ctx)
            if score >= beta:
                return beta
            if score > alpha:
                alpha = score
        return alpha

    # ── Root diversification ──────────────────────────────────────────────

    def _diversify(self, root: Position, legal: List[Tuple[Move, Position]], best_move: Move,
                   completed: int, ctx: SearchContext) -> Move:
        """Re-score root moves with repetition penalties and draw from the near-best pool."""
        if ctx.out_of_time():
            return best_move

        patterns = Counter(rec.path for rec in root.move_history)
        window = self.cfg.recent_window
        recent = root.move_history[-window:] if window > 0 else []

        scored = []
        for move, child in legal:
            score = -self.alpha_beta(child, completed - 1, -INF, INF, ctx, 1).score
            if ctx.stopped:
                return best_move
            piece = root.piece_at(move.from_sq)
            score -= patterns[(move.from_sq, move.to_sq)] * self.cfg.repetition_penalty
            score -= sum(1 for rec in recent if rec.piece == piece) * self.cfg.same_piece_penalty
            scored.append((score, move))

        scored.sort(key=lambda item: item[0], reverse=True)
        threshold = scored[0][0] - self.cfg.candidate_window
        pool = [move for score, move in scored if score >= threshold]
        if not pool:
            return best_move

        weights = [1.0 / (rank + 1) for rank in range(len(pool))]
        chosen = self.rng.choices(pool, weights=weights, k=1)[0]
        logger.debug("Picked %s from %d candidate moves", chosen, len(pool))
        return chosen

    # ── Helpers ───────────────────────────────────────────────────────────

    def _play(self, position: Position, move: Move) -> Optional[Position]:
        child = position.clone()
        try:
            apply_move(child, move, update_status=False)
        except MoveError:
            return None
        return child

    def _children(self, position: Position, tt_move: Optional[Move] = None) -> Iterator[Tuple[Move, Position]]:
        for move in self._order(position, all_moves(position), tt_move):
            child = self._play(position, move)
            if child is not None:
                yield move, child

    def _order(self, position: Position, moves: List[Move], tt_move: Optional[Move] = None) -> List[Move]:
        """TT move first, then captures by victim value; otherwise generator order."""
        values = self.evaluator.cfg.piece_values

        def key(move):
            if tt_move is not None and move == tt_move:
                return -INF
            victim = position.piece_at(move.to_sq)
            if victim is None:
                return 0.0
            return -values.get(victim.kind.name, 0.0) - 0.5

        return sorted(moves, key=key)

    def _has_legal_move(self, position: Position) -> bool:
        return any(not leaves_king_attacked(position, m) for m in all_moves(position))

    def _terminal_score(self, position: Position, ply: int) -> Optional[float]:
        """Draw or mate score for a finished node, None while play goes on.

        Mate outranks the move-limit draw, so the limit only scores 0 once
        the side to move is known to have a reply.
        """
        if is_insufficient_material(position):
            return 0.0
        if len(position.move_history) >= self.move_limit:
            if not self._has_legal_move(position):
                return self._no_move_score(position, ply)
            return 0.0
        return None

    def _static_score(self, position: Position) -> float:
        """White-POV score of a position reached by the only legal root move."""
        if not self._has_legal_move(position):
            return self._white_pov(position, self._no_move_score(position, 1))
        terminal = self._terminal_score(position, 1)
        if terminal is not None:
            return self._white_pov(position, terminal)
        return self.evaluator.evaluate(position)

    def _no_move_score(self, position: Position, ply: int) -> float:
        """Terminal score for a side with no legal move: mated or stalemated."""
        if is_check(position, position.turn):
            return -(self.mate_score - ply)
        return 0.0

    @staticmethod
    def _white_pov(position: Position, score: float) -> float:
        return score if position.turn is Color.WHITE else -score
