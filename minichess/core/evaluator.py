"""Static evaluator: material, position tables, king exposure, pawns, mobility."""

from minichess.config import CONFIG, EvalConfig
from minichess.core.board import COLS, ROWS, Position
from minichess.core.movegen import all_moves
from minichess.core.pieces import Color, PieceType


class Evaluator:
    def __init__(self, cfg: EvalConfig = None):
        self.cfg = cfg or CONFIG.eval

    def evaluate(self, position: Position) -> float:
        """Return static eval in pawn units, positive favors White."""
        cfg = self.cfg
        board = position.board
        score = 0.0

        for (r, c), piece in position.squares():
            p_name = piece.kind.name
            value = cfg.piece_values.get(p_name, 0.0)

            if cfg.use_positional:
                table = cfg.position_tables.get(p_name)
                if table:
                    # black reads the same square unless mirroring is enabled
                    tr = ROWS - 1 - r if cfg.mirror_black and piece.color is Color.BLACK else r
                    value += table[tr][c]

            if piece.kind is PieceType.KING and r in (0, ROWS - 1) and c in (0, COLS - 1):
                value -= cfg.king_exposed_penalty

            if piece.kind is PieceType.PAWN:
                value -= self._pawn_penalty(board, r, c, piece.color)

            score += value if piece.color is Color.WHITE else -value

        white_moves = len(all_moves(position, Color.WHITE))
        black_moves = len(all_moves(position, Color.BLACK))
        score += (white_moves - black_moves) * cfg.mobility_weight
        return score

    def relative(self, position: Position) -> float:
        """Evaluation from the side to move's point of view (negamax)."""
        score = self.evaluate(position)
        return score if position.turn is Color.WHITE else -score

    def _pawn_penalty(self, board, row, col, color) -> float:
        """Isolated and doubled pawn penalties for the pawn at (row, col)."""
        weights = self.cfg.pawn_structure_weights
        penalty = 0.0

        doubled = False
        isolated = True
        for r in range(ROWS):
            for c in (col - 1, col, col + 1):
                if not 0 <= c < COLS or (r == row and c == col):
                    continue
                p = board[r][c]
                if p is None or p.kind is not PieceType.PAWN or p.color is not color:
                    continue
                if c == col:
                    doubled = True
                else:
                    isolated = False

        if isolated:
            penalty += weights.get("isolated_penalty", 0.0)
        if doubled:
            penalty += weights.get("doubled_penalty", 0.0)
        return penalty
