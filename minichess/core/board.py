"""6x5 board, moves and position state with move history tracking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence, Tuple

from minichess.core.errors import InvalidPositionFormat, MalformedMove, PromotionRequired
from minichess.core.pieces import EMPTY, Color, Piece, PieceType, symbol_of

if TYPE_CHECKING:
    from minichess.core.rules import GameStatus

ROWS = 6
COLS = 5

Square = Tuple[int, int]

INITIAL_ROWS = (
    "rnbqk",
    "ppppp",
    ".....",
    ".....",
    "PPPPP",
    "RNBQK",
)


def in_bounds(row: int, col: int) -> bool:
    return 0 <= row < ROWS and 0 <= col < COLS


def coerce_square(value) -> Square:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise MalformedMove("Invalid move format. Expected {from: [row, col], to: [row, col]}")
    row, col = value
    if isinstance(row, bool) or isinstance(col, bool) or not isinstance(row, int) or not isinstance(col, int):
        raise MalformedMove("Move coordinates must be integers")
    return (row, col)


@dataclass(frozen=True)
class Move:
    from_sq: Square
    to_sq: Square
    promotion: Optional[PieceType] = None

    @classmethod
    def from_coords(cls, from_sq, to_sq, promotion=None) -> "Move":
        """Build a move from loosely typed input (lists, ``"q"`` strings)."""
        src = coerce_square(from_sq)
        dst = coerce_square(to_sq)
        if promotion is None or isinstance(promotion, PieceType):
            return cls(src, dst, promotion)
        try:
            kind = PieceType.from_symbol(str(promotion))
        except ValueError:
            raise PromotionRequired(
                "Invalid promotion piece. Choose from q, r, b, n."
            ) from None
        return cls(src, dst, kind)

    def same_path(self, other: "Move") -> bool:
        return self.from_sq == other.from_sq and self.to_sq == other.to_sq

    def to_dict(self) -> dict:
        return {
            "from": list(self.from_sq),
            "to": list(self.to_sq),
            "promotion": self.promotion.value if self.promotion else None,
        }

    def __str__(self) -> str:
        s = f"{self.from_sq[0]},{self.from_sq[1]}-{self.to_sq[0]},{self.to_sq[1]}"
        if self.promotion:
            s += f"={self.promotion.value}"
        return s


@dataclass(frozen=True)
class MoveRecord:
    """A committed move as kept in ``Position.move_history``."""

    from_sq: Square
    to_sq: Square
    piece: Piece
    captured: bool = False
    promotion: Optional[PieceType] = None

    @property
    def path(self) -> Tuple[Square, Square]:
        return (self.from_sq, self.to_sq)

    def to_dict(self) -> dict:
        return {
            "from": list(self.from_sq),
            "to": list(self.to_sq),
            "piece": self.piece.symbol,
            "captured": self.captured,
            "promotion": self.promotion.value if self.promotion else None,
        }


def _parse_rows(rows: Sequence[Sequence[str]]) -> List[List[Optional[Piece]]]:
    if not isinstance(rows, (list, tuple)) or len(rows) != ROWS:
        raise InvalidPositionFormat(f"Invalid board format. Expected {ROWS} rows of {COLS} squares")
    grid = []
    for row in rows:
        if not isinstance(row, (list, tuple, str)) or len(row) != COLS:
            raise InvalidPositionFormat(f"Invalid board format. Expected {ROWS} rows of {COLS} squares")
        parsed = []
        for token in row:
            if token == EMPTY or token is None:
                parsed.append(None)
                continue
            try:
                parsed.append(Piece.from_symbol(token))
            except (ValueError, TypeError):
                raise InvalidPositionFormat(f"Unknown square token: {token!r}") from None
        grid.append(parsed)
    return grid


class Position:
    """Board grid, side to move, move history and last computed result."""

    def __init__(
        self,
        board: Optional[List[List[Optional[Piece]]]] = None,
        turn: Color = Color.WHITE,
        move_history: Optional[List[MoveRecord]] = None,
        result: Optional["GameStatus"] = None,
    ):
        self.board = board if board is not None else _parse_rows(INITIAL_ROWS)
        self.turn = turn
        self.move_history = move_history if move_history is not None else []
        self.result = result

    @classmethod
    def initial(cls) -> "Position":
        return cls()

    @classmethod
    def from_rows(cls, rows, turn="w", history: Optional[List[MoveRecord]] = None) -> "Position":
        """Build a position from a 6x5 array of tokens. Fails fast on bad input."""
        grid = _parse_rows(rows)
        try:
            color = Color.parse(turn)
        except ValueError:
            raise InvalidPositionFormat(f"Invalid turn value: {turn!r}") from None
        return cls(grid, color, list(history or []))

    def reset(self):
        """Reset to the initial position."""
        self.board = _parse_rows(INITIAL_ROWS)
        self.turn = Color.WHITE
        self.move_history.clear()
        self.result = None

    def clone(self) -> "Position":
        # MoveRecord and Piece are immutable, so copying the containers is a deep copy
        return Position([row[:] for row in self.board], self.turn, self.move_history[:], self.result)

    def piece_at(self, square: Square) -> Optional[Piece]:
        row, col = square
        return self.board[row][col]

    def squares(self, color: Optional[Color] = None) -> Iterator[Tuple[Square, Piece]]:
        """Yield occupied squares in row-major order, optionally for one colour."""
        for r in range(ROWS):
            for c in range(COLS):
                piece = self.board[r][c]
                if piece is not None and (color is None or piece.color is color):
                    yield (r, c), piece

    def find_king(self, color: Color) -> Optional[Square]:
        for sq, piece in self.squares(color):
            if piece.kind is PieceType.KING:
                return sq
        return None

    def piece_count(self) -> int:
        return sum(1 for _ in self.squares())

    def key(self) -> str:
        """Serialization of (board, turn), used as the transposition key."""
        return "".join(symbol_of(p) for row in self.board for p in row) + self.turn.value

    def to_rows(self) -> List[List[str]]:
        return [[symbol_of(p) for p in row] for row in self.board]

    def __str__(self) -> str:
        return "\n".join(" ".join(row) for row in self.to_rows())

    def print_board(self):
        """Print ASCII representation."""
        print(self)


def clone(position: Position) -> Position:
    return position.clone()
