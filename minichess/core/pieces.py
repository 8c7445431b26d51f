"""Piece, colour and piece-type value types.

A square holds either a ``Piece`` or ``None`` (empty). The one-character
text encoding (upper case white, lower case black, ``.`` empty) is only used
at the edges: parsing boards, printing, and transposition keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

EMPTY = "."


class Color(Enum):
    WHITE = "w"
    BLACK = "b"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def label(self) -> str:
        return "White" if self is Color.WHITE else "Black"

    @classmethod
    def parse(cls, value) -> "Color":
        if isinstance(value, Color):
            return value
        text = str(value).lower()
        if text in ("w", "white"):
            return cls.WHITE
        if text in ("b", "black"):
            return cls.BLACK
        raise ValueError(f"Unknown colour: {value!r}")


class PieceType(Enum):
    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"

    @classmethod
    def from_symbol(cls, symbol: str) -> "PieceType":
        return cls(symbol.lower())


PROMOTION_TYPES = (PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT)
MINOR_TYPES = (PieceType.KNIGHT, PieceType.BISHOP)


@dataclass(frozen=True)
class Piece:
    color: Color
    kind: PieceType

    @property
    def symbol(self) -> str:
        s = self.kind.value
        return s.upper() if self.color is Color.WHITE else s

    def __str__(self) -> str:
        return self.symbol

    @classmethod
    def from_symbol(cls, symbol: str) -> "Piece":
        piece = _BY_SYMBOL.get(symbol)
        if piece is None:
            raise ValueError(f"Unknown piece symbol: {symbol!r}")
        return piece


# interned instances, one per (color, kind)
_BY_SYMBOL: Dict[str, Piece] = {}
for _color in Color:
    for _kind in PieceType:
        _p = Piece(_color, _kind)
        _BY_SYMBOL[_p.symbol] = _p


def piece_for(color: Color, kind: PieceType) -> Piece:
    sym = kind.value.upper() if color is Color.WHITE else kind.value
    return _BY_SYMBOL[sym]


def symbol_of(piece: Optional[Piece]) -> str:
    return EMPTY if piece is None else piece.symbol
