"""Pseudo-legal and legal move generation for the 6x5 board.

Ordering is part of the contract: ``all_moves`` walks the board row-major
with ascending columns, and each piece emits its moves in the fixed order
below. Search move ordering and the "no legal move" checks depend on it.
"""

from typing import List, Optional

from minichess.core.board import ROWS, Move, Position, Square, in_bounds
from minichess.core.pieces import Color, PieceType, piece_for

KNIGHT_OFFSETS = ((2, 1), (2, -1), (-2, 1), (-2, -1), (1, 2), (1, -2), (-1, 2), (-1, -2))
KING_OFFSETS = ((1, 0), (-1, 0), (0, 1), (0, -1), (1, 1), (1, -1), (-1, 1), (-1, -1))
ROOK_DIRECTIONS = ((1, 0), (-1, 0), (0, 1), (0, -1))
BISHOP_DIRECTIONS = ((1, 1), (1, -1), (-1, 1), (-1, -1))


def pawn_direction(color: Color) -> int:
    return -1 if color is Color.WHITE else 1


def start_rank(color: Color) -> int:
    return ROWS - 2 if color is Color.WHITE else 1


def promotion_rank(color: Color) -> int:
    return 0 if color is Color.WHITE else ROWS - 1


def _pawn_moves(position: Position, square: Square, color: Color) -> List[Move]:
    r, c = square
    board = position.board
    step = pawn_direction(color)
    last = promotion_rank(color)
    moves = []

    fr = r + step
    if not in_bounds(fr, c):
        return moves

    if board[fr][c] is None:
        moves.append(Move(square, (fr, c), PieceType.QUEEN if fr == last else None))
        if r == start_rank(color) and board[fr + step][c] is None:
            moves.append(Move(square, (fr + step, c)))

    for side in (-1, 1):
        fc = c + side
        if not in_bounds(fr, fc):
            continue
        target = board[fr][fc]
        if target is not None and target.color is not color:
            moves.append(Move(square, (fr, fc), PieceType.QUEEN if fr == last else None))
    return moves


def _step_moves(position: Position, square: Square, color: Color, offsets) -> List[Move]:
    r, c = square
    moves = []
    for dr, dc in offsets:
        nr, nc = r + dr, c + dc
        if not in_bounds(nr, nc):
            continue
        target = position.board[nr][nc]
        if target is None or target.color is not color:
            moves.append(Move(square, (nr, nc)))
    return moves


def _ray_moves(position: Position, square: Square, color: Color, directions) -> List[Move]:
    r, c = square
    moves = []
    for dr, dc in directions:
        nr, nc = r + dr, c + dc
        while in_bounds(nr, nc):
            target = position.board[nr][nc]
            if target is None:
                moves.append(Move(square, (nr, nc)))
            else:
                if target.color is not color:
                    moves.append(Move(square, (nr, nc)))
                break
            nr += dr
            nc += dc
    return moves


def piece_moves(position: Position, square: Square) -> List[Move]:
    """Pseudo-legal moves of the piece on ``square`` (own king safety ignored)."""
    piece = position.piece_at(square)
    if piece is None:
        return []
    color = piece.color
    kind = piece.kind
    if kind is PieceType.PAWN:
        return _pawn_moves(position, square, color)
    if kind is PieceType.KNIGHT:
        return _step_moves(position, square, color, KNIGHT_OFFSETS)
    if kind is PieceType.BISHOP:
        return _ray_moves(position, square, color, BISHOP_DIRECTIONS)
    if kind is PieceType.ROOK:
        return _ray_moves(position, square, color, ROOK_DIRECTIONS)
    if kind is PieceType.QUEEN:
        return (_ray_moves(position, square, color, ROOK_DIRECTIONS)
                + _ray_moves(position, square, color, BISHOP_DIRECTIONS))
    return _step_moves(position, square, color, KING_OFFSETS)


def all_moves(position: Position, color: Optional[Color] = None) -> List[Move]:
    color = color or position.turn
    moves = []
    for sq, _piece in position.squares(color):
        moves.extend(piece_moves(position, sq))
    return moves


def is_attacked(position: Position, square: Square, by_color: Color) -> bool:
    """True if any pseudo-legal move of ``by_color`` lands on ``square``."""
    return any(m.to_sq == square for m in all_moves(position, by_color))


def scratch_after(position: Position, move: Move) -> Position:
    """Grid-only copy of ``position`` with ``move`` played, for safety tests.

    History and result are not carried over and the turn is not flipped.
    """
    grid = [row[:] for row in position.board]
    (fr, fc), (tr, tc) = move.from_sq, move.to_sq
    piece = grid[fr][fc]
    if piece is not None and piece.kind is PieceType.PAWN and tr == promotion_rank(piece.color):
        piece = piece_for(piece.color, move.promotion or PieceType.QUEEN)
    grid[tr][tc] = piece
    grid[fr][fc] = None
    return Position(grid, position.turn, [], None)


def leaves_king_attacked(position: Position, move: Move) -> bool:
    """True if playing ``move`` leaves the mover's own king attacked."""
    mover = position.piece_at(move.from_sq)
    if mover is None:
        return False
    after = scratch_after(position, move)
    king = after.find_king(mover.color)
    if king is None:
        return False
    return is_attacked(after, king, mover.color.opponent)


def legal_moves(position: Position, square: Square) -> List[Move]:
    """Moves of the piece on ``square`` that do not expose its own king."""
    return [m for m in piece_moves(position, square) if not leaves_king_attacked(position, m)]


def legal_moves_for(position: Position, color: Optional[Color] = None) -> List[Move]:
    color = color or position.turn
    return [m for m in all_moves(position, color) if not leaves_king_attacked(position, m)]


def captures(position: Position, color: Optional[Color] = None) -> List[Move]:
    """Pseudo-legal moves of ``color`` that land on an occupied square."""
    board = position.board
    return [m for m in all_moves(position, color) if board[m.to_sq[0]][m.to_sq[1]] is not None]
