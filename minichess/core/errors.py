"""Exception hierarchy for rules and position handling.

Every class carries a stable ``kind`` string so adapters (HTTP, CLI) can
report the failure without matching on messages.
"""


class MiniChessError(Exception):
    kind = "error"


class InvalidPositionFormat(MiniChessError):
    """A position supplied from outside is not a 6x5 grid of known tokens."""

    kind = "invalid_position_format"


class InvalidGameMode(MiniChessError):
    kind = "invalid_game_mode"


class MoveError(MiniChessError):
    """Base for every recoverable failure of applying a move."""

    kind = "move_error"


class InvalidMove(MoveError):
    kind = "invalid_move"


class MalformedMove(InvalidMove):
    kind = "malformed_move"


class OutOfBounds(InvalidMove):
    kind = "out_of_bounds"


class NoPieceAtOrigin(InvalidMove):
    kind = "no_piece_at_origin"


class WrongSideToMove(InvalidMove):
    kind = "wrong_side_to_move"


class IllegalDestination(InvalidMove):
    kind = "illegal_destination"


class SelfCheck(InvalidMove):
    kind = "self_check"


class GameAlreadyOver(InvalidMove):
    kind = "game_over"


class PromotionRequired(MoveError):
    """Pawn reached the last rank without a valid promotion choice.

    Deliberately not an ``InvalidMove``: callers re-prompt for a piece
    instead of rejecting the move.
    """

    kind = "promotion_required"
