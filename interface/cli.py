"""Play MiniChess in the terminal.

Moves are typed as ``row,col row,col`` with an optional promotion letter,
e.g. ``4,2 3,2`` or ``1,0 0,0 q``. Row 0 is black's back rank.
"""

import argparse
import logging
import sys
from typing import Optional

from minichess.config import CONFIG, GAME_MODES
from minichess.core.board import Move
from minichess.core.errors import MiniChessError
from minichess.core.pieces import Color
from minichess.core.utils import configure_logging
from minichess.main import Game, new_game

logger = logging.getLogger(__name__)


def parse_move(text: str) -> Move:
    parts = text.replace("-", " ").split()
    if len(parts) not in (2, 3):
        raise ValueError("expected 'row,col row,col [promotion]'")
    squares = []
    for part in parts[:2]:
        row, _, col = part.partition(",")
        squares.append([int(row), int(col)])
    promotion = parts[2] if len(parts) == 3 else None
    return Move.from_coords(squares[0], squares[1], promotion)


def human_turn(game: Game) -> bool:
    """Prompt until a legal move is played. Returns False on quit."""
    while True:
        text = input(f"{game.turn.label} move (or 'quit'): ").strip()
        if text in ("quit", "exit", "q"):
            return False
        try:
            status = game.make_move(parse_move(text))
        except ValueError as exc:
            print(f"Bad input: {exc}")
            continue
        except MiniChessError as exc:
            print(f"Illegal move: {exc}")
            continue
        print(status.message)
        return True


def run(mode: str, time_limit_ms: Optional[int] = None, human: Color = Color.WHITE) -> Game:
    game = new_game(mode)
    while not game.is_game_over():
        print(game.position)
        print("-" * 10)
        if mode == "human" or (mode == "ai" and game.turn is human):
            if not human_turn(game):
                break
            continue
        best = game.engine_move(time_limit_ms)
        if best is None:
            break
        print(f"Engine plays: {best.move} | Eval: {best.evaluation:.2f}")

    print(game.position)
    print(game.status().message)
    return game


def main(argv=None):
    parser = argparse.ArgumentParser(description=f"{CONFIG.ui.engine_name} terminal game")
    parser.add_argument("--mode", choices=GAME_MODES, default=CONFIG.ui.default_mode, help="Game mode")
    parser.add_argument("--time", type=int, default=None, help="Engine time per move in ms")
    parser.add_argument("--black", action="store_true", help="Play black against the engine")
    parser.add_argument("--log-level", default=None, help="Logging level (default from config)")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    try:
        run(args.mode, args.time, Color.BLACK if args.black else Color.WHITE)
    except (KeyboardInterrupt, EOFError):
        print()
        logger.info("Game aborted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
