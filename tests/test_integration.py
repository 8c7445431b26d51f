"""
Integration test suite for the MiniChess engine.

Tests components working together end-to-end:
- Full game simulations (scripted, engine vs engine)
- Game facade (new_game, valid_moves, play_move, engine_move)
- FastAPI REST API integration
- Terminal interface
"""

import random

import pytest

from minichess.config import CONFIG
from minichess.core.board import INITIAL_ROWS, Move
from minichess.core.errors import (
    InvalidGameMode,
    MalformedMove,
    NoPieceAtOrigin,
    OutOfBounds,
    PromotionRequired,
    WrongSideToMove,
)
from minichess.core.movegen import legal_moves_for
from minichess.core.pieces import Color
from minichess.core.rules import GameResult, Winner
from minichess.main import Game, engine_move, new_game, play_move, valid_moves

MATE_LINE = [
    ((4, 3), (2, 3)),
    ((1, 2), (2, 2)),
    ((5, 3), (4, 3)),
    ((0, 3), (1, 2)),
    ((4, 3), (3, 4)),
    ((0, 1), (2, 0)),
    ((3, 4), (1, 4)),
]


def initial_rows():
    return [list(r) for r in INITIAL_ROWS]


def rows_with(placements):
    rows = [["."] * 5 for _ in range(6)]
    for (r, c), sym in placements.items():
        rows[r][c] = sym
    return rows


@pytest.fixture
def fast_engine(monkeypatch):
    """Keep engine searches shallow and short."""
    monkeypatch.setattr(CONFIG.search, "depth", 1)
    monkeypatch.setattr(CONFIG.search, "exhibition_depth", 1)
    monkeypatch.setattr(CONFIG.search, "time_limit_ms", 200)
    monkeypatch.setattr(CONFIG.search, "exhibition_time_limit_ms", 200)


# ════════════════════════════════════════════════════════════════════════════
#  FULL GAME SIMULATIONS
# ════════════════════════════════════════════════════════════════════════════


class TestFullGame:
    """Complete games through the facade."""

    def test_scripted_checkmate(self):
        game = new_game("human")
        for src, dst in MATE_LINE:
            assert not game.is_game_over()
            game.make_move(Move(src, dst))
        status = game.status()
        assert status.over
        assert status.kind is GameResult.CHECKMATE
        assert status.winner is Winner.WHITE
        assert game.engine_move(100) is None

    def test_engine_vs_engine_plies(self, fast_engine):
        game = Game("ai-vs-ai", rng=random.Random(3))
        played = 0
        for i in range(8):
            if game.is_game_over():
                break
            expected = Color.WHITE if i % 2 == 0 else Color.BLACK
            assert game.turn is expected
            legal = legal_moves_for(game.position)
            best = game.engine_move()
            assert best is not None
            assert best.move in legal
            played += 1
        assert played > 0
        assert len(game.position.move_history) == played

    def test_engine_answers_human(self, fast_engine):
        game = new_game("ai", rng=random.Random(11))
        game.make_move(Move((4, 2), (3, 2)))
        assert game.turn is Color.BLACK
        best = game.engine_move()
        assert best.move.from_sq[0] <= 2  # a black piece moved
        assert game.turn is Color.WHITE

    def test_game_is_deterministic_with_seed(self, fast_engine):
        def play(seed):
            game = Game("ai-vs-ai", rng=random.Random(seed))
            for _ in range(4):
                game.engine_move(10_000)
            return [rec.path for rec in game.position.move_history]

        assert play(5) == play(5)


# ════════════════════════════════════════════════════════════════════════════
#  GAME FACADE
# ════════════════════════════════════════════════════════════════════════════


class TestFacade:
    def test_invalid_mode(self):
        with pytest.raises(InvalidGameMode):
            new_game("blitz")

    def test_valid_moves(self):
        game = new_game()
        assert [m.to_sq for m in game.valid_moves((5, 1))] == [(3, 2), (3, 0)]
        assert game.valid_moves((5, 0)) == []

    @pytest.mark.parametrize("square, error", [
        ((6, 0), OutOfBounds),
        ((3, 3), NoPieceAtOrigin),
        ((1, 0), WrongSideToMove),
    ])
    def test_valid_moves_errors(self, square, error):
        with pytest.raises(error):
            valid_moves(new_game().position, square)

    def test_valid_moves_malformed_square(self):
        pos = new_game().position
        for square in ([1], ("a", 1), None):
            with pytest.raises(MalformedMove):
                valid_moves(pos, square)

    def test_valid_moves_explicit_turn(self):
        game = new_game()
        assert len(valid_moves(game.position, (1, 0), "b")) == 2

    def test_play_move_returns_status(self):
        game = new_game()
        status = play_move(game.position, {"from": [4, 0], "to": [3, 0]})
        assert status.message == "Black to move"

    def test_engine_move_does_not_play(self, fast_engine):
        game = new_game()
        best = engine_move(game.position, 100, "ai")
        assert best.move in legal_moves_for(game.position)
        assert game.position.move_history == []


# ════════════════════════════════════════════════════════════════════════════
#  REST API INTEGRATION
# ════════════════════════════════════════════════════════════════════════════


class TestAPIIntegration:
    """Tests FastAPI REST API endpoints."""

    @pytest.fixture(autouse=True)
    def setup_client(self, fast_engine):
        from fastapi.testclient import TestClient
        from interface.api import app

        self.client = TestClient(app)

    def post(self, path, payload):
        return self.client.post(f"/api/game/{path}", json=payload)

    def test_start_human(self):
        response = self.post("start", {"gameMode": "human"})
        assert response.status_code == 200
        data = response.json()
        assert data["board"] == initial_rows()
        assert data["turn"] == "w"
        assert data["status"] == "game_started"

    def test_start_ai_vs_ai_plays_first_move(self):
        data = self.post("start", {"gameMode": "ai-vs-ai"}).json()
        assert data["turn"] == "b"
        assert len(data["moveHistory"]) == 1
        assert data["lastMove"]["from"][0] >= 4

    def test_start_invalid_mode(self):
        response = self.post("start", {"gameMode": "chaos"})
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_game_mode"

    def test_move_human(self):
        response = self.post("move", {
            "board": initial_rows(),
            "move": {"from": [4, 2], "to": [3, 2]},
            "turn": "w",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["turn"] == "b"
        assert data["board"][3][2] == "P"
        assert data["lastMove"] == {"from": [4, 2], "to": [3, 2], "promotion": None}
        assert data["capturedPiece"] is None
        assert data["isGameOver"] is False
        assert data["moveHistory"][0]["piece"] == "P"

    def test_move_against_ai(self):
        data = self.post("move", {
            "board": initial_rows(),
            "move": {"from": [4, 2], "to": [3, 2]},
            "turn": "w",
            "gameMode": "ai",
        }).json()
        assert data["turn"] == "w"
        assert len(data["moveHistory"]) == 2
        assert "evaluation" in data

    def test_move_illegal(self):
        response = self.post("move", {
            "board": initial_rows(),
            "move": {"from": [4, 0], "to": [2, 1]},
            "turn": "w",
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "illegal_destination"

    def test_move_wrong_side(self):
        response = self.post("move", {
            "board": initial_rows(),
            "move": {"from": [1, 0], "to": [2, 0]},
            "turn": "w",
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "wrong_side_to_move"

    def test_move_requires_promotion(self):
        board = rows_with({(5, 0): "K", (1, 1): "P", (3, 4): "k"})
        response = self.post("move", {"board": board, "move": {"from": [1, 1], "to": [0, 1]}, "turn": "w"})
        assert response.status_code == 400
        data = response.json()
        assert data["requiresPromotion"] is True
        assert data["kind"] == PromotionRequired.kind
        assert data["validPromotions"] == ["q", "r", "b", "n"]
        assert data["move"]["to"] == [0, 1]

    def test_move_with_promotion(self):
        board = rows_with({(5, 0): "K", (1, 1): "P", (3, 4): "k"})
        data = self.post("move", {
            "board": board,
            "move": {"from": [1, 1], "to": [0, 1], "promotion": "q"},
            "turn": "w",
        }).json()
        assert data["board"][0][1] == "Q"
        assert data["gameStatus"]["inCheck"] is True

    def test_move_ends_game(self):
        board = rows_with({(0, 0): "k", (2, 3): "Q", (5, 4): "K"})
        data = self.post("move", {
            "board": board,
            "move": {"from": [2, 3], "to": [2, 1]},
            "turn": "w",
            "gameMode": "ai",
        }).json()
        assert data["isGameOver"] is True
        assert data["gameStatus"]["result"] == "stalemate"
        assert len(data["moveHistory"]) == 1

    def test_move_missing_fields(self):
        response = self.post("move", {"board": initial_rows()})
        assert response.status_code == 400
        assert "Missing required fields" in response.json()["error"]

    def test_move_invalid_board(self):
        response = self.post("move", {
            "board": initial_rows()[:5],
            "move": {"from": [4, 2], "to": [3, 2]},
            "turn": "w",
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_position_format"

    @pytest.mark.parametrize("case", ["checkmate", "insufficient", "move_limit"])
    def test_move_on_finished_board(self, case):
        history = []
        if case == "checkmate":
            game = new_game()
            for src, dst in MATE_LINE:
                game.make_move(Move(src, dst))
            board, turn, move = game.position.to_rows(), "b", {"from": [1, 0], "to": [2, 0]}
        elif case == "insufficient":
            board, turn, move = rows_with({(5, 4): "K", (0, 0): "k"}), "w", {"from": [5, 4], "to": [4, 4]}
        else:
            board, turn, move = initial_rows(), "w", {"from": [4, 2], "to": [3, 2]}
            history = [{"from": [4, 0], "to": [3, 0], "piece": "P"}] * 100
        response = self.post("move", {"board": board, "move": move, "turn": turn, "moveHistory": history})
        assert response.status_code == 400
        assert response.json()["kind"] == "game_over"

    def test_move_bad_history(self):
        response = self.post("move", {
            "board": initial_rows(),
            "move": {"from": [4, 2], "to": [3, 2]},
            "turn": "w",
            "moveHistory": [{"from": [4, 0], "to": [3, 0], "piece": "?"}],
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_position_format"

    def test_move_malformed(self):
        response = self.post("move", {
            "board": initial_rows(),
            "move": {"from": [4], "to": [3, 2]},
            "turn": "w",
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "malformed_move"

    def test_valid_moves(self):
        data = self.post("valid-moves", {"board": initial_rows(), "position": [5, 1], "turn": "w"}).json()
        assert [m["to"] for m in data["validMoves"]] == [[3, 2], [3, 0]]
        assert data["message"] == "Found 2 valid moves"

    def test_valid_moves_none(self):
        data = self.post("valid-moves", {"board": initial_rows(), "position": [5, 0], "turn": "w"}).json()
        assert data["validMoves"] == []
        assert data["message"] == "No valid moves available"

    def test_valid_moves_wrong_piece(self):
        response = self.post("valid-moves", {"board": initial_rows(), "position": [0, 1], "turn": "w"})
        assert response.status_code == 400
        assert response.json()["kind"] == "wrong_side_to_move"

    def test_valid_moves_bad_position(self):
        response = self.post("valid-moves", {"board": initial_rows(), "position": [1], "turn": "w"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid position format"

    def test_ai_move(self):
        data = self.post("ai-move", {"board": initial_rows(), "turn": "w", "timeLimit": 100}).json()
        assert data["turn"] == "b"
        assert data["move"] == data["lastMove"]
        assert len(data["moveHistory"]) == 1

    def test_ai_move_zero_budget(self):
        data = self.post("ai-move", {"board": initial_rows(), "turn": "w", "timeLimit": -5}).json()
        assert data["turn"] == "b"
        assert "move" in data

    def test_ai_move_on_finished_game(self):
        board = rows_with({(0, 0): "k", (2, 1): "Q", (5, 4): "K"})
        data = self.post("ai-move", {"board": board, "turn": "b"}).json()
        assert data["isGameOver"] is True
        assert data["gameStatus"]["result"] == "stalemate"
        assert "move" not in data


# ════════════════════════════════════════════════════════════════════════════
#  TERMINAL INTERFACE
# ════════════════════════════════════════════════════════════════════════════


class TestCLI:
    def test_parse_move(self):
        from interface.cli import parse_move

        assert parse_move("4,2 3,2") == Move((4, 2), (3, 2))
        assert parse_move("4,2-2,2") == Move((4, 2), (2, 2))
        assert parse_move("1,1 0,1 n").promotion.value == "n"
        with pytest.raises(ValueError):
            parse_move("e2e4")
        with pytest.raises(ValueError):
            parse_move("a,1 2,2")

    def test_human_game_to_mate(self, monkeypatch, capsys):
        from interface.cli import run

        typed = iter(["nonsense", "4,0 2,1"] + [f"{a},{b} {c},{d}" for (a, b), (c, d) in MATE_LINE])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(typed))
        game = run("human")
        assert game.status().kind is GameResult.CHECKMATE
        out = capsys.readouterr().out
        assert "Bad input" in out
        assert "Illegal move" in out
        assert "Checkmate! White wins!" in out

    def test_quit(self, monkeypatch):
        from interface.cli import main

        monkeypatch.setattr("builtins.input", lambda prompt="": "quit")
        assert main(["--mode", "human"]) == 0
