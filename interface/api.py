"""FastAPI REST interface for the MiniChess engine.

Stateless per request: the client sends the board rows, the side to move and
(optionally) the move history each time. Rule violations come back as 400
responses of the form ``{"error": ..., "kind": ...}``.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from minichess.config import CONFIG
from minichess.core.board import Move, MoveRecord, Position, coerce_square
from minichess.core.errors import InvalidPositionFormat, MiniChessError, PromotionRequired
from minichess.core.pieces import Piece, PieceType
from minichess.core.rules import GameStatus, get_game_status
from minichess.core.search import BestMove
from minichess.main import check_mode, engine_move, new_game, play_move, valid_moves

logger = logging.getLogger(__name__)

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")


class MoveModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[list] = Field(default=None, alias="from")
    to: Optional[list] = None
    promotion: Optional[str] = None

    def to_move(self) -> Move:
        return Move.from_coords(self.from_, self.to, self.promotion)


class HistoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: List[int] = Field(alias="from")
    to: List[int]
    piece: str
    captured: bool = False
    promotion: Optional[str] = None


class StartRequest(BaseModel):
    gameMode: str = CONFIG.ui.default_mode


class PlayRequest(BaseModel):
    board: Optional[list] = None
    move: Optional[MoveModel] = None
    turn: Optional[str] = None
    gameMode: str = "human"
    moveHistory: List[HistoryEntry] = []


class ValidMovesRequest(BaseModel):
    board: Optional[list] = None
    position: Optional[list] = None
    turn: Optional[str] = None


class AIMoveRequest(BaseModel):
    board: Optional[list] = None
    turn: Optional[str] = None
    gameMode: str = "ai"
    moveHistory: List[HistoryEntry] = []
    timeLimit: Optional[int] = None

    @field_validator("timeLimit")
    @classmethod
    def clamp_time_limit(cls, v: Optional[int]) -> Optional[int]:
        """Clamp the engine budget (ms) to a safe operating range."""
        if v is None:
            return v
        return max(0, min(v, 30_000))


@app.exception_handler(MiniChessError)
async def rules_error_handler(request: Request, exc: MiniChessError):
    content = {"error": str(exc), "kind": exc.kind}
    if isinstance(exc, PromotionRequired):
        content["requiresPromotion"] = True
        content["validPromotions"] = CONFIG.rules.promotion_choices
    return JSONResponse(status_code=400, content=content)


def _missing(fields: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": f"Missing required fields. Need {fields}."})


def _load_position(board, turn, history: List[HistoryEntry]) -> Position:
    records = []
    for h in history:
        try:
            records.append(MoveRecord(
                tuple(h.from_), tuple(h.to), Piece.from_symbol(h.piece), h.captured,
                PieceType.from_symbol(h.promotion) if h.promotion else None,
            ))
        except ValueError as exc:
            raise InvalidPositionFormat(f"Invalid move history entry: {exc}") from None
    position = Position.from_rows(board, turn, records)
    # a finished board refuses further moves in apply_move
    position.result = get_game_status(position)
    return position


def _state(position: Position, status: GameStatus) -> dict:
    return {
        "board": position.to_rows(),
        "turn": position.turn.value,
        "isGameOver": status.over,
        "message": status.message,
        "gameStatus": status.to_dict(),
        "moveHistory": [rec.to_dict() for rec in position.move_history],
    }


def _reply(position: Position, mode: str, response: dict, time_limit_ms: Optional[int] = None) -> Optional[BestMove]:
    best = engine_move(position, time_limit_ms, mode)
    if best.move is None:
        return None
    status = play_move(position, best.move)
    response.update(_state(position, status))
    response["lastMove"] = best.move.to_dict()
    response["evaluation"] = best.evaluation
    if status.captured:
        response["capturedPiece"] = status.captured.symbol
    return best


@app.post("/api/game/start")
def start_game(req: StartRequest = StartRequest()):
    mode = check_mode(req.gameMode)
    game = new_game(mode)
    response = {
        "board": game.position.to_rows(),
        "turn": game.turn.value,
        "gameMode": mode,
        "message": "Game started! White's turn.",
        "status": "game_started",
    }
    if mode == "ai-vs-ai":
        _reply(game.position, mode, response)
    return response


@app.post("/api/game/move")
def play(req: PlayRequest):
    if req.board is None or req.move is None or req.turn is None:
        return _missing("board, move, and turn")
    mode = check_mode(req.gameMode)
    position = _load_position(req.board, req.turn, req.moveHistory)
    move = req.move.to_move()

    try:
        status = play_move(position, move)
    except PromotionRequired as exc:
        return JSONResponse(status_code=400, content={
            "error": str(exc),
            "kind": exc.kind,
            "requiresPromotion": True,
            "validPromotions": CONFIG.rules.promotion_choices,
            "move": move.to_dict(),
        })
    logger.info("Played %s: %s", move, status.message)
    response = _state(position, status)
    response["lastMove"] = move.to_dict()
    response["capturedPiece"] = status.captured.symbol if status.captured else None
    if status.over:
        return response

    if (mode == "ai" and position.turn.value == "b") or mode == "ai-vs-ai":
        _reply(position, mode, response)
    return response


@app.post("/api/game/valid-moves")
def get_valid_moves(req: ValidMovesRequest):
    if req.board is None or req.position is None or req.turn is None:
        return _missing("board, position, and turn")
    if not isinstance(req.position, list) or len(req.position) != 2:
        return JSONResponse(status_code=400, content={"error": "Invalid position format"})
    position = Position.from_rows(req.board, req.turn)
    square = coerce_square(req.position)
    moves = valid_moves(position, square, position.turn)
    return {
        "validMoves": [m.to_dict() for m in moves],
        "message": "No valid moves available" if not moves else f"Found {len(moves)} valid moves",
    }


@app.post("/api/game/ai-move")
def ai_move(req: AIMoveRequest):
    if req.board is None or req.turn is None:
        return _missing("board and turn")
    mode = check_mode(req.gameMode)
    position = _load_position(req.board, req.turn, req.moveHistory)

    current = position.result
    if current.over:
        return _state(position, current)

    response = {"thinking": False}
    best = _reply(position, mode, response, req.timeLimit)
    if best is None:
        return _state(position, get_game_status(position))
    response["move"] = best.move.to_dict()
    logger.info("Engine move %s eval=%.2f depth=%d nodes=%d", best.move, best.evaluation, best.depth, best.nodes)
    return response
