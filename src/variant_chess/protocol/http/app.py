from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
    rule_violation_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ... import __version__
from ...engine.config import VariantSettings
from ...engine.document import GameStateDocument
from ...engine.errors import RuleSetError, RuleViolation
from ...engine.game import Game, get_legal_moves, get_transfer_targets, visible_squares
from ...engine.move import Move, parse_uci, square_to_str, str_to_square
from ...engine.pieces import Color
from ...engine.rules import RuleSet
from .session import InMemorySessionStore, Session


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    rules: List[str] = Field(default_factory=list, description="Rule names, e.g. ['blink', 'fog-of-war']")
    seed: Optional[str] = Field(default=None, max_length=128)


class MoveRequest(BaseModel):
    move: str = Field(..., description="UCI move string, e.g., e2e4")
    board: int = Field(default=0, ge=0, le=1)


class TransferRequest(BaseModel):
    from_square: str = Field(..., description="Origin square, e.g., b1")
    to_square: str = Field(..., description="Destination square on the other board")
    board: int = Field(default=0, ge=0, le=1)
    to_board: int = Field(default=1, ge=0, le=1)
    promotion: Optional[str] = None


class LegalMovesResponse(BaseModel):
    square: Optional[str]
    board: int
    destinations: List[str]
    transfers: List[str]
    moves: List[str]


class VisibilityResponse(BaseModel):
    viewer: Color
    fog: bool
    squares: List[str]


class GameView(BaseModel):
    game_id: str
    rules: List[str]
    seed: str
    side_to_move: Color
    in_check: bool
    checkmate: bool
    stalemate: bool
    legal_moves: List[str]
    last_move: Optional[str]
    move_history: List[str]
    state: GameStateDocument


def create_app(settings: Optional[VariantSettings] = None) -> FastAPI:
    app = FastAPI(title="Variant Chess API", version=__version__)
    settings = settings or VariantSettings()

    # Basic logging setup
    logging.basicConfig(level=logging.INFO)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    # Preserve FastAPI 422 validation behavior and structured HTTP errors
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(RuleViolation, rule_violation_handler)
    app.add_exception_handler(RuleSetError, rule_violation_handler)
    app.add_exception_handler(Exception, exception_handler)

    # In-memory session store for games
    store = InMemorySessionStore()

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=GameView)
    async def create_game(req: Optional[CreateGameRequest] = None) -> GameView:
        req = req or CreateGameRequest()
        rules = RuleSet.parse(req.rules, settings)
        game_id = store.create(Game.new(rules, req.seed))
        logger.info("game created", extra={"game_id": game_id, "rules": list(rules.labels)})
        session = _require_session(store, game_id)
        return _view(game_id, session.game)

    @app.get("/api/games/{game_id}/state", response_model=GameView)
    def get_state(game_id: str) -> GameView:
        session = _require_session(store, game_id)
        with session.lock:
            return _view(game_id, session.game)

    @app.get("/api/games/{game_id}/legal-moves", response_model=LegalMovesResponse)
    def legal_moves(
        game_id: str,
        square: Optional[str] = Query(default=None, description="Origin square; omit for all moves"),
        board: int = Query(default=0, ge=0, le=1),
    ) -> LegalMovesResponse:
        session = _require_session(store, game_id)
        with session.lock:
            game = session.game
            if square is None:
                return LegalMovesResponse(
                    square=None,
                    board=board,
                    destinations=[],
                    transfers=[],
                    moves=[m.describe() for m in game.legal_moves()],
                )
            sq = str_to_square(square)
            _require_board(game, board)
            return LegalMovesResponse(
                square=square,
                board=board,
                destinations=_names(get_legal_moves(game.state, game.rules, sq, board)),
                transfers=_names(get_transfer_targets(game.state, game.rules, sq, board)),
                moves=[],
            )

    @app.post("/api/games/{game_id}/move", response_model=GameView)
    def make_move(game_id: str, req: MoveRequest) -> GameView:
        session = _require_session(store, game_id)
        try:
            move = parse_uci(req.move, board=req.board)
        except RuleViolation:
            raise
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        with session.lock:
            session.game.apply_move(move)
            return _view(game_id, session.game)

    @app.post("/api/games/{game_id}/transfer", response_model=GameView)
    def transfer(game_id: str, req: TransferRequest) -> GameView:
        session = _require_session(store, game_id)
        promotion = req.promotion.lower() if req.promotion else None
        move = Move(
            str_to_square(req.from_square),
            str_to_square(req.to_square),
            promotion,
            board=req.board,
            to_board=req.to_board,
        )
        with session.lock:
            session.game.apply_move(move)
            return _view(game_id, session.game)

    @app.post("/api/games/{game_id}/undo", response_model=GameView)
    def undo(game_id: str) -> GameView:
        session = _require_session(store, game_id)
        with session.lock:
            try:
                session.game.undo_move()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _view(game_id, session.game)

    @app.get("/api/games/{game_id}/visibility", response_model=VisibilityResponse)
    def visibility(game_id: str, viewer: Color = Query(default=Color.WHITE)) -> VisibilityResponse:
        session = _require_session(store, game_id)
        with session.lock:
            game = session.game
            squares = visible_squares(game.state, game.rules, viewer)
            return VisibilityResponse(viewer=viewer, fog=len(squares) < 64, squares=_names(squares))

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        _require_session(store, game_id)
        store.delete(game_id)
        return {"status": "deleted"}

    return app


def _names(squares) -> List[str]:
    return [square_to_str(sq) for sq in sorted(squares)]


def _view(game_id: str, game: Game) -> GameView:
    state = game.state
    history = game.move_history()
    return GameView(
        game_id=game_id,
        rules=list(game.rules.labels),
        seed=game.seed,
        side_to_move=state.side_to_move,
        in_check=game.in_check(),
        checkmate=game.checkmate(),
        stalemate=game.stalemate(),
        legal_moves=[m.describe() for m in game.legal_moves()],
        last_move=history[-1] if history else None,
        move_history=history,
        state=GameStateDocument.from_state(state),
    )


def _require_session(store: InMemorySessionStore, game_id: str) -> Session:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


def _require_board(game: Game, board: int) -> None:
    if board >= len(game.state.boards):
        raise HTTPException(status_code=400, detail=f"game has no board {board}")


# Default app for non-factory servers
app = create_app()
