"""Storage-friendly document form of :class:`GameState`.

Squares are algebraic strings, pieces are single-letter symbols and sets are
sorted lists, so a document serializes to stable JSON and converts back to an
equal state.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .board import Board
from .move import Move, square_to_str, str_to_square
from .pieces import Color, Piece
from .state import (
    AppliedMove,
    BoardState,
    CastlingRooks,
    GameState,
    KnightPending,
    VoidPending,
)


def _sq(sq: Optional[int]) -> Optional[str]:
    return square_to_str(sq) if sq is not None else None


def _unsq(name: Optional[str]) -> Optional[int]:
    return str_to_square(name) if name is not None else None


class CastlingRooksDocument(BaseModel):
    white_king_side: Optional[str] = "h1"
    white_queen_side: Optional[str] = "a1"
    black_king_side: Optional[str] = "h8"
    black_queen_side: Optional[str] = "a8"


class BoardDocument(BaseModel):
    pieces: Dict[str, str] = Field(default_factory=dict, description="square -> piece symbol")
    castling: str = ""
    castling_rooks: CastlingRooksDocument = Field(default_factory=CastlingRooksDocument)
    ep_square: Optional[str] = None


class KnightPendingDocument(BaseModel):
    square: str
    color: Color
    board: int = 0


class VoidPendingDocument(BaseModel):
    color: Color
    moved_boards: List[int] = Field(default_factory=list)


class MoveDocument(BaseModel):
    from_sq: str
    to_sq: str
    promotion: Optional[str] = None
    board: int = 0
    to_board: Optional[int] = None

    @classmethod
    def from_move(cls, move: Move) -> "MoveDocument":
        return cls(
            from_sq=square_to_str(move.from_sq),
            to_sq=square_to_str(move.to_sq),
            promotion=move.promotion,
            board=move.board,
            to_board=move.to_board,
        )

    def to_move(self) -> Move:
        return Move(
            str_to_square(self.from_sq),
            str_to_square(self.to_sq),
            self.promotion,
            board=self.board,
            to_board=self.to_board,
        )


class AppliedMoveDocument(BaseModel):
    move: MoveDocument
    piece: str
    captured: Optional[str] = None
    castling: bool = False
    en_passant: bool = False
    teleport: bool = False
    transfer: bool = False


class GameStateDocument(BaseModel):
    """JSON shape of a game state; ``to_state(from_state(s)) == s``."""

    boards: List[BoardDocument]
    side_to_move: Color = Color.WHITE
    halfmove_clock: int = 0
    fullmove_number: int = 1
    seed: str = ""
    in_check: bool = False
    checkmate: bool = False
    stalemate: bool = False
    turns_completed: int = 0
    knight_pending: Optional[KnightPendingDocument] = None
    blink_used: List[Color] = Field(default_factory=list)
    moved_pawns: List[str] = Field(default_factory=list)
    burned: List[str] = Field(default_factory=list)
    transfer_tokens: List[int] = Field(default_factory=lambda: [0, 0])
    turns_by_color: List[int] = Field(default_factory=lambda: [0, 0])
    void_pending: Optional[VoidPendingDocument] = None
    last_move: Optional[AppliedMoveDocument] = None

    @classmethod
    def from_state(cls, state: GameState) -> "GameStateDocument":
        boards = [
            BoardDocument(
                pieces=bs.board.to_mapping(),
                castling=bs.castling,
                castling_rooks=CastlingRooksDocument(
                    white_king_side=_sq(bs.castling_rooks.white_king_side),
                    white_queen_side=_sq(bs.castling_rooks.white_queen_side),
                    black_king_side=_sq(bs.castling_rooks.black_king_side),
                    black_queen_side=_sq(bs.castling_rooks.black_queen_side),
                ),
                ep_square=_sq(bs.ep_square),
            )
            for bs in state.boards
        ]
        knight = state.knight_pending
        void = state.void_pending
        last = state.last_move
        return cls(
            boards=boards,
            side_to_move=state.side_to_move,
            halfmove_clock=state.halfmove_clock,
            fullmove_number=state.fullmove_number,
            seed=state.seed,
            in_check=state.in_check,
            checkmate=state.checkmate,
            stalemate=state.stalemate,
            turns_completed=state.turns_completed,
            knight_pending=(
                KnightPendingDocument(square=square_to_str(knight.square), color=knight.color, board=knight.board)
                if knight
                else None
            ),
            blink_used=sorted(state.blink_used, key=lambda c: c.index),
            moved_pawns=[square_to_str(sq) for sq in sorted(state.moved_pawns)],
            burned=[square_to_str(sq) for sq in sorted(state.burned)],
            transfer_tokens=list(state.transfer_tokens),
            turns_by_color=list(state.turns_by_color),
            void_pending=(
                VoidPendingDocument(color=void.color, moved_boards=list(void.moved_boards)) if void else None
            ),
            last_move=(
                AppliedMoveDocument(
                    move=MoveDocument.from_move(last.move),
                    piece=last.piece.symbol,
                    captured=last.captured.symbol if last.captured else None,
                    castling=last.castling,
                    en_passant=last.en_passant,
                    teleport=last.teleport,
                    transfer=last.transfer,
                )
                if last
                else None
            ),
        )

    def to_state(self) -> GameState:
        """Rebuild the engine state.

        Raises:
            InvalidSquare: If a stored square name is malformed.
            ValueError: If a stored piece symbol is malformed.
        """
        boards = tuple(
            BoardState(
                board=Board.from_mapping(b.pieces),
                castling=b.castling,
                castling_rooks=CastlingRooks(
                    white_king_side=_unsq(b.castling_rooks.white_king_side),
                    white_queen_side=_unsq(b.castling_rooks.white_queen_side),
                    black_king_side=_unsq(b.castling_rooks.black_king_side),
                    black_queen_side=_unsq(b.castling_rooks.black_queen_side),
                ),
                ep_square=_unsq(b.ep_square),
            )
            for b in self.boards
        )
        knight = self.knight_pending
        void = self.void_pending
        last = self.last_move
        return GameState(
            boards=boards,
            side_to_move=self.side_to_move,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
            seed=self.seed,
            in_check=self.in_check,
            checkmate=self.checkmate,
            stalemate=self.stalemate,
            turns_completed=self.turns_completed,
            knight_pending=(
                KnightPending(str_to_square(knight.square), knight.color, knight.board) if knight else None
            ),
            blink_used=frozenset(self.blink_used),
            moved_pawns=frozenset(str_to_square(s) for s in self.moved_pawns),
            burned=frozenset(str_to_square(s) for s in self.burned),
            transfer_tokens=(self.transfer_tokens[0], self.transfer_tokens[1]),
            turns_by_color=(self.turns_by_color[0], self.turns_by_color[1]),
            void_pending=VoidPending(void.color, tuple(void.moved_boards)) if void else None,
            last_move=(
                AppliedMove(
                    move=last.move.to_move(),
                    piece=Piece.from_symbol(last.piece),
                    captured=Piece.from_symbol(last.captured) if last.captured else None,
                    castling=last.castling,
                    en_passant=last.en_passant,
                    teleport=last.teleport,
                    transfer=last.transfer,
                )
                if last
                else None
            ),
        )
