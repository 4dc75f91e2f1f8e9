from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .board import Board
from .move import file_of, make_square, rank_of
from .movegen import MoveKind, en_passant_victim
from .pieces import Color, Kind, Piece, PROMOTION_KINDS
from .state import BoardState


@dataclass(frozen=True)
class CastleOption:
    """Resolved castling geometry for one side."""

    king_side: bool
    king_from: int
    king_to: int
    rook_from: int
    rook_to: int

    @property
    def target(self) -> int:
        """Square a player selects to castle.

        The king's landing square when the king travels two or more files,
        otherwise the rook's origin square.
        """
        if abs(file_of(self.king_to) - file_of(self.king_from)) >= 2:
            return self.king_to
        return self.rook_from


def castle_squares(color: Color, king_from: int, rook_from: int, king_side: bool) -> CastleOption:
    rank = color.back_rank
    return CastleOption(
        king_side=king_side,
        king_from=king_from,
        king_to=make_square(6 if king_side else 2, rank),
        rook_from=rook_from,
        rook_to=make_square(5 if king_side else 3, rank),
    )


def relocate(
    board: Board,
    from_sq: int,
    to_sq: int,
    kind: MoveKind,
    promotion: Optional[str] = None,
    castle: Optional[CastleOption] = None,
) -> Tuple[Board, Optional[Piece], Optional[int]]:
    """Play one move, returning a new board.

    Returns:
        Tuple[Board, Optional[Piece], Optional[int]]: The new board, the
            captured piece (if any) and the square it was captured on.
    """
    squares = dict(board.squares)
    piece = squares.pop(from_sq, None)
    if piece is None:
        raise ValueError("no piece to move from from_sq")

    if kind is MoveKind.CASTLE:
        if castle is None:
            raise ValueError("castling move without castling geometry")
        rook = squares.pop(castle.rook_from, None)
        if rook is None:
            raise ValueError("castling rook missing")
        squares[castle.king_to] = piece
        squares[castle.rook_to] = rook
        return Board(squares), None, None

    captured_sq: Optional[int] = to_sq
    if kind is MoveKind.EN_PASSANT:
        captured_sq = en_passant_victim(to_sq, piece)
    captured = squares.pop(captured_sq, None)
    if captured is None:
        captured_sq = None

    if promotion is not None and piece.kind is Kind.PAWN:
        piece = Piece(PROMOTION_KINDS[promotion], piece.color)
    squares[to_sq] = piece
    return Board(squares), captured, captured_sq


def transplant(
    source: Board, target: Board, from_sq: int, to_sq: int, promotion: Optional[str] = None
) -> Tuple[Board, Board, Piece]:
    """Lift a piece off ``source`` and drop it on an empty square of ``target``."""
    remaining = dict(source.squares)
    piece = remaining.pop(from_sq, None)
    if piece is None:
        raise ValueError("no piece to transfer")
    if not target.is_empty(to_sq):
        raise ValueError("transfer destination is occupied")
    placed = piece
    if promotion is not None and piece.kind is Kind.PAWN:
        placed = Piece(PROMOTION_KINDS[promotion], piece.color)
    return Board(remaining), target.with_pieces({to_sq: placed}), piece


def needs_promotion(piece: Piece, to_sq: int) -> bool:
    return piece.kind is Kind.PAWN and rank_of(to_sq) == piece.color.promotion_rank


def update_castling(
    board_state: BoardState, piece: Piece, from_sq: int, captured_sq: Optional[int]
) -> str:
    """Castling rights after ``piece`` left ``from_sq`` (and maybe captured)."""
    rights = set(board_state.castling)
    rooks = board_state.castling_rooks
    if piece.kind is Kind.KING:
        for token in ("K", "Q") if piece.color is Color.WHITE else ("k", "q"):
            rights.discard(token)
    elif piece.kind is Kind.ROOK:
        token = rooks.token_for_origin(from_sq)
        if token is not None and (token.isupper() == (piece.color is Color.WHITE)):
            rights.discard(token)
    if captured_sq is not None:
        token = rooks.token_for_origin(captured_sq)
        if token is not None:
            rights.discard(token)
    return "".join(c for c in "KQkq" if c in rights)
