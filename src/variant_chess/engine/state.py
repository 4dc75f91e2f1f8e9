from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional, Tuple

from .board import Board
from .move import Move
from .pieces import Color, Piece


CASTLING_ORDER = "KQkq"


def castling_token(color: Color, king_side: bool) -> str:
    token = "K" if king_side else "Q"
    return token if color is Color.WHITE else token.lower()


@dataclass(frozen=True)
class CastlingRooks:
    """Origin squares of the castling rooks, ``None`` when a side has none."""

    white_king_side: Optional[int] = 7
    white_queen_side: Optional[int] = 0
    black_king_side: Optional[int] = 63
    black_queen_side: Optional[int] = 56

    def get(self, color: Color, king_side: bool) -> Optional[int]:
        if color is Color.WHITE:
            return self.white_king_side if king_side else self.white_queen_side
        return self.black_king_side if king_side else self.black_queen_side

    def token_for_origin(self, sq: int) -> Optional[str]:
        """Castling token whose rook starts on ``sq``, if any."""
        for color in (Color.WHITE, Color.BLACK):
            for king_side in (True, False):
                if self.get(color, king_side) == sq:
                    return castling_token(color, king_side)
        return None


@dataclass(frozen=True)
class BoardState:
    """Everything that belongs to one board rather than to the whole game."""

    board: Board
    castling: str = CASTLING_ORDER
    castling_rooks: CastlingRooks = field(default_factory=CastlingRooks)
    ep_square: Optional[int] = None


@dataclass(frozen=True)
class KnightPending:
    """First half of a double-knight move has been played."""

    square: int
    color: Color
    board: int = 0


@dataclass(frozen=True)
class VoidPending:
    """A dual-board turn in progress: boards already moved on this turn."""

    color: Color
    moved_boards: Tuple[int, ...] = ()


@dataclass(frozen=True)
class AppliedMove:
    """Record of the last accepted move, derived by the move applier."""

    move: Move
    piece: Piece
    captured: Optional[Piece] = None
    castling: bool = False
    en_passant: bool = False
    teleport: bool = False
    transfer: bool = False


@dataclass(frozen=True)
class GameState:
    """Immutable game snapshot; the move applier returns a new one per move.

    Variant bookkeeping lives in explicit optional fields so that a state
    round-trips through storage without any variant-specific keys.
    """

    boards: Tuple[BoardState, ...]
    side_to_move: Color = Color.WHITE
    halfmove_clock: int = 0
    fullmove_number: int = 1
    seed: str = ""
    in_check: bool = False
    checkmate: bool = False
    stalemate: bool = False
    turns_completed: int = 0
    knight_pending: Optional[KnightPending] = None
    blink_used: FrozenSet[Color] = frozenset()
    moved_pawns: FrozenSet[int] = frozenset()
    burned: FrozenSet[int] = frozenset()
    transfer_tokens: Tuple[int, int] = (0, 0)
    turns_by_color: Tuple[int, int] = (0, 0)
    void_pending: Optional[VoidPending] = None
    last_move: Optional[AppliedMove] = None

    @property
    def board(self) -> Board:
        """The first (or only) board."""
        return self.boards[0].board

    def board_at(self, index: int) -> Board:
        return self.boards[index].board

    def tokens_for(self, color: Color) -> int:
        return self.transfer_tokens[color.index]

    @property
    def game_over(self) -> bool:
        return self.checkmate or self.stalemate

    def with_board_state(self, index: int, board_state: BoardState) -> "GameState":
        boards = list(self.boards)
        boards[index] = board_state
        return replace(self, boards=tuple(boards))


def bump(pair: Tuple[int, int], color: Color, delta: int) -> Tuple[int, int]:
    values = list(pair)
    values[color.index] += delta
    return (values[0], values[1])
