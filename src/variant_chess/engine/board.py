from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

from .move import make_square, square_to_str, str_to_square
from .pieces import Color, Kind, Piece


STANDARD_BACK_RANK: Tuple[Kind, ...] = (
    Kind.ROOK,
    Kind.KNIGHT,
    Kind.BISHOP,
    Kind.QUEEN,
    Kind.KING,
    Kind.BISHOP,
    Kind.KNIGHT,
    Kind.ROOK,
)


@dataclass(frozen=True, eq=False)
class Board:
    """Sparse square -> piece mapping for one 8x8 board.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63), rank-major from white's perspective.
    - Boards are immutable and hashable. ``squares`` is a read-only view;
      edits build a new board from ``dict(board.squares)``.
    """

    squares: Mapping[int, Piece] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "squares", MappingProxyType(dict(self.squares)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return dict(self.squares) == dict(other.squares)

    def __hash__(self) -> int:
        return hash(frozenset(self.squares.items()))

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    @classmethod
    def with_back_rank(cls, back_rank: Sequence[Kind]) -> "Board":
        """Create a board with the given back rank and a full pawn row per side.

        Black mirrors white file for file.
        """
        if len(back_rank) != 8:
            raise ValueError("back rank must have 8 pieces")
        squares: Dict[int, Piece] = {}
        for color in (Color.WHITE, Color.BLACK):
            for file_idx, kind in enumerate(back_rank):
                squares[make_square(file_idx, color.back_rank)] = Piece(kind, color)
                squares[make_square(file_idx, color.pawn_rank)] = Piece(Kind.PAWN, color)
        return cls(squares)

    @classmethod
    def startpos(cls) -> "Board":
        return cls.with_back_rank(STANDARD_BACK_RANK)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "Board":
        """Build a board from ``{"e1": "K", "e8": "k", ...}``.

        Raises:
            InvalidSquare: If a key is not a square name.
            ValueError: If a value is not a piece symbol.
        """
        return cls({str_to_square(name): Piece.from_symbol(symbol) for name, symbol in mapping.items()})

    def to_mapping(self) -> Dict[str, str]:
        return {square_to_str(sq): p.symbol for sq, p in sorted(self.squares.items())}

    def piece_at(self, sq: int) -> Optional[Piece]:
        return self.squares.get(sq)

    def is_empty(self, sq: int) -> bool:
        return sq not in self.squares

    def with_pieces(self, placed: Mapping[int, Piece]) -> "Board":
        """New board with ``placed`` added over the current pieces."""
        squares = dict(self.squares)
        squares.update(placed)
        return Board(squares)

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[int, Piece]]:
        """Iterate ``(square, piece)`` pairs in square order."""
        for sq in sorted(self.squares):
            piece = self.squares[sq]
            if color is None or piece.color is color:
                yield sq, piece

    def king_square(self, color: Color) -> Optional[int]:
        for sq, piece in self.squares.items():
            if piece.kind is Kind.KING and piece.color is color:
                return sq
        return None

    def render(self) -> str:
        """ASCII diagram with rank 8 on top; empty squares are dots."""
        rows = []
        for rank in range(7, -1, -1):
            row = []
            for file_idx in range(8):
                piece = self.squares.get(make_square(file_idx, rank))
                row.append(piece.symbol if piece else ".")
            rows.append(" ".join(row))
        return "\n".join(rows)
