from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Color(str, Enum):
    WHITE = "w"
    BLACK = "b"

    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def forward(self) -> int:
        """Rank delta of a pawn advance."""
        return 1 if self is Color.WHITE else -1

    @property
    def back_rank(self) -> int:
        return 0 if self is Color.WHITE else 7

    @property
    def pawn_rank(self) -> int:
        return 1 if self is Color.WHITE else 6

    @property
    def promotion_rank(self) -> int:
        return 7 if self is Color.WHITE else 0

    @property
    def index(self) -> int:
        return 0 if self is Color.WHITE else 1


class Kind(str, Enum):
    KING = "k"
    QUEEN = "q"
    ROOK = "r"
    BISHOP = "b"
    KNIGHT = "n"
    PAWN = "p"


@dataclass(frozen=True)
class Piece:
    kind: Kind
    color: Color

    @property
    def symbol(self) -> str:
        """Upper-case for white, lower-case for black (``"K"``, ``"p"``)."""
        ch = self.kind.value
        return ch.upper() if self.color is Color.WHITE else ch

    @classmethod
    def from_symbol(cls, symbol: str) -> "Piece":
        if len(symbol) != 1 or symbol.lower() not in {k.value for k in Kind}:
            raise ValueError(f"invalid piece symbol: {symbol!r}")
        color = Color.WHITE if symbol.isupper() else Color.BLACK
        return cls(Kind(symbol.lower()), color)

    def __str__(self) -> str:
        return self.symbol


PROMOTION_KINDS = {
    "q": Kind.QUEEN,
    "r": Kind.ROOK,
    "b": Kind.BISHOP,
    "n": Kind.KNIGHT,
}
