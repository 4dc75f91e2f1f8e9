from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidSquare


PROMOTION_PIECES = {"q", "r", "b", "n"}


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    Attributes:
        from_sq (int): Origin square index (0-based).
        to_sq (int): Destination square index (0-based).
        promotion (Optional[str]): Lowercase promotion piece, if any.
        board (int): Board the piece stands on (only non-zero under void).
        to_board (Optional[int]): Destination board of a cross-board
            transfer, ``None`` for an ordinary move.
    """

    from_sq: int
    to_sq: int
    promotion: Optional[str] = None
    board: int = 0
    to_board: Optional[int] = None

    @property
    def is_transfer(self) -> bool:
        return self.to_board is not None

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + (self.promotion or "")

    def describe(self) -> str:
        """Readable form that also carries board selectors.

        Ordinary single-board moves render as plain UCI; moves on a second
        board are prefixed with the board index and transfers render as
        ``"0:e2>1:e5"``.
        """
        if self.to_board is not None:
            return (
                f"{self.board}:{square_to_str(self.from_sq)}>"
                f"{self.to_board}:{square_to_str(self.to_sq)}{self.promotion or ''}"
            )
        if self.board:
            return f"{self.board}:{self.to_uci()}"
        return self.to_uci()


def parse_uci(uci: str, board: int = 0) -> Move:
    """Parse a UCI move string.

    Args:
        uci (str): Move encoded in long algebraic notation (e.g. ``"e2e4"``).
        board (int): Board selector for the parsed move.

    Returns:
        Move: Parsed move.

    Raises:
        InvalidSquare: If either square is malformed.
        ValueError: If the string has an invalid length or promotion piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[str] = None
    if len(uci) == 5:
        promo = uci[4].lower()
        if promo not in PROMOTION_PIECES:
            raise ValueError(f"invalid promotion piece: {promo!r}")
    return Move(from_sq, to_sq, promo, board=board)


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0-based square index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Zero-based square index.

    Raises:
        InvalidSquare: If ``s`` is not a valid square.
    """
    if not isinstance(s, str) or len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise InvalidSquare(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1]) - 1
    return rank * 8 + file


def square_to_str(idx: int) -> str:
    """Convert a 0-based square index into algebraic notation.

    Args:
        idx (int): Square index in range 0..63.

    Returns:
        str: Algebraic notation for ``idx``.

    Raises:
        InvalidSquare: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise InvalidSquare(f"invalid square index: {idx}")
    file = idx % 8
    rank = idx // 8
    return chr(ord("a") + file) + str(rank + 1)


def file_of(sq: int) -> int:
    return sq % 8


def rank_of(sq: int) -> int:
    return sq // 8


def make_square(file: int, rank: int) -> int:
    return rank * 8 + file


def in_bounds(file: int, rank: int) -> bool:
    return 0 <= file < 8 and 0 <= rank < 8


def distance(a: int, b: int) -> int:
    """Chebyshev (king-step) distance between two squares."""
    return max(abs(file_of(a) - file_of(b)), abs(rank_of(a) - rank_of(b)))
