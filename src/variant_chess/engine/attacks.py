from __future__ import annotations

from .board import Board
from .movegen import STANDARD_GEOMETRY, Geometry, attack_set
from .pieces import Color


def is_square_attacked(
    board: Board, sq: int, by_color: Color, geometry: Geometry = STANDARD_GEOMETRY
) -> bool:
    """Return True if any ``by_color`` piece attacks ``sq``.

    Only geometry is consulted (never legality), so pinned pieces still
    attack and kings attack adjacent squares only.
    """
    for from_sq, _piece in board.pieces(by_color):
        if sq in attack_set(board, from_sq, geometry):
            return True
    return False


def is_king_in_check(board: Board, color: Color, geometry: Geometry = STANDARD_GEOMETRY) -> bool:
    king_sq = board.king_square(color)
    if king_sq is None:
        return False
    return is_square_attacked(board, king_sq, color.opponent(), geometry)
