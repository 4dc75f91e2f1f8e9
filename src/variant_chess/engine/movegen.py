"""Pseudo-legal move generation.

Everything here is pure geometry: piece movement, blocking, captures and the
variant flags carried by :class:`Geometry`. Nothing in this module knows about
check, turn order or rule modifiers beyond those flags; the attack detector
builds on it and the legality filter builds on both.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterator, Optional, Set

from .board import Board
from .move import file_of, in_bounds, make_square, rank_of
from .pieces import Kind, Piece


KNIGHT_OFFSETS = ((-1, 2), (1, 2), (-2, 1), (2, 1), (-2, -1), (2, -1), (-1, -2), (1, -2))
KING_OFFSETS = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))
DIAGONALS = ((-1, -1), (1, -1), (-1, 1), (1, 1))
ORTHOGONALS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class MoveKind(str, Enum):
    NORMAL = "normal"
    EN_PASSANT = "en_passant"
    CASTLE = "castle"
    TELEPORT = "teleport"


@dataclass(frozen=True)
class Geometry:
    """Restricted, geometry-only view of the active rules.

    Attributes:
        xray_bishops (bool): Bishops see through one piece.
        pawn_rotation (bool): Unconditional double steps plus lateral moves.
        burned (FrozenSet[int]): Squares removed from play.
    """

    xray_bishops: bool = False
    pawn_rotation: bool = False
    burned: FrozenSet[int] = frozenset()


STANDARD_GEOMETRY = Geometry()


def _step(sq: int, df: int, dr: int) -> Optional[int]:
    f, r = file_of(sq) + df, rank_of(sq) + dr
    if not in_bounds(f, r):
        return None
    return make_square(f, r)


def _ray(
    board: Board, sq: int, piece: Piece, df: int, dr: int, geometry: Geometry, xray: bool
) -> Iterator[int]:
    """Walk one direction; with ``xray`` continue past the first occupant."""
    passed = False
    to = _step(sq, df, dr)
    while to is not None:
        if to in geometry.burned:
            return
        occupant = board.piece_at(to)
        if occupant is None:
            yield to
        else:
            if occupant.color is not piece.color:
                yield to
            if not xray or passed:
                return
            passed = True
        to = _step(to, df, dr)


def slider_targets(board: Board, sq: int, piece: Piece, geometry: Geometry) -> Iterator[int]:
    if piece.kind is Kind.BISHOP:
        dirs = DIAGONALS
    elif piece.kind is Kind.ROOK:
        dirs = ORTHOGONALS
    else:
        dirs = DIAGONALS + ORTHOGONALS
    xray = geometry.xray_bishops and piece.kind is Kind.BISHOP
    for df, dr in dirs:
        yield from _ray(board, sq, piece, df, dr, geometry, xray)


def leaper_targets(board: Board, sq: int, piece: Piece, geometry: Geometry) -> Iterator[int]:
    offsets = KNIGHT_OFFSETS if piece.kind is Kind.KNIGHT else KING_OFFSETS
    for df, dr in offsets:
        to = _step(sq, df, dr)
        if to is None or to in geometry.burned:
            continue
        occupant = board.piece_at(to)
        if occupant is None or occupant.color is not piece.color:
            yield to


def pawn_capture_squares(sq: int, piece: Piece, geometry: Geometry) -> Iterator[int]:
    """Squares a pawn attacks, whether or not anything stands there."""
    fwd = piece.color.forward
    for df in (-1, 1):
        to = _step(sq, df, fwd)
        if to is not None and to not in geometry.burned:
            yield to
    if geometry.pawn_rotation:
        for df in (-1, 1):
            to = _step(sq, df, 0)
            if to is not None and to not in geometry.burned:
                yield to


def en_passant_victim(ep_square: int, mover: Piece) -> int:
    """Square of the pawn captured when ``mover`` lands on ``ep_square``."""
    return make_square(file_of(ep_square), rank_of(ep_square) - mover.color.forward)


def pawn_moves(
    board: Board, sq: int, piece: Piece, geometry: Geometry, ep_square: Optional[int]
) -> Dict[int, MoveKind]:
    moves: Dict[int, MoveKind] = {}
    fwd = piece.color.forward

    def open_step(df: int, dr: int) -> Optional[int]:
        to = _step(sq, df, dr)
        if to is None or to in geometry.burned or not board.is_empty(to):
            return None
        return to

    one = open_step(0, fwd)
    if one is not None:
        moves[one] = MoveKind.NORMAL
        if geometry.pawn_rotation or rank_of(sq) == piece.color.pawn_rank:
            two = open_step(0, 2 * fwd)
            if two is not None:
                moves[two] = MoveKind.NORMAL

    if geometry.pawn_rotation:
        for df in (-1, 1):
            side = open_step(df, 0)
            if side is None:
                continue
            moves[side] = MoveKind.NORMAL
            far = open_step(2 * df, 0)
            if far is not None:
                moves[far] = MoveKind.NORMAL

    for to in pawn_capture_squares(sq, piece, geometry):
        occupant = board.piece_at(to)
        if occupant is not None:
            if occupant.color is not piece.color:
                moves[to] = MoveKind.NORMAL
        elif to == ep_square and rank_of(to) != rank_of(sq):
            victim = board.piece_at(en_passant_victim(to, piece))
            if victim is not None and victim.kind is Kind.PAWN and victim.color is not piece.color:
                moves[to] = MoveKind.EN_PASSANT
    return moves


def pseudo_moves(
    board: Board, sq: int, geometry: Geometry = STANDARD_GEOMETRY, ep_square: Optional[int] = None
) -> Dict[int, MoveKind]:
    """Pseudo-legal destinations of the piece on ``sq``.

    Castling and teleports are not included: both depend on attack detection
    or rule state and are added by the legality filter.

    Returns:
        Dict[int, MoveKind]: Destination square -> kind of move.
    """
    piece = board.piece_at(sq)
    if piece is None:
        return {}
    if piece.kind is Kind.PAWN:
        return pawn_moves(board, sq, piece, geometry, ep_square)
    if piece.kind in (Kind.KNIGHT, Kind.KING):
        return {to: MoveKind.NORMAL for to in leaper_targets(board, sq, piece, geometry)}
    return {to: MoveKind.NORMAL for to in slider_targets(board, sq, piece, geometry)}


def attack_set(board: Board, sq: int, geometry: Geometry = STANDARD_GEOMETRY) -> Set[int]:
    """Squares the piece on ``sq`` attacks (pawn pushes excluded)."""
    piece = board.piece_at(sq)
    if piece is None:
        return set()
    if piece.kind is Kind.PAWN:
        return set(pawn_capture_squares(sq, piece, geometry))
    if piece.kind in (Kind.KNIGHT, Kind.KING):
        return set(leaper_targets(board, sq, piece, geometry))
    return set(slider_targets(board, sq, piece, geometry))
