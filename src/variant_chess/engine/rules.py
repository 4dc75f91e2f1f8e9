"""Optional rule modifiers and the pipeline that composes them.

Each modifier implements the same small interface; the pipeline calls every
active modifier in a fixed order regardless of how the rule names were
listed. Adding a variant means adding a modifier class and a slot in
``RULE_ORDER``, never a branch in the core.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Tuple, Type

from .board import Board
from .config import DEFAULT_SETTINGS, VariantSettings
from .errors import RuleSetError
from .move import distance, make_square, rank_of
from .movegen import MoveKind, en_passant_victim, Geometry
from .pieces import Color, Kind, Piece
from .shuffle import choose, fischer_back_rank
from .state import AppliedMove, CastlingRooks, GameState, KnightPending, VoidPending, bump


logger = logging.getLogger(__name__)


STANDARD = "standard"
DOUBLE_KNIGHT = "double-knight"
PAWN_ROTATION = "pawn-rotation"
XRAY_BISHOP = "xray-bishop"
PAWN_WALL = "pawn-wall"
BLINK = "blink"
FOG_OF_WAR = "fog-of-war"
METEOR_SHOWER = "meteor-shower"
FISCHER_RANDOM = "fischer-random"
VOID = "void"

RULE_ORDER = (
    FISCHER_RANDOM,
    PAWN_WALL,
    PAWN_ROTATION,
    XRAY_BISHOP,
    METEOR_SHOWER,
    DOUBLE_KNIGHT,
    BLINK,
    FOG_OF_WAR,
    VOID,
)

# Probe used by turn-deferring modifiers: does the side to move of the given
# state have a legal ordinary move on the given board?
MoveProbe = Callable[[GameState, int], bool]


@dataclass(frozen=True)
class MoveContext:
    """What the pipeline sees after a move has been placed on the board.

    Attributes:
        before (GameState): State the move was validated against.
        after (GameState): Pieces, rights and counters updated; side to move,
            turn counters and variant fields still as in ``before``.
        record (AppliedMove): The applied move.
        probe (MoveProbe): Legal-move probe supplied by the applier.
    """

    before: GameState
    after: GameState
    record: AppliedMove
    probe: MoveProbe

    @property
    def color(self) -> Color:
        return self.record.piece.color

    @property
    def board_index(self) -> int:
        return self.record.move.board


class Modifier:
    """Base class: every hook defaults to "no effect"."""

    name = ""

    def __init__(self, settings: VariantSettings = DEFAULT_SETTINGS) -> None:
        self.settings = settings

    def setup(self, state: GameState) -> GameState:
        return state

    def configure(self, geometry: Geometry, state: GameState) -> Geometry:
        return geometry

    def filter_moves(
        self,
        state: GameState,
        board_index: int,
        from_sq: int,
        piece: Piece,
        moves: Dict[int, MoveKind],
    ) -> Dict[int, MoveKind]:
        return moves

    def ends_turn(self, ctx: MoveContext) -> bool:
        return True

    def after_move(self, ctx: MoveContext, state: GameState, turn_complete: bool) -> GameState:
        return state

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FischerRandom(Modifier):
    name = FISCHER_RANDOM

    def setup(self, state: GameState) -> GameState:
        back_rank = fischer_back_rank(state.seed)
        rook_files = [i for i, kind in enumerate(back_rank) if kind is Kind.ROOK]
        left, right = rook_files
        rooks = CastlingRooks(
            white_king_side=make_square(right, 0),
            white_queen_side=make_square(left, 0),
            black_king_side=make_square(right, 7),
            black_queen_side=make_square(left, 7),
        )
        boards = tuple(
            replace(bs, board=Board.with_back_rank(back_rank), castling_rooks=rooks)
            for bs in state.boards
        )
        logger.debug("fischer-random back rank for seed %r: %s", state.seed, back_rank)
        return replace(state, boards=boards)


class PawnWall(Modifier):
    name = PAWN_WALL

    def setup(self, state: GameState) -> GameState:
        boards = []
        for bs in state.boards:
            wall = {}
            for file_idx in range(8):
                wall[make_square(file_idx, 2)] = Piece(Kind.PAWN, Color.WHITE)
                wall[make_square(file_idx, 5)] = Piece(Kind.PAWN, Color.BLACK)
            boards.append(replace(bs, board=bs.board.with_pieces(wall)))
        return replace(state, boards=tuple(boards))


class PawnRotation(Modifier):
    """Unconditional double steps and lateral pawn moves.

    ``moved_pawns`` tracks the squares of pawns that have moved at least
    once. It is bookkeeping only: the extra moves are never gated on it.
    """

    name = PAWN_ROTATION

    def configure(self, geometry: Geometry, state: GameState) -> Geometry:
        return replace(geometry, pawn_rotation=True)

    def after_move(self, ctx: MoveContext, state: GameState, turn_complete: bool) -> GameState:
        record = ctx.record
        if record.transfer:
            return state
        moved = set(state.moved_pawns)
        moved.discard(record.move.to_sq)
        moved.discard(record.move.from_sq)
        if record.en_passant:
            moved.discard(en_passant_victim(record.move.to_sq, record.piece))
        if record.piece.kind is Kind.PAWN and record.move.promotion is None:
            moved.add(record.move.to_sq)
        return replace(state, moved_pawns=frozenset(moved))


class XRayBishop(Modifier):
    name = XRAY_BISHOP

    def configure(self, geometry: Geometry, state: GameState) -> Geometry:
        return replace(geometry, xray_bishops=True)


class MeteorShower(Modifier):
    name = METEOR_SHOWER

    def configure(self, geometry: Geometry, state: GameState) -> Geometry:
        return replace(geometry, burned=geometry.burned | state.burned)

    def after_move(self, ctx: MoveContext, state: GameState, turn_complete: bool) -> GameState:
        interval = 2 * self.settings.meteor_interval_full_moves
        if not turn_complete or state.turns_completed == 0 or state.turns_completed % interval:
            return state
        board = state.board
        empties = [sq for sq in range(64) if board.is_empty(sq) and sq not in state.burned]
        target = choose(f"{state.seed}:meteor:{state.turns_completed}", empties)
        if target is None:
            return state
        logger.debug("meteor strike on square %d after %d turns", target, state.turns_completed)
        return replace(state, burned=state.burned | {target})


class DoubleKnight(Modifier):
    name = DOUBLE_KNIGHT

    def filter_moves(self, state, board_index, from_sq, piece, moves):
        pending = state.knight_pending
        if pending is None:
            return moves
        if pending.board != board_index or pending.square != from_sq or pending.color is not piece.color:
            return {}
        return moves

    def _starts_pair(self, ctx: MoveContext) -> bool:
        return (
            ctx.before.knight_pending is None
            and not ctx.record.transfer
            and ctx.record.piece.kind is Kind.KNIGHT
        )

    def ends_turn(self, ctx: MoveContext) -> bool:
        return not self._starts_pair(ctx)

    def after_move(self, ctx: MoveContext, state: GameState, turn_complete: bool) -> GameState:
        if self._starts_pair(ctx):
            logger.debug("double-knight: %s must move the knight again", ctx.color.name.lower())
            pending = KnightPending(ctx.record.move.to_sq, ctx.color, ctx.board_index)
            return replace(state, knight_pending=pending)
        if state.knight_pending is not None:
            return replace(state, knight_pending=None)
        return state


class Blink(Modifier):
    name = BLINK

    def filter_moves(self, state, board_index, from_sq, piece, moves):
        if piece.kind is not Kind.KING or piece.color in state.blink_used:
            return moves
        if state.knight_pending is not None:
            return moves
        board = state.board_at(board_index)
        extended = dict(moves)
        for sq in range(64):
            if sq in extended or sq in state.burned or distance(sq, from_sq) <= 1:
                continue
            occupant = board.piece_at(sq)
            if occupant is not None and occupant.color is piece.color:
                continue
            extended[sq] = MoveKind.TELEPORT
        return extended

    def after_move(self, ctx: MoveContext, state: GameState, turn_complete: bool) -> GameState:
        if not ctx.record.teleport:
            return state
        return replace(state, blink_used=state.blink_used | {ctx.color})


class FogOfWar(Modifier):
    """Presentation-only visibility mask; never touches legality."""

    name = FOG_OF_WAR

    def active(self, state: GameState) -> bool:
        return state.turns_completed < self.settings.fog_turns

    def visible_squares(self, state: GameState, viewer: Color) -> FrozenSet[int]:
        if not self.active(state):
            return frozenset(range(64))
        own_half = range(0, 4) if viewer is Color.WHITE else range(4, 8)
        return frozenset(sq for sq in range(64) if rank_of(sq) in own_half)


class Void(Modifier):
    """Two boards, one turn sequence, sub-moves on each board per turn."""

    name = VOID

    def setup(self, state: GameState) -> GameState:
        tokens = self.settings.initial_transfer_tokens
        return replace(state, boards=(state.boards[0], state.boards[0]), transfer_tokens=(tokens, tokens))

    def filter_moves(self, state, board_index, from_sq, piece, moves):
        pending = state.void_pending
        if pending is not None and board_index in pending.moved_boards:
            return {}
        return moves

    def _moved_boards(self, ctx: MoveContext) -> Tuple[int, ...]:
        pending = ctx.before.void_pending
        moved = pending.moved_boards if pending is not None else ()
        return moved + (ctx.board_index,)

    def ends_turn(self, ctx: MoveContext) -> bool:
        if ctx.record.transfer:
            return True
        moved = self._moved_boards(ctx)
        for index in range(len(ctx.after.boards)):
            if index not in moved and ctx.probe(ctx.after, index):
                return False
        return True

    def after_move(self, ctx: MoveContext, state: GameState, turn_complete: bool) -> GameState:
        color = ctx.color
        if ctx.record.transfer:
            state = replace(state, transfer_tokens=bump(state.transfer_tokens, color, -1))
        if not turn_complete:
            return replace(state, void_pending=VoidPending(color, self._moved_boards(ctx)))
        turns = bump(state.turns_by_color, color, 1)
        state = replace(state, void_pending=None, turns_by_color=turns)
        if turns[color.index] % self.settings.transfer_token_interval == 0:
            logger.debug("void: %s earns a transfer token", color.name.lower())
            state = replace(state, transfer_tokens=bump(state.transfer_tokens, color, 1))
        return state


MODIFIERS: Dict[str, Type[Modifier]] = {
    FISCHER_RANDOM: FischerRandom,
    PAWN_WALL: PawnWall,
    PAWN_ROTATION: PawnRotation,
    XRAY_BISHOP: XRayBishop,
    METEOR_SHOWER: MeteorShower,
    DOUBLE_KNIGHT: DoubleKnight,
    BLINK: Blink,
    FOG_OF_WAR: FogOfWar,
    VOID: Void,
}


@dataclass(frozen=True)
class RuleSet:
    """Canonically ordered set of active modifiers.

    ``RuleSet.parse(["blink", "standard"])`` and ``RuleSet.parse(["blink"])``
    are equal; an empty rule set is standard chess.
    """

    names: Tuple[str, ...] = ()
    settings: VariantSettings = DEFAULT_SETTINGS
    modifiers: Tuple[Modifier, ...] = field(default=(), init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        unknown = [n for n in self.names if n not in MODIFIERS]
        if unknown:
            raise RuleSetError(f"unknown rules: {', '.join(unknown)}")
        ordered = tuple(n for n in RULE_ORDER if n in self.names)
        if VOID in ordered and len(ordered) > 1:
            raise RuleSetError("void cannot be combined with single-board rules")
        object.__setattr__(self, "names", ordered)
        object.__setattr__(self, "modifiers", tuple(MODIFIERS[n](self.settings) for n in ordered))

    @classmethod
    def parse(cls, names: Iterable[str], settings: VariantSettings = DEFAULT_SETTINGS) -> "RuleSet":
        return cls(tuple(n for n in names if n != STANDARD), settings)

    @classmethod
    def standard(cls) -> "RuleSet":
        return cls()

    def __contains__(self, name: object) -> bool:
        return name in self.names

    @property
    def labels(self) -> Tuple[str, ...]:
        return self.names or (STANDARD,)

    @property
    def dual_board(self) -> bool:
        return VOID in self.names

    def modifier(self, name: str) -> Optional[Modifier]:
        for m in self.modifiers:
            if m.name == name:
                return m
        return None

    def setup(self, state: GameState) -> GameState:
        for m in self.modifiers:
            state = m.setup(state)
        return state

    def geometry(self, state: GameState) -> Geometry:
        geometry = Geometry()
        for m in self.modifiers:
            geometry = m.configure(geometry, state)
        return geometry

    def filter_moves(
        self,
        state: GameState,
        board_index: int,
        from_sq: int,
        piece: Piece,
        moves: Dict[int, MoveKind],
    ) -> Dict[int, MoveKind]:
        for m in self.modifiers:
            moves = m.filter_moves(state, board_index, from_sq, piece, moves)
        return moves

    def ends_turn(self, ctx: MoveContext) -> bool:
        return all(m.ends_turn(ctx) for m in self.modifiers)

    def after_move(self, ctx: MoveContext, state: GameState, turn_complete: bool) -> GameState:
        for m in self.modifiers:
            state = m.after_move(ctx, state, turn_complete)
        return state

    def visible_squares(self, state: GameState, viewer: Color) -> FrozenSet[int]:
        fog = self.modifier(FOG_OF_WAR)
        if isinstance(fog, FogOfWar):
            return fog.visible_squares(state, viewer)
        return frozenset(range(64))

