from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .errors import (
    IllegalDestination,
    NoPieceAtSource,
    PromotionRequired,
    VariantConflict,
    WrongSideToMove,
)
from .legality import castle_option_for, legal_move_kinds, side_has_moves_on, transfer_targets
from .mechanics import needs_promotion, relocate, transplant, update_castling
from .move import PROMOTION_PIECES, Move, file_of, rank_of, square_to_str
from .movegen import MoveKind
from .pieces import Color, Kind, Piece
from .rules import MoveContext, RuleSet
from .state import AppliedMove, GameState
from .status import evaluate_status


logger = logging.getLogger(__name__)


def _probe(rules: RuleSet):
    def probe(state: GameState, board_index: int) -> bool:
        return side_has_moves_on(state, rules, board_index)

    return probe


def _check_promotion(piece: Piece, move: Move, terminal: bool) -> None:
    if move.promotion is not None and move.promotion not in PROMOTION_PIECES:
        raise IllegalDestination(f"invalid promotion piece: {move.promotion!r}")
    if terminal and move.promotion is None:
        raise PromotionRequired(
            f"pawn reaching {square_to_str(move.to_sq)} must promote (q, r, b or n)"
        )
    if not terminal and move.promotion is not None:
        raise IllegalDestination("promotion is only allowed on the terminal rank")


def _source_piece(state: GameState, move: Move) -> Piece:
    if not 0 <= move.board < len(state.boards):
        raise IllegalDestination(f"no board with index {move.board}")
    piece = state.board_at(move.board).piece_at(move.from_sq)
    if piece is None:
        raise NoPieceAtSource(f"no piece on {square_to_str(move.from_sq)}")
    if piece.color is not state.side_to_move:
        raise WrongSideToMove(f"it is {_color_name(state.side_to_move)}'s turn")
    return piece


def _color_name(color: Color) -> str:
    return "white" if color is Color.WHITE else "black"


def apply_move(state: GameState, rules: RuleSet, move: Move) -> GameState:
    """Validate ``move`` against ``state`` and return the resulting state.

    The input state is never modified; any unmet precondition raises a
    :class:`~variant_chess.engine.errors.RuleViolation` before anything is
    built.

    Raises:
        NoPieceAtSource: Empty origin square.
        WrongSideToMove: Origin piece belongs to the side not on move.
        VariantConflict: A pending double-knight or dual-board sub-turn
            forbids this move, or a transfer is attempted without a token.
        IllegalDestination: Destination not among the legal moves.
        PromotionRequired: Pawn reaches the terminal rank without a choice.
    """
    if state.game_over:
        raise IllegalDestination("the game is over")
    if move.is_transfer:
        return _apply_transfer(state, rules, move)

    piece = _source_piece(state, move)
    pending = state.knight_pending
    if pending is not None and (pending.board, pending.square) != (move.board, move.from_sq):
        raise VariantConflict(
            f"the knight on {square_to_str(pending.square)} must complete its double move"
        )
    void_pending = state.void_pending
    if void_pending is not None and move.board in void_pending.moved_boards:
        raise VariantConflict(f"board {move.board} has already been played this turn")

    kinds = legal_move_kinds(state, rules, move.from_sq, move.board)
    kind = kinds.get(move.to_sq)
    if kind is None:
        reason = "burned square" if move.to_sq in state.burned else "illegal move"
        logger.debug("rejected %s: %s", move.describe(), reason)
        raise IllegalDestination(f"{reason}: {move.describe()}")
    _check_promotion(piece, move, kind is not MoveKind.CASTLE and needs_promotion(piece, move.to_sq))

    board_state = state.boards[move.board]
    castle = None
    if kind is MoveKind.CASTLE:
        castle = castle_option_for(board_state, piece.color, move.to_sq, rules.geometry(state))
    new_board, captured, captured_sq = relocate(
        board_state.board, move.from_sq, move.to_sq, kind, move.promotion, castle
    )

    ep_square: Optional[int] = None
    if (
        piece.kind is Kind.PAWN
        and file_of(move.from_sq) == file_of(move.to_sq)
        and abs(rank_of(move.to_sq) - rank_of(move.from_sq)) == 2
    ):
        ep_square = (move.from_sq + move.to_sq) // 2

    new_board_state = replace(
        board_state,
        board=new_board,
        castling=update_castling(board_state, piece, move.from_sq, captured_sq),
        ep_square=ep_square,
    )
    record = AppliedMove(
        move=move,
        piece=piece,
        captured=captured,
        castling=kind is MoveKind.CASTLE,
        en_passant=kind is MoveKind.EN_PASSANT,
        teleport=kind is MoveKind.TELEPORT,
    )
    placed = state.with_board_state(move.board, new_board_state)
    halfmove = 0 if piece.kind is Kind.PAWN or captured is not None else state.halfmove_clock + 1
    placed = replace(placed, halfmove_clock=halfmove, last_move=record)
    return _finish(state, placed, rules, record)


def _apply_transfer(state: GameState, rules: RuleSet, move: Move) -> GameState:
    if not rules.dual_board:
        raise VariantConflict("transfers are only available in void games")
    piece = _source_piece(state, move)
    to_board = move.to_board
    if to_board is None or to_board == move.board or not 0 <= to_board < len(state.boards):
        raise IllegalDestination(f"invalid transfer board {to_board}")
    if state.tokens_for(piece.color) <= 0:
        raise VariantConflict("no transfer tokens left")
    if state.void_pending is not None:
        raise VariantConflict("a transfer cannot follow a move in the same turn")
    if move.to_sq not in transfer_targets(state, rules, move.from_sq, move.board):
        raise IllegalDestination(f"illegal transfer: {move.describe()}")
    _check_promotion(piece, move, needs_promotion(piece, move.to_sq))

    source_state = state.boards[move.board]
    target_state = state.boards[to_board]
    new_source, new_target, _ = transplant(
        source_state.board, target_state.board, move.from_sq, move.to_sq, move.promotion
    )
    placed = state.with_board_state(
        move.board,
        replace(
            source_state,
            board=new_source,
            castling=update_castling(source_state, piece, move.from_sq, None),
            ep_square=None,
        ),
    )
    placed = placed.with_board_state(to_board, replace(target_state, board=new_target, ep_square=None))
    record = AppliedMove(move=move, piece=piece, transfer=True)
    placed = replace(placed, halfmove_clock=state.halfmove_clock + 1, last_move=record)
    logger.debug("transfer %s by %s", move.describe(), _color_name(piece.color))
    return _finish(state, placed, rules, record)


def _finish(before: GameState, placed: GameState, rules: RuleSet, record: AppliedMove) -> GameState:
    """Run turn bookkeeping, the modifier pipeline and the status evaluator."""
    ctx = MoveContext(before=before, after=placed, record=record, probe=_probe(rules))
    turn_complete = rules.ends_turn(ctx)
    state = placed
    if turn_complete:
        mover = before.side_to_move
        state = replace(
            state,
            side_to_move=mover.opponent(),
            fullmove_number=before.fullmove_number + (1 if mover is Color.BLACK else 0),
            turns_completed=before.turns_completed + 1,
        )
        if len(state.boards) > 1 and not record.transfer:
            # Boards the mover skipped still carry the opponent's stale target.
            moved = set(before.void_pending.moved_boards if before.void_pending else ())
            moved.add(record.move.board)
            state = replace(
                state,
                boards=tuple(
                    bs if i in moved else replace(bs, ep_square=None)
                    for i, bs in enumerate(state.boards)
                ),
            )
    else:
        logger.debug("turn of %s continues", _color_name(before.side_to_move))
    state = rules.after_move(ctx, state, turn_complete)
    return evaluate_status(state, rules)
