from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set

from .attacks import is_king_in_check, is_square_attacked
from .board import Board
from .errors import IllegalDestination
from .mechanics import CastleOption, castle_squares, needs_promotion, relocate, transplant
from .move import Move, file_of, make_square, rank_of
from .movegen import Geometry, MoveKind, pseudo_moves
from .pieces import Color, Kind, PROMOTION_KINDS
from .rules import RuleSet
from .state import BoardState, GameState, castling_token


PROMOS = tuple(PROMOTION_KINDS)


def castling_options(board_state: BoardState, color: Color, geometry: Geometry) -> List[CastleOption]:
    """Castling moves available to ``color`` on one board.

    Works for standard and randomized back ranks alike: the king always lands
    on the g/c file and the rook on the f/d file, every square spanned by the
    two paths must be empty (the king and rook themselves excepted) and
    unburned, and the king may not be in, pass through, or land in check.
    """
    board = board_state.board
    king_sq = board.king_square(color)
    if king_sq is None or rank_of(king_sq) != color.back_rank:
        return []
    opponent = color.opponent()
    if is_square_attacked(board, king_sq, opponent, geometry):
        return []

    options: List[CastleOption] = []
    for king_side in (True, False):
        if castling_token(color, king_side) not in board_state.castling:
            continue
        rook_sq = board_state.castling_rooks.get(color, king_side)
        if rook_sq is None:
            continue
        rook = board.piece_at(rook_sq)
        if rook is None or rook.kind is not Kind.ROOK or rook.color is not color:
            continue
        opt = castle_squares(color, king_sq, rook_sq, king_side)
        files = [file_of(s) for s in (opt.king_from, opt.king_to, opt.rook_from, opt.rook_to)]
        span = [make_square(f, color.back_rank) for f in range(min(files), max(files) + 1)]
        if any(
            s in geometry.burned or (s not in (king_sq, rook_sq) and not board.is_empty(s))
            for s in span
        ):
            continue
        step = 1 if opt.king_to >= king_sq else -1
        path = range(king_sq, opt.king_to + step, step)
        if any(is_square_attacked(board, s, opponent, geometry) for s in path):
            continue
        options.append(opt)
    return options


def castle_option_for(
    board_state: BoardState, color: Color, target: int, geometry: Geometry
) -> Optional[CastleOption]:
    for opt in castling_options(board_state, color, geometry):
        if opt.target == target:
            return opt
    return None


def _kings_safe(boards: Sequence[Board], color: Color, geometry: Geometry) -> bool:
    return not any(is_king_in_check(b, color, geometry) for b in boards)


def _check_board_index(state: GameState, board_index: int) -> None:
    if not 0 <= board_index < len(state.boards):
        raise IllegalDestination(f"no board with index {board_index}")


def legal_move_kinds(
    state: GameState, rules: RuleSet, from_sq: int, board_index: int = 0
) -> Dict[int, MoveKind]:
    """Legal destinations of the piece on ``from_sq`` with their move kinds.

    Pipeline: pseudo-legal geometry, castling options, modifier hooks, no
    capture of a king, then simulate-and-reject anything that leaves the
    mover with a king in check on any board.
    """
    _check_board_index(state, board_index)
    board_state = state.boards[board_index]
    board = board_state.board
    piece = board.piece_at(from_sq)
    if piece is None or piece.color is not state.side_to_move:
        return {}

    geometry = rules.geometry(state)
    moves = pseudo_moves(board, from_sq, geometry, board_state.ep_square)
    castles: Dict[int, CastleOption] = {}
    if piece.kind is Kind.KING:
        for opt in castling_options(board_state, piece.color, geometry):
            castles[opt.target] = opt
            moves[opt.target] = MoveKind.CASTLE
    moves = rules.filter_moves(state, board_index, from_sq, piece, moves)

    legal: Dict[int, MoveKind] = {}
    boards = [bs.board for bs in state.boards]
    for to_sq, kind in moves.items():
        occupant = board.piece_at(to_sq)
        if kind is not MoveKind.CASTLE and occupant is not None and occupant.kind is Kind.KING:
            continue
        promotion = "q" if needs_promotion(piece, to_sq) and kind is not MoveKind.CASTLE else None
        new_board, _, _ = relocate(board, from_sq, to_sq, kind, promotion, castles.get(to_sq))
        trial = list(boards)
        trial[board_index] = new_board
        if _kings_safe(trial, piece.color, geometry):
            legal[to_sq] = kind
    return legal


def legal_destinations(
    state: GameState, rules: RuleSet, from_sq: int, board_index: int = 0
) -> Set[int]:
    return set(legal_move_kinds(state, rules, from_sq, board_index))


def transfer_targets(
    state: GameState, rules: RuleSet, from_sq: int, board_index: int = 0
) -> Set[int]:
    """Empty squares on the other board the piece on ``from_sq`` may transfer to."""
    if not rules.dual_board:
        return set()
    _check_board_index(state, board_index)
    color = state.side_to_move
    source = state.board_at(board_index)
    piece = source.piece_at(from_sq)
    if (
        piece is None
        or piece.color is not color
        or piece.kind is Kind.KING
        or state.tokens_for(color) <= 0
        or state.void_pending is not None
        or state.knight_pending is not None
    ):
        return set()

    geometry = rules.geometry(state)
    targets: Set[int] = set()
    boards = [bs.board for bs in state.boards]
    for target_index, target in enumerate(boards):
        if target_index == board_index:
            continue
        for to_sq in range(64):
            if not target.is_empty(to_sq) or to_sq in geometry.burned:
                continue
            if piece.kind is Kind.PAWN and rank_of(to_sq) == color.back_rank:
                continue
            promotion = "q" if needs_promotion(piece, to_sq) else None
            new_source, new_target, _ = transplant(source, target, from_sq, to_sq, promotion)
            trial = list(boards)
            trial[board_index] = new_source
            trial[target_index] = new_target
            if _kings_safe(trial, color, geometry):
                targets.add(to_sq)
    return targets


def side_has_moves_on(state: GameState, rules: RuleSet, board_index: int) -> bool:
    board = state.board_at(board_index)
    for sq, _piece in board.pieces(state.side_to_move):
        if legal_move_kinds(state, rules, sq, board_index):
            return True
    return False


def has_any_legal_move(state: GameState, rules: RuleSet) -> bool:
    """True if the side to move can play anything, transfers included."""
    for index in range(len(state.boards)):
        if side_has_moves_on(state, rules, index):
            return True
    if rules.dual_board:
        for index, bs in enumerate(state.boards):
            for sq, _piece in bs.board.pieces(state.side_to_move):
                if transfer_targets(state, rules, sq, index):
                    return True
    return False


def legal_moves(state: GameState, rules: RuleSet) -> List[Move]:
    """Every legal move of the side to move, promotions expanded.

    Transfers are listed after ordinary moves, with ``to_board`` set.
    """
    moves: List[Move] = []
    color = state.side_to_move
    for index, bs in enumerate(state.boards):
        for from_sq, piece in bs.board.pieces(color):
            for to_sq, kind in sorted(legal_move_kinds(state, rules, from_sq, index).items()):
                if kind is not MoveKind.CASTLE and needs_promotion(piece, to_sq):
                    moves.extend(Move(from_sq, to_sq, p, board=index) for p in PROMOS)
                else:
                    moves.append(Move(from_sq, to_sq, board=index))
    if rules.dual_board:
        for index, bs in enumerate(state.boards):
            other = 1 - index
            for from_sq, piece in bs.board.pieces(color):
                for to_sq in sorted(transfer_targets(state, rules, from_sq, index)):
                    if needs_promotion(piece, to_sq):
                        moves.extend(
                            Move(from_sq, to_sq, p, board=index, to_board=other) for p in PROMOS
                        )
                    else:
                        moves.append(Move(from_sq, to_sq, board=index, to_board=other))
    return moves
