from __future__ import annotations

from dataclasses import replace

from .attacks import is_king_in_check
from .legality import has_any_legal_move
from .rules import RuleSet
from .state import GameState


def side_in_check(state: GameState, rules: RuleSet) -> bool:
    """Whether the side to move has a king in check on any board."""
    geometry = rules.geometry(state)
    color = state.side_to_move
    return any(is_king_in_check(bs.board, color, geometry) for bs in state.boards)


def evaluate_status(state: GameState, rules: RuleSet) -> GameState:
    """Recompute the check/checkmate/stalemate flags for the side to move.

    A pending double-knight continuation restricts the search to that knight,
    so a knight with nowhere to go leaves its side without a legal move.
    """
    in_check = side_in_check(state, rules)
    can_move = has_any_legal_move(state, rules)
    return replace(
        state,
        in_check=in_check,
        checkmate=in_check and not can_move,
        stalemate=not in_check and not can_move,
    )
