from __future__ import annotations

from typing import Dict

from .apply import apply_move
from .legality import legal_moves
from .rules import RuleSet
from .state import GameState


def perft(state: GameState, rules: RuleSet, depth: int) -> int:
    """Compute perft node count for ``state`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    A double-knight half move and a void sub-move count as plies of their
    own, so variant counts are not comparable with standard tables.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    nodes = 0
    for move in legal_moves(state, rules):
        nodes += perft(apply_move(state, rules, move), rules, depth - 1)
    return nodes


def divide(state: GameState, rules: RuleSet, depth: int) -> Dict[str, int]:
    """Per-root-move perft counts, keyed by the move's readable form."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    return {
        move.describe(): perft(apply_move(state, rules, move), rules, depth - 1)
        for move in legal_moves(state, rules)
    }
