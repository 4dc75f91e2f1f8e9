from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Set, Union

from .apply import apply_move
from .legality import legal_destinations, legal_moves, transfer_targets
from .move import Move, str_to_square
from .pieces import Color
from .rules import RuleSet
from .setup import create_initial_state
from .state import GameState


SquareLike = Union[int, str]


def _square(square: SquareLike) -> int:
    if isinstance(square, str):
        return str_to_square(square)
    return square


def get_legal_moves(state: GameState, rules: RuleSet, square: SquareLike, board: int = 0) -> Set[int]:
    """Legal destination squares of the piece on ``square``.

    Empty or enemy squares yield an empty set. Castling appears as the
    castling target square and blink teleports as plain destinations.
    """
    return legal_destinations(state, rules, _square(square), board)


def get_transfer_targets(state: GameState, rules: RuleSet, square: SquareLike, board: int = 0) -> Set[int]:
    return transfer_targets(state, rules, _square(square), board)


def submit_move(state: GameState, rules: RuleSet, move: Move) -> GameState:
    return apply_move(state, rules, move)


def visible_squares(state: GameState, rules: RuleSet, viewer: Color) -> FrozenSet[int]:
    return rules.visible_squares(state, viewer)


@dataclass
class Game:
    """Game wrapper around an immutable state with a replayable history.

    Responsibility: keep rules, seed and the accepted moves; undo rebuilds
    from the initial state so variant bookkeeping never needs reversing.
    """

    rules: RuleSet
    initial_state: GameState
    state: GameState
    move_stack: List[Move] = field(default_factory=list)

    @classmethod
    def new(cls, rules: Optional[RuleSet] = None, seed: Optional[str] = None) -> "Game":
        rules = rules or RuleSet.standard()
        initial = create_initial_state(rules, seed)
        return cls(rules=rules, initial_state=initial, state=initial)

    @classmethod
    def replay(cls, rules: RuleSet, seed: str, moves: Iterable[Move]) -> "Game":
        """Rebuild a game from its seed and accepted moves.

        Raises:
            RuleViolation: If a move in the list is not legal where it occurs.
        """
        game = cls.new(rules, seed)
        for move in moves:
            game.apply_move(move)
        return game

    @property
    def seed(self) -> str:
        return self.initial_state.seed

    def legal_moves(self) -> List[Move]:
        return legal_moves(self.state, self.rules)

    def apply_move(self, move: Move) -> GameState:
        self.state = apply_move(self.state, self.rules, move)
        self.move_stack.append(move)
        return self.state

    def undo_move(self) -> Move:
        if not self.move_stack:
            raise ValueError("no moves to undo")
        last = self.move_stack.pop()
        state = self.initial_state
        for move in self.move_stack:
            state = apply_move(state, self.rules, move)
        self.state = state
        return last

    # --- State flags for protocol ---
    def in_check(self) -> bool:
        return self.state.in_check

    def checkmate(self) -> bool:
        return self.state.checkmate

    def stalemate(self) -> bool:
        return self.state.stalemate

    def move_history(self) -> List[str]:
        return [m.describe() for m in self.move_stack]
