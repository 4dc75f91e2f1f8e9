from __future__ import annotations

import logging
import uuid
from typing import Iterable, Mapping, Optional

from .board import Board
from .move import str_to_square
from .pieces import Color
from .rules import RuleSet
from .state import BoardState, CastlingRooks, GameState
from .status import evaluate_status


logger = logging.getLogger(__name__)


def new_seed() -> str:
    return uuid.uuid4().hex


def create_initial_state(rules: RuleSet, seed: Optional[str] = None) -> GameState:
    """Build the starting state for ``rules``.

    The same ``rules`` and ``seed`` always produce the same state, which is
    what undo and replay rely on.

    Args:
        rules (RuleSet): Active rule modifiers.
        seed (Optional[str]): Stable game seed; a random one is drawn when
            omitted and stored on the state.

    Returns:
        GameState: White to move, status flags evaluated.
    """
    if seed is None:
        seed = new_seed()
    state = GameState(boards=(BoardState(board=Board.startpos()),), seed=seed)
    state = rules.setup(state)
    logger.debug("new game rules=%s seed=%s", ",".join(rules.labels), seed)
    return evaluate_status(state, rules)


def create_position(
    rules: RuleSet,
    pieces: Mapping[str, str],
    *,
    side_to_move: Color = Color.WHITE,
    castling: str = "",
    castling_rooks: Optional[CastlingRooks] = None,
    ep_square: Optional[str] = None,
    extra_boards: Iterable[Mapping[str, str]] = (),
    seed: str = "position",
    **fields,
) -> GameState:
    """Build an arbitrary position from square -> symbol mappings.

    ``pieces`` fills board 0 and each mapping in ``extra_boards`` adds one
    more board. Remaining keyword arguments set GameState fields directly
    (``burned``, ``blink_used``, ``transfer_tokens`` ...).
    """
    rooks = castling_rooks or CastlingRooks()
    ep = str_to_square(ep_square) if ep_square is not None else None
    boards = [BoardState(Board.from_mapping(pieces), castling, rooks, ep)]
    boards.extend(BoardState(Board.from_mapping(m), "", rooks) for m in extra_boards)
    state = GameState(boards=tuple(boards), side_to_move=side_to_move, seed=seed, **fields)
    return evaluate_status(state, rules)
