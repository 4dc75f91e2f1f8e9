from __future__ import annotations

import pytest

from variant_chess.engine.apply import apply_move
from variant_chess.engine.config import VariantSettings
from variant_chess.engine.errors import IllegalDestination, PromotionRequired, VariantConflict
from variant_chess.engine.game import get_legal_moves, get_transfer_targets
from variant_chess.engine.legality import legal_moves
from variant_chess.engine.move import Move, parse_uci, str_to_square
from variant_chess.engine.pieces import Color
from variant_chess.engine.rules import RuleSet
from variant_chess.engine.setup import create_initial_state, create_position
from variant_chess.engine.state import VoidPending


RULES = RuleSet.parse(["void"])


def sq(name: str) -> int:
    return str_to_square(name)


def transfer(from_name: str, to_name: str, board: int = 0, promotion=None) -> Move:
    return Move(sq(from_name), sq(to_name), promotion, board=board, to_board=1 - board)


def test_two_standard_boards_and_one_token_each() -> None:
    state = create_initial_state(RULES, "v")
    assert len(state.boards) == 2
    assert state.boards[0] == state.boards[1]
    assert state.transfer_tokens == (1, 1)


def test_turn_needs_a_sub_move_on_each_board() -> None:
    state = create_initial_state(RULES, "v")
    state = apply_move(state, RULES, parse_uci("e2e4", board=0))
    assert state.side_to_move is Color.WHITE
    assert state.void_pending == VoidPending(Color.WHITE, (0,))
    assert get_legal_moves(state, RULES, "d2", board=0) == set()
    with pytest.raises(VariantConflict):
        apply_move(state, RULES, parse_uci("d2d4", board=0))

    state = apply_move(state, RULES, parse_uci("d2d4", board=1))
    assert state.side_to_move is Color.BLACK
    assert state.void_pending is None
    assert state.turns_completed == 1
    assert state.fullmove_number == 1
    assert state.boards[0].ep_square == sq("e3")
    assert state.boards[1].ep_square == sq("d3")


def test_transfer_consumes_the_turn_and_a_token() -> None:
    state = create_initial_state(RULES, "v")
    state = apply_move(state, RULES, parse_uci("e2e4", board=0))
    state = apply_move(state, RULES, parse_uci("e2e4", board=1))

    assert sq("e5") in get_transfer_targets(state, RULES, "b8", board=0)
    after = apply_move(state, RULES, transfer("b8", "e5"))
    assert after.side_to_move is Color.WHITE
    assert after.transfer_tokens == (1, 0)
    assert after.board_at(0).is_empty(sq("b8"))
    assert after.board_at(1).piece_at(sq("e5")).symbol == "n"
    assert after.last_move is not None and after.last_move.transfer
    assert after.turns_completed == 2


def test_transfer_after_a_sub_move_is_a_conflict() -> None:
    state = apply_move(create_initial_state(RULES, "v"), RULES, parse_uci("e2e4", board=0))
    assert get_transfer_targets(state, RULES, "b1", board=1) == set()
    with pytest.raises(VariantConflict):
        apply_move(state, RULES, transfer("b1", "e5", board=1))


def test_transfer_without_tokens_is_a_conflict() -> None:
    state = create_initial_state(RULES, "v")
    state = apply_move(state, RULES, transfer("b1", "e5"))
    state = apply_move(state, RULES, transfer("b8", "d4"))
    assert state.transfer_tokens == (0, 0)
    with pytest.raises(VariantConflict):
        apply_move(state, RULES, transfer("g1", "e4"))


def test_transfer_outside_void_is_a_conflict() -> None:
    state = create_initial_state(RuleSet.standard(), "v")
    with pytest.raises(VariantConflict):
        apply_move(state, RuleSet.standard(), transfer("b1", "e5"))


def test_kings_and_back_rank_pawns_cannot_transfer() -> None:
    state = create_position(
        RULES,
        {"e1": "K", "e8": "k", "a2": "P"},
        extra_boards=[{"e1": "K", "e8": "k"}],
        transfer_tokens=(1, 1),
    )
    assert get_transfer_targets(state, RULES, "e1") == set()
    targets = get_transfer_targets(state, RULES, "a2")
    assert targets
    assert not any(t < 8 for t in targets)
    with pytest.raises(IllegalDestination):
        apply_move(state, RULES, transfer("e1", "d4"))


def test_transferred_pawn_must_promote_on_terminal_rank() -> None:
    state = create_position(
        RULES,
        {"e1": "K", "e8": "k", "a2": "P"},
        extra_boards=[{"e1": "K", "e8": "k"}],
        transfer_tokens=(1, 1),
    )
    with pytest.raises(PromotionRequired):
        apply_move(state, RULES, transfer("a2", "a8"))
    after = apply_move(state, RULES, transfer("a2", "a8", promotion="q"))
    assert after.board_at(1).piece_at(sq("a8")).symbol == "Q"
    assert after.in_check


def test_check_on_either_board_restricts_both() -> None:
    state = create_position(
        RULES,
        {"e1": "K", "e8": "k", "a2": "P"},
        extra_boards=[{"e1": "K", "e8": "k", "e5": "r"}],
    )
    assert state.in_check
    # board 0 moves cannot help the king on board 1
    assert get_legal_moves(state, RULES, "a2", board=0) == set()
    assert all(m.board == 1 for m in legal_moves(state, RULES))


def test_board_without_moves_is_skipped() -> None:
    # White is stuck on board 1: king a1 boxed in by the queen on c2
    state = create_position(
        RULES,
        {"e1": "K", "e8": "k"},
        extra_boards=[{"a1": "K", "c2": "q", "h8": "k"}],
    )
    assert not state.in_check
    after = apply_move(state, RULES, parse_uci("e1e2", board=0))
    assert after.side_to_move is Color.BLACK
    assert after.void_pending is None


def test_tokens_are_granted_per_completed_turns() -> None:
    rules = RuleSet.parse(["void"], VariantSettings(transfer_token_interval=1))
    state = create_initial_state(rules, "v")
    state = apply_move(state, rules, parse_uci("e2e4", board=0))
    state = apply_move(state, rules, parse_uci("e2e4", board=1))
    assert state.turns_by_color == (1, 0)
    assert state.transfer_tokens == (2, 1)


def test_board_selector_out_of_range() -> None:
    state = create_initial_state(RuleSet.standard(), "v")
    with pytest.raises(IllegalDestination):
        apply_move(state, RuleSet.standard(), parse_uci("e2e4", board=1))


def test_transfer_onto_the_same_board_is_rejected() -> None:
    state = create_initial_state(RULES, "v")
    with pytest.raises(IllegalDestination):
        apply_move(state, RULES, Move(sq("b1"), sq("c3"), board=0, to_board=0))
    with pytest.raises(IllegalDestination):
        apply_move(state, RULES, Move(sq("b1"), sq("c3"), board=0, to_board=2))
