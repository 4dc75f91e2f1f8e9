from __future__ import annotations

import pytest

from variant_chess.engine.apply import apply_move
from variant_chess.engine.errors import IllegalDestination, NoPieceAtSource, WrongSideToMove
from variant_chess.engine.game import get_legal_moves
from variant_chess.engine.legality import legal_moves
from variant_chess.engine.move import parse_uci, square_to_str, str_to_square
from variant_chess.engine.pieces import Color
from variant_chess.engine.rules import RuleSet
from variant_chess.engine.setup import create_initial_state


STANDARD = RuleSet.standard()


def play(state, *ucis: str):
    for uci in ucis:
        state = apply_move(state, STANDARD, parse_uci(uci))
    return state


def test_start_position_pawn_and_knight_moves() -> None:
    state = create_initial_state(STANDARD, "s")
    assert {square_to_str(s) for s in get_legal_moves(state, STANDARD, "e2")} == {"e3", "e4"}
    assert {square_to_str(s) for s in get_legal_moves(state, STANDARD, "g1")} == {"f3", "h3"}
    assert len(legal_moves(state, STANDARD)) == 20


def test_enemy_and_empty_squares_have_no_moves() -> None:
    state = create_initial_state(STANDARD, "s")
    assert get_legal_moves(state, STANDARD, "e7") == set()
    assert get_legal_moves(state, STANDARD, "e4") == set()


def test_apply_returns_new_state_and_does_not_mutate() -> None:
    state = create_initial_state(STANDARD, "s")
    after = play(state, "e2e4")

    assert state.board.piece_at(str_to_square("e2")).symbol == "P"
    assert state.board.is_empty(str_to_square("e4"))
    assert state.side_to_move is Color.WHITE

    assert after.board.piece_at(str_to_square("e4")).symbol == "P"
    assert after.side_to_move is Color.BLACK
    assert after.boards[0].ep_square == str_to_square("e3")
    assert after.halfmove_clock == 0
    assert after.fullmove_number == 1
    assert after.seed == state.seed


def test_states_are_hashable_and_boards_read_only() -> None:
    start = create_initial_state(STANDARD, "a")
    after = play(start, "e2e4")
    assert hash(start) == hash(create_initial_state(STANDARD, "a"))
    assert len({start, after, create_initial_state(STANDARD, "a")}) == 2
    with pytest.raises(TypeError):
        after.board.squares[str_to_square("e4")] = None  # type: ignore[index]
    assert not hasattr(after.board, "put")


def test_exd5_available_and_ep_target_d6() -> None:
    state = play(create_initial_state(STANDARD, "s"), "e2e4", "d7d5")
    assert state.boards[0].ep_square == str_to_square("d6")
    assert state.fullmove_number == 2
    assert str_to_square("d5") in get_legal_moves(state, STANDARD, "e4")

    after = play(state, "e4d5")
    assert after.last_move is not None
    assert after.last_move.captured is not None and after.last_move.captured.symbol == "p"
    assert after.boards[0].ep_square is None


def test_halfmove_clock_counts_quiet_piece_moves() -> None:
    state = play(create_initial_state(STANDARD, "s"), "g1f3", "g8f6", "b1c3")
    assert state.halfmove_clock == 3
    state = play(state, "e7e5")
    assert state.halfmove_clock == 0
    assert state.fullmove_number == 3


def test_rejections_leave_state_untouched() -> None:
    state = create_initial_state(STANDARD, "s")
    with pytest.raises(WrongSideToMove):
        play(state, "e7e5")
    with pytest.raises(NoPieceAtSource):
        play(state, "e4e5")
    with pytest.raises(IllegalDestination):
        play(state, "e2e5")
    assert state == create_initial_state(STANDARD, "s")


def test_check_must_be_answered() -> None:
    # Bb5+ along the opened e8-a4 diagonal
    state = play(create_initial_state(STANDARD, "s"), "e2e4", "d7d6", "f1b5")
    assert get_legal_moves(state, STANDARD, "c7") == {str_to_square("c6")}
    assert get_legal_moves(state, STANDARD, "b8") == {str_to_square("d7"), str_to_square("c6")}


def test_every_listed_move_leaves_mover_out_of_check() -> None:
    from variant_chess.engine.attacks import is_king_in_check

    state = play(create_initial_state(STANDARD, "s"), "e2e4", "e7e5", "d1h5", "b8c6", "f1c4")
    for move in legal_moves(state, STANDARD):
        after = apply_move(state, STANDARD, move)
        assert not is_king_in_check(after.board, Color.BLACK)
