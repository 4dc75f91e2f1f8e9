from __future__ import annotations

from variant_chess.engine.apply import apply_move
from variant_chess.engine.game import get_legal_moves
from variant_chess.engine.move import parse_uci, str_to_square
from variant_chess.engine.pieces import Color
from variant_chess.engine.rules import RuleSet
from variant_chess.engine.setup import create_initial_state, create_position


STANDARD = RuleSet.standard()


def test_en_passant_capture_removes_pawn_behind_target() -> None:
    state = create_initial_state(STANDARD, "s")
    for uci in ("e2e4", "a7a6", "e4e5", "d7d5"):
        state = apply_move(state, STANDARD, parse_uci(uci))
    assert str_to_square("d6") in get_legal_moves(state, STANDARD, "e5")

    after = apply_move(state, STANDARD, parse_uci("e5d6"))
    assert after.board.piece_at(str_to_square("d6")).symbol == "P"
    assert after.board.is_empty(str_to_square("d5"))
    assert after.last_move is not None and after.last_move.en_passant
    assert after.halfmove_clock == 0


def test_en_passant_expires_after_one_move() -> None:
    state = create_initial_state(STANDARD, "s")
    for uci in ("e2e4", "a7a6", "e4e5", "d7d5", "h2h3", "h7h6"):
        state = apply_move(state, STANDARD, parse_uci(uci))
    assert str_to_square("d6") not in get_legal_moves(state, STANDARD, "e5")


def test_en_passant_that_exposes_king_is_illegal() -> None:
    # Both pawns leave the fifth rank and open the rook's line to the king
    state = create_position(
        STANDARD,
        {"a5": "K", "b5": "P", "c5": "p", "h5": "r", "e8": "k"},
        ep_square="c6",
    )
    assert get_legal_moves(state, STANDARD, "b5") == {str_to_square("b6")}


def test_black_en_passant() -> None:
    state = create_position(
        STANDARD,
        {"e1": "K", "e8": "k", "d4": "p", "e4": "P"},
        side_to_move=Color.BLACK,
        ep_square="e3",
    )
    after = apply_move(state, STANDARD, parse_uci("d4e3"))
    assert after.board.is_empty(str_to_square("e4"))
    assert after.board.piece_at(str_to_square("e3")).symbol == "p"
