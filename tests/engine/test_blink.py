from __future__ import annotations

import pytest

from variant_chess.engine.apply import apply_move
from variant_chess.engine.errors import IllegalDestination
from variant_chess.engine.game import get_legal_moves
from variant_chess.engine.move import distance, parse_uci, square_to_str, str_to_square
from variant_chess.engine.pieces import Color
from variant_chess.engine.rules import RuleSet
from variant_chess.engine.setup import create_position


RULES = RuleSet.parse(["blink"])


def dests(state, square: str) -> set[str]:
    return {square_to_str(sq) for sq in get_legal_moves(state, RULES, square)}


def _position(**kwargs):
    return create_position(RULES, {"e1": "K", "e8": "k", "a8": "r", "h1": "R"}, **kwargs)


def test_king_may_teleport_to_safe_squares() -> None:
    ms = dests(_position(), "e1")
    assert "e5" in ms
    assert "a8" in ms  # undefended rook
    assert "e8" not in ms  # never onto the enemy king
    assert "e7" not in ms  # next to the enemy king
    assert "b8" not in ms  # on the rook's rank
    assert "h1" not in ms  # own piece


def test_teleport_is_once_per_game() -> None:
    state = apply_move(_position(), RULES, parse_uci("e1e5"))
    assert state.blink_used == frozenset({Color.WHITE})
    assert state.last_move is not None and state.last_move.teleport
    state = apply_move(state, RULES, parse_uci("a8a7"))
    e5 = str_to_square("e5")
    assert all(distance(sq, e5) == 1 for sq in get_legal_moves(state, RULES, "e5"))
    with pytest.raises(IllegalDestination):
        apply_move(state, RULES, parse_uci("e5e2"))


def test_each_color_has_its_own_charge() -> None:
    state = apply_move(_position(), RULES, parse_uci("e1e5"))
    black = dests(state, "e8")
    assert "c5" in black
    after = apply_move(state, RULES, parse_uci("e8c5"))
    assert after.blink_used == frozenset({Color.WHITE, Color.BLACK})


def test_castling_does_not_consume_the_charge() -> None:
    state = _position(castling="K")
    after = apply_move(state, RULES, parse_uci("e1g1"))
    assert after.last_move is not None
    assert after.last_move.castling and not after.last_move.teleport
    assert after.blink_used == frozenset()
    assert after.board.piece_at(str_to_square("f1")).symbol == "R"


def test_teleport_forfeits_castling_rights() -> None:
    after = apply_move(_position(castling="K"), RULES, parse_uci("e1e4"))
    assert after.boards[0].castling == ""


def test_teleport_respects_burned_squares() -> None:
    state = _position(burned=frozenset({str_to_square("e5")}))
    assert "e5" not in dests(state, "e1")
