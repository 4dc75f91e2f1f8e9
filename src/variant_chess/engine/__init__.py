"""Rule engine: board, move generation, legality and the variant pipeline.

Pure and synchronous; every accepted move produces a new GameState.
"""

from __future__ import annotations

from .errors import (
    IllegalDestination,
    InvalidSquare,
    NoPieceAtSource,
    PromotionRequired,
    RuleSetError,
    RuleViolation,
    VariantConflict,
    WrongSideToMove,
)
from .game import Game, get_legal_moves, get_transfer_targets, submit_move, visible_squares
from .move import Move, parse_uci, square_to_str, str_to_square
from .pieces import Color, Kind, Piece
from .rules import RuleSet
from .setup import create_initial_state
from .state import GameState

__all__ = [
    "Color",
    "Game",
    "GameState",
    "IllegalDestination",
    "InvalidSquare",
    "Kind",
    "Move",
    "NoPieceAtSource",
    "Piece",
    "PromotionRequired",
    "RuleSet",
    "RuleSetError",
    "RuleViolation",
    "VariantConflict",
    "WrongSideToMove",
    "create_initial_state",
    "get_legal_moves",
    "get_transfer_targets",
    "parse_uci",
    "square_to_str",
    "str_to_square",
    "submit_move",
    "visible_squares",
]
