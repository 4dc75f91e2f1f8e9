from __future__ import annotations


class RuleViolation(ValueError):
    """Base class for per-move rejections.

    A rule violation never mutates the state it was raised against; callers
    can re-prompt and submit again.
    """

    code = "rule_violation"


class InvalidSquare(RuleViolation):
    code = "invalid_square"


class NoPieceAtSource(RuleViolation):
    code = "no_piece_at_source"


class WrongSideToMove(RuleViolation):
    code = "wrong_side_to_move"


class IllegalDestination(RuleViolation):
    code = "illegal_destination"


class PromotionRequired(RuleViolation):
    code = "promotion_required"


class VariantConflict(RuleViolation):
    code = "variant_conflict"


class RuleSetError(ValueError):
    """Raised for unknown rule names or combinations that cannot coexist."""

    code = "invalid_rules"
