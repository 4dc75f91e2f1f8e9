from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class VariantSettings:
    """Tunable constants of the optional rule modifiers.

    Attributes:
        meteor_interval_full_moves (int): Full moves between meteor strikes.
        fog_turns (int): Completed turns during which fog-of-war is active.
        initial_transfer_tokens (int): Void transfer tokens per color at start.
        transfer_token_interval (int): Completed turns per color that earn
            one more transfer token.
    """

    meteor_interval_full_moves: int = 5
    fog_turns: int = 10
    initial_transfer_tokens: int = 1
    transfer_token_interval: int = 10

    def __post_init__(self) -> None:
        if self.meteor_interval_full_moves <= 0:
            raise ValueError("meteor_interval_full_moves must be > 0")
        if self.fog_turns < 0:
            raise ValueError("fog_turns must be >= 0")
        if self.initial_transfer_tokens < 0:
            raise ValueError("initial_transfer_tokens must be >= 0")
        if self.transfer_token_interval <= 0:
            raise ValueError("transfer_token_interval must be > 0")


DEFAULT_SETTINGS = VariantSettings()
