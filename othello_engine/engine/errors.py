from __future__ import annotations


class InvalidMove(ValueError):
    """Raised for out-of-range, occupied, or zero-flip moves."""

    def __init__(self, sq: int, reason: str) -> None:
        super().__init__(f"illegal move {sq}: {reason}")
        self.sq = sq
        self.reason = reason


class InvalidPosition(ValueError):
    """Raised when occupancy masks or the side to move are malformed."""


class SearchInProgress(RuntimeError):
    """Raised when a second search is started for a game that is still searching."""
