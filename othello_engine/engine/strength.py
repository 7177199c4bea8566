from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple


@dataclass(frozen=True)
class DifficultyProfile:
    """Search constraints and mistake policy for one strength tier."""

    name: str
    max_depth: int
    time_ms: int
    mistake_prob: float
    use_opening_book: bool = False

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"{self.name}: max_depth must be >= 1")
        if self.time_ms <= 0:
            raise ValueError(f"{self.name}: time_ms must be positive")
        if not 0.0 <= self.mistake_prob <= 1.0:
            raise ValueError(f"{self.name}: mistake_prob must be in [0, 1]")

    def with_overrides(self, **fields) -> "DifficultyProfile":
        return replace(self, **fields)

    def select_move(self, ranked: Sequence[Tuple[int, int]], rng: Optional[random.Random] = None) -> Optional[int]:
        """Pick the move to play from (move, score) pairs sorted best first.

        With probability `mistake_prob` a move other than the best is drawn
        uniformly. Runs after the search, so search diagnostics are unaffected.
        """
        if not ranked:
            return None
        best = ranked[0][0]
        if self.mistake_prob <= 0.0 or len(ranked) == 1:
            return best
        rng = rng or random.Random()
        if rng.random() < self.mistake_prob:
            return rng.choice(ranked[1:])[0]
        return best


PROFILES: Dict[str, DifficultyProfile] = {
    "beginner": DifficultyProfile("beginner", 2, 100, 0.30, False),
    "intermediate": DifficultyProfile("intermediate", 4, 500, 0.15, False),
    "advanced": DifficultyProfile("advanced", 6, 2000, 0.05, True),
    "expert": DifficultyProfile("expert", 12, 5000, 0.0, True),
}

DEFAULT_PROFILE = "advanced"


def get_profile(name: str, profiles: Optional[Dict[str, DifficultyProfile]] = None) -> DifficultyProfile:
    table = PROFILES if profiles is None else profiles
    try:
        return table[name.lower()]
    except KeyError:
        raise ValueError(f"unknown difficulty profile {name!r}; choose from {sorted(table)}") from None
