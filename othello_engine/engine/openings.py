from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple

from .board import BLACK, Position, make_move, opponent
from .errors import InvalidMove
from .notation import string_to_moves

logger = logging.getLogger(__name__)

# Small embedded book of named lines from the initial position, Black first.
OPENINGS: List[Tuple[str, str]] = [
    ("Perpendicular", "f5d6"),
    ("Parallel", "f5f4"),
    ("Diagonal", "f5f6"),
    ("Tiger", "f5d6c3d3c4"),
    ("Cow", "f5d6c5"),
    ("Buffalo", "f5f6e6f4c3"),
]


def _transpose(sq: int) -> int:
    r, c = divmod(sq, 8)
    return c * 8 + r


def _anti_transpose(sq: int) -> int:
    r, c = divmod(sq, 8)
    return (7 - c) * 8 + (7 - r)


def _rotate180(sq: int) -> int:
    return 63 - sq


# The symmetries that map the initial position onto itself
SYMMETRIES: List[Callable[[int], int]] = [lambda sq: sq, _transpose, _anti_transpose, _rotate180]


@lru_cache(maxsize=1)
def book_table() -> Dict[int, List[Tuple[int, str]]]:
    """Map hash64(position, side) -> [(move, opening name)] in book order."""
    table: Dict[int, List[Tuple[int, str]]] = {}
    for name, line in OPENINGS:
        moves = string_to_moves(line)
        for sym in SYMMETRIES:
            pos, side = Position.initial(), BLACK
            for sq in (sym(m) for m in moves):
                key = pos.hash64(side)
                try:
                    nxt, _ = make_move(pos, sq, side)
                except InvalidMove:
                    logger.warning("opening %s is illegal at %s; truncated", name, sq)
                    break
                bucket = table.setdefault(key, [])
                if all(m != sq for m, _ in bucket):
                    bucket.append((sq, name))
                pos, side = nxt, opponent(side)
    return table


def book_move(pos: Position, side: int) -> Optional[Tuple[int, str]]:
    """First book continuation for this position, or None when out of book."""
    entries = book_table().get(pos.hash64(side))
    if not entries:
        return None
    return entries[0]


def name_for_prefix(moves: List[int]) -> Optional[str]:
    # Longest named line (under any symmetry) that the move list follows
    best = None
    best_len = 0
    for name, line in OPENINGS:
        book = string_to_moves(line)
        for sym in SYMMETRIES:
            mapped = [sym(m) for m in book]
            n = min(len(moves), len(mapped))
            if n and moves[:n] == mapped[:n] and n > best_len:
                best, best_len = name, n
    return best
