from __future__ import annotations

from typing import Dict, Tuple

from .bitboard import iter_squares
from .board import Position, make_move, opponent
from .eval import evaluate, terminal_score

# Exhaustive minimax without pruning or caching. Slow; used to cross-check
# the alpha-beta search on small depths.


def minimax(pos: Position, side: int, depth: int, root_side: int) -> int:
    """Value of `pos` with `side` to move, from `root_side`'s perspective."""
    if depth == 0:
        return evaluate(pos, root_side, to_move=side)
    mask = pos.legal_mask(side)
    if mask == 0:
        if pos.legal_mask(opponent(side)) == 0:
            return terminal_score(pos, root_side)
        return minimax(pos, opponent(side), depth, root_side)
    values = []
    for sq in iter_squares(mask):
        child, _ = make_move(pos, sq, side)
        values.append(minimax(child, opponent(side), depth - 1, root_side))
    return max(values) if side == root_side else min(values)


def root_values(pos: Position, side: int, depth: int) -> Dict[int, int]:
    """Exact minimax value of every legal root move."""
    out = {}
    for sq in iter_squares(pos.legal_mask(side)):
        child, _ = make_move(pos, sq, side)
        out[sq] = minimax(child, opponent(side), depth - 1, side)
    return out


def best(pos: Position, side: int, depth: int) -> Tuple[int, Dict[int, int]]:
    values = root_values(pos, side, depth)
    if not values:
        return minimax(pos, side, depth, side), values
    return max(values.values()), values
