from __future__ import annotations

from typing import List, Optional, Sequence

from .bitboard import CORNER_MASK, C_MASK, EDGE_MASK, X_MASK, iter_squares
from .board import Position, check_side


def _rank(sq: int) -> int:
    bit = 1 << sq
    if bit & CORNER_MASK:
        return 0
    if bit & X_MASK:
        return 4
    if bit & C_MASK:
        return 3
    if bit & EDGE_MASK:
        return 1
    return 2


# Lower is tried earlier: corners, edges, interior, C-squares, X-squares
STATIC_RANK = tuple(_rank(sq) for sq in range(64))


def static_rank(sq: int) -> int:
    return STATIC_RANK[sq]


def order_moves(
    mask: int,
    tt_move: Optional[int] = None,
    killers: Sequence[int] = (),
    history: Optional[Sequence[int]] = None,
) -> List[int]:
    moves = list(iter_squares(mask))

    # Order moves using priority: TT → killers → static rank → history desc → square
    def move_key(sq: int) -> tuple:
        is_tt = 0 if sq == tt_move else 1
        is_killer = 0 if sq in killers else 1
        hist = -history[sq] if history is not None else 0
        return (is_tt, is_killer, STATIC_RANK[sq], hist, sq)

    moves.sort(key=move_key)
    return moves


def generate(
    pos: Position,
    side: int,
    tt_move: Optional[int] = None,
    killers: Sequence[int] = (),
    history: Optional[Sequence[int]] = None,
) -> List[int]:
    """Legal moves for `side`, best candidates first. Empty when the side must pass."""
    check_side(side)
    return order_moves(pos.legal_mask(side), tt_move, killers, history)
