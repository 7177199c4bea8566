from __future__ import annotations

from typing import Iterable, Optional, Tuple, Union

from .bitboard import iter_squares
from .board import BLACK, Position, make_move, opponent
from .errors import InvalidMove
from .notation import notation_to_coord, PASS_NOTATION


def perft(pos: Position, side: int, depth: int) -> int:
    """Count move paths of length `depth`; a forced pass counts as a move."""
    if depth == 0:
        return 1
    mask = pos.legal_mask(side)
    if mask == 0:
        if pos.legal_mask(opponent(side)) == 0:
            return 1
        return perft(pos, opponent(side), depth - 1)
    if depth == 1:
        return mask.bit_count()
    total = 0
    for sq in iter_squares(mask):
        child, _ = make_move(pos, sq, side)
        total += perft(child, opponent(side), depth - 1)
    return total


def play_moves(
    moves: Iterable[Union[str, int]],
    pos: Optional[Position] = None,
    side: int = BLACK,
) -> Tuple[Position, int]:
    """Replay moves from `pos` (default: the initial position), passing automatically
    when the side to move has no legal move. Returns the position and side to move."""
    b = Position.initial() if pos is None else pos
    for mv in moves:
        if mv == PASS_NOTATION or mv == -1:
            if b.has_moves(side):
                raise InvalidMove(-1, "pass while legal moves exist")
            side = opponent(side)
            continue
        sq = notation_to_coord(mv) if isinstance(mv, str) else mv
        if not b.has_moves(side) and b.has_moves(opponent(side)):
            side = opponent(side)
        b, _ = make_move(b, sq, side)
        side = opponent(side)
    return b, side
