from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .bitboard import CORNER_MASK, EDGE_MASK, FULL, NOT_A, NOT_H, legal_moves, popcount, shift
from .board import Position, check_side

# Phase-aware linear evaluation. Positive favours the side being evaluated.

# Exact disc differential at a finished game, scaled to dominate every heuristic term
WIN_SCORE = 100_000

CORNER_VALUE = 100
STABLE_VALUE = 50
MOBILITY_VALUE = 30
PARITY_VALUE = 10

OPENING_END = 20
MIDGAME_END = 45

# fmt: off
POSITION_WEIGHTS = (
    100, -20,  10,   5,   5,  10, -20, 100,
    -20, -50,  -2,  -2,  -2,  -2, -50, -20,
     10,  -2,  -1,  -1,  -1,  -1,  -2,  10,
      5,  -2,  -1,  -1,  -1,  -1,  -2,   5,
      5,  -2,  -1,  -1,  -1,  -1,  -2,   5,
     10,  -2,  -1,  -1,  -1,  -1,  -2,  10,
    -20, -50,  -2,  -2,  -2,  -2, -50, -20,
    100, -20,  10,   5,   5,  10, -20, 100,
)
# fmt: on


@dataclass(frozen=True)
class EvaluationWeights:
    corner: float
    stability: float
    mobility: float
    positional: float
    parity: float

    @staticmethod
    def for_move_number(move_number: int) -> "EvaluationWeights":
        if move_number <= OPENING_END:
            return OPENING_WEIGHTS
        if move_number <= MIDGAME_END:
            return MIDGAME_WEIGHTS
        return ENDGAME_WEIGHTS


# Mobility dominates early; stability and parity take over as the board fills
OPENING_WEIGHTS = EvaluationWeights(corner=0.8, stability=0.6, mobility=1.0, positional=0.8, parity=0.2)
MIDGAME_WEIGHTS = EvaluationWeights(corner=1.0, stability=0.8, mobility=0.6, positional=0.6, parity=0.4)
ENDGAME_WEIGHTS = EvaluationWeights(corner=1.0, stability=1.0, mobility=0.2, positional=0.4, parity=0.8)


def _lines() -> List[List[int]]:
    rows, cols, diags, antis = [], [], [], []
    for i in range(8):
        rows.append(sum(1 << (i * 8 + c) for c in range(8)))
        cols.append(sum(1 << (r * 8 + i) for r in range(8)))
    for k in range(-7, 8):
        diags.append(sum(1 << (r * 8 + r - k) for r in range(8) if 0 <= r - k < 8))
    for k in range(15):
        antis.append(sum(1 << (r * 8 + k - r) for r in range(8) if 0 <= k - r < 8))
    return [rows, cols, diags, antis]


# Axis order: E-W, N-S, NE-SW, NW-SE
AXIS_LINES = _lines()
AXIS_DIRS = ((1, -1), (8, -8), (9, -9), (7, -7))
RANK_EDGES = 0xFF000000000000FF
AXIS_EDGES = (~(NOT_A & NOT_H) & FULL, RANK_EDGES, EDGE_MASK, EDGE_MASK)


def _full_lines(empty: int) -> List[int]:
    out = []
    for lines in AXIS_LINES:
        full = 0
        for line in lines:
            if not line & empty:
                full |= line
        out.append(full)
    return out


def stable_discs(own: int, empty: int, full: Optional[List[int]] = None) -> int:
    """Mask of `own` discs that can never be flipped.

    A disc is stable when, along every axis, its line is full or one of its
    neighbours on that axis is off the board or an already stable own disc.
    Iterates to a fixpoint starting from the corners outwards.
    """
    if full is None:
        full = _full_lines(empty)
    stable = 0
    while True:
        new = own
        for axis in range(4):
            d1, d2 = AXIS_DIRS[axis]
            shielded = full[axis] | AXIS_EDGES[axis] | shift(stable, d1) | shift(stable, d2)
            new &= shielded
        if new == stable:
            return stable
        stable = new


def corner_score(me: int, opp: int) -> int:
    return CORNER_VALUE * (popcount(me & CORNER_MASK) - popcount(opp & CORNER_MASK))


def stability_score(me: int, opp: int) -> int:
    empty = ~(me | opp) & FULL
    full = _full_lines(empty)
    return STABLE_VALUE * (popcount(stable_discs(me, empty, full)) - popcount(stable_discs(opp, empty, full)))


def positional_score(me: int, opp: int) -> int:
    score = 0
    m = me | opp
    while m:
        lsb = m & -m
        sq = lsb.bit_length() - 1
        score += POSITION_WEIGHTS[sq] if me & lsb else -POSITION_WEIGHTS[sq]
        m ^= lsb
    return score


def parity_score(empties: int, side: int, to_move: int) -> int:
    # With an odd number of empties the side to move gets the last move
    last = to_move if empties % 2 == 1 else 1 - to_move
    return PARITY_VALUE if last == side else -PARITY_VALUE


def components(pos: Position, side: int, move_number: Optional[int] = None, to_move: Optional[int] = None) -> Dict[str, int]:
    """Unweighted sub-scores from `side`'s perspective."""
    check_side(side)
    me, opp = pos.me_opp(side)
    if move_number is None:
        move_number = pos.discs()
    if to_move is None:
        to_move = side
    parity = 0
    if move_number > MIDGAME_END:
        parity = parity_score(pos.empties(), side, to_move)
    return {
        "corner": corner_score(me, opp),
        "stability": stability_score(me, opp),
        "mobility": MOBILITY_VALUE * (popcount(legal_moves(me, opp)) - popcount(legal_moves(opp, me))),
        "positional": positional_score(me, opp),
        "parity": parity,
    }


def terminal_score(pos: Position, side: int) -> int:
    return pos.disc_diff(side) * WIN_SCORE


def evaluate(pos: Position, side: int, move_number: Optional[int] = None, to_move: Optional[int] = None) -> int:
    check_side(side)
    me, opp = pos.me_opp(side)
    if legal_moves(me, opp) == 0 and legal_moves(opp, me) == 0:
        return terminal_score(pos, side)
    if move_number is None:
        move_number = pos.discs()
    w = EvaluationWeights.for_move_number(move_number)
    c = components(pos, side, move_number, to_move)
    return int(
        c["corner"] * w.corner
        + c["stability"] * w.stability
        + c["mobility"] * w.mobility
        + c["positional"] * w.positional
        + c["parity"] * w.parity
    )
