from __future__ import annotations

from typing import Iterator, List

# Board is 8x8, squares numbered 0..63, A1=0 (LSB) to H8=63 (MSB).
# One bit per square; black and white masks are kept separately.

FULL = 0xFFFFFFFFFFFFFFFF

NOT_A = 0xfefefefefefefefe
NOT_H = 0x7f7f7f7f7f7f7f7f

EDGE_MASK = 0xFF818181818181FF
CORNERS = (0, 7, 56, 63)
# B2, G2, B7, G7
X_SQUARES = (9, 14, 49, 54)
C_SQUARES = (1, 8, 6, 15, 48, 57, 55, 62)
CORNER_MASK = sum(1 << sq for sq in CORNERS)
X_MASK = sum(1 << sq for sq in X_SQUARES)
C_MASK = sum(1 << sq for sq in C_SQUARES)

# Directions in deltas: N, S, E, W, NE, NW, SE, SW
DIRS = (8, -8, 1, -1, 9, 7, -7, -9)


def shift(bb: int, d: int) -> int:
    if d == 8:
        return (bb << 8) & FULL
    if d == -8:
        return bb >> 8
    if d == 1:
        return (bb << 1) & NOT_A & FULL
    if d == -1:
        return (bb >> 1) & NOT_H
    if d == 9:
        return (bb << 9) & NOT_A & FULL
    if d == 7:
        return (bb << 7) & NOT_H & FULL
    if d == -7:
        return (bb >> 7) & NOT_A
    if d == -9:
        return (bb >> 9) & NOT_H
    raise ValueError("bad dir")


def popcount(x: int) -> int:
    return x.bit_count()


def legal_moves(me: int, opp: int) -> int:
    """Return bitmask of legal moves for side with discs `me` against `opp`."""
    empty = ~(me | opp) & FULL
    moves = 0
    for d in DIRS:
        t = shift(me, d) & opp
        # Up to 5 additional expansions are sufficient on an 8x8 board
        t |= shift(t, d) & opp
        t |= shift(t, d) & opp
        t |= shift(t, d) & opp
        t |= shift(t, d) & opp
        t |= shift(t, d) & opp
        moves |= shift(t, d) & empty
    return moves


def flips_for_move(me: int, opp: int, sq: int) -> int:
    """Return bitboard of discs flipped if `me` plays on `sq`; 0 means illegal."""
    m = 1 << sq
    flips = 0
    for d in DIRS:
        run = 0
        cur = shift(m, d)
        while cur & opp:
            run |= cur
            cur = shift(cur, d)
        if run and (cur & me):
            flips |= run
    return flips


def iter_squares(mask: int) -> Iterator[int]:
    while mask:
        lsb = mask & -mask
        yield lsb.bit_length() - 1
        mask ^= lsb


# Zobrist keys (deterministic splitmix64 stream)
_Z_SEED = 0x9e3779b97f4a7c15


def _splitmix64(x: int) -> int:
    x = (x + 0x9e3779b97f4a7c15) & FULL
    z = x
    z = (z ^ (z >> 30)) * 0xbf58476d1ce4e5b9 & FULL
    z = (z ^ (z >> 27)) * 0x94d049bb133111eb & FULL
    return z ^ (z >> 31)


ZOBRIST: List[List[int]] = [[0] * 64 for _ in range(2)]
_seed = _Z_SEED
for _c in range(2):
    for _i in range(64):
        _seed = _splitmix64(_seed)
        ZOBRIST[_c][_i] = _seed
_seed = _splitmix64(_seed)
ZOBRIST_WHITE_TO_MOVE = _seed


def zobrist_hash(black: int, white: int, side: int) -> int:
    h = 0
    for i in iter_squares(black):
        h ^= ZOBRIST[0][i]
    for i in iter_squares(white):
        h ^= ZOBRIST[1][i]
    if side:
        h ^= ZOBRIST_WHITE_TO_MOVE
    return h & FULL
