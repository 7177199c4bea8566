from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .bitboard import (
    FULL,
    ZOBRIST,
    ZOBRIST_WHITE_TO_MOVE,
    flips_for_move,
    iter_squares,
    legal_moves,
    popcount,
    zobrist_hash,
)
from .errors import InvalidMove, InvalidPosition

BLACK, WHITE = 0, 1
SIDE_NAMES = {BLACK: "black", WHITE: "white"}


def opponent(side: int) -> int:
    return 1 - side


def check_side(side: int) -> int:
    if side not in (BLACK, WHITE):
        raise InvalidPosition(f"side must be 0 (black) or 1 (white), got {side!r}")
    return side


def parse_side(text: str) -> int:
    t = text.strip().lower()
    if t in ("b", "black", "x", "0"):
        return BLACK
    if t in ("w", "white", "o", "1"):
        return WHITE
    raise InvalidPosition(f"unknown side: {text!r}")


@dataclass(frozen=True)
class Position:
    """Two disjoint occupancy masks. Side to move is tracked by the caller."""

    black: int
    white: int
    # Zobrist key of the discs only; side to move is folded in by hash64()
    key: int = field(default=-1, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not (0 <= self.black <= FULL and 0 <= self.white <= FULL):
            raise InvalidPosition("occupancy masks must lie within 64 bits")
        if self.black & self.white:
            raise InvalidPosition(
                f"black and white overlap on squares {list(iter_squares(self.black & self.white))}"
            )
        if self.key < 0:
            object.__setattr__(self, "key", zobrist_hash(self.black, self.white, 0))

    @staticmethod
    def initial() -> "Position":
        black = (1 << 28) | (1 << 35)  # e4, d5
        white = (1 << 27) | (1 << 36)  # d4, e5
        return Position(black, white)

    @staticmethod
    def from_rows(rows: Sequence[str]) -> "Position":
        """Build a position from 8 rows of 'X' (black), 'O' (white), '.' (empty), rank 1 first."""
        if len(rows) != 8:
            raise InvalidPosition(f"expected 8 rows, got {len(rows)}")
        black = white = 0
        for r, row in enumerate(rows):
            cells = row.replace(" ", "")
            if len(cells) != 8:
                raise InvalidPosition(f"row {r + 1} must have 8 cells: {row!r}")
            for c, ch in enumerate(cells):
                bit = 1 << (r * 8 + c)
                if ch in "XxBb":
                    black |= bit
                elif ch in "OoWw":
                    white |= bit
                elif ch not in ".-_":
                    raise InvalidPosition(f"bad cell {ch!r} in row {r + 1}")
        return Position(black, white)

    def to_rows(self) -> List[str]:
        rows = []
        for r in range(8):
            cells = []
            for c in range(8):
                bit = 1 << (r * 8 + c)
                cells.append("X" if self.black & bit else "O" if self.white & bit else ".")
            rows.append("".join(cells))
        return rows

    def me_opp(self, side: int) -> Tuple[int, int]:
        return (self.black, self.white) if side == BLACK else (self.white, self.black)

    def occupied(self) -> int:
        return self.black | self.white

    def empty_mask(self) -> int:
        return ~(self.black | self.white) & FULL

    def empties(self) -> int:
        return 64 - popcount(self.black | self.white)

    def discs(self) -> int:
        return popcount(self.black | self.white)

    def count(self, side: int) -> int:
        return popcount(self.black if side == BLACK else self.white)

    def disc_diff(self, side: int) -> int:
        me, opp = self.me_opp(side)
        return popcount(me) - popcount(opp)

    def legal_mask(self, side: int) -> int:
        me, opp = self.me_opp(side)
        return legal_moves(me, opp)

    def legal_moves(self, side: int) -> List[int]:
        return list(iter_squares(self.legal_mask(check_side(side))))

    def has_moves(self, side: int) -> bool:
        return self.legal_mask(side) != 0

    def is_terminal(self) -> bool:
        return self.legal_mask(BLACK) == 0 and self.legal_mask(WHITE) == 0

    def flips(self, sq: int, side: int) -> int:
        check_side(side)
        if not (0 <= sq < 64):
            raise InvalidMove(sq, "square out of range")
        me, opp = self.me_opp(side)
        if (me | opp) & (1 << sq):
            return 0
        return flips_for_move(me, opp, sq)

    def hash64(self, side: int) -> int:
        return self.key ^ ZOBRIST_WHITE_TO_MOVE if side else self.key

    def apply(self, sq: int, side: int) -> "Position":
        return make_move(self, sq, side)[0]


@dataclass(frozen=True)
class MoveFrame:
    """Undo token returned by make_move."""

    sq: int
    flipped: int
    side: int


def _moved_key(key: int, sq: int, flips: int, side: int) -> int:
    other = 1 - side
    key ^= ZOBRIST[side][sq]
    for i in iter_squares(flips):
        key ^= ZOBRIST[side][i] ^ ZOBRIST[other][i]
    return key


def make_move(pos: Position, sq: int, side: int) -> Tuple[Position, MoveFrame]:
    check_side(side)
    if not (0 <= sq < 64):
        raise InvalidMove(sq, "square out of range")
    mask = 1 << sq
    if (pos.black | pos.white) & mask:
        raise InvalidMove(sq, "square is occupied")
    me, opp = pos.me_opp(side)
    flips = flips_for_move(me, opp, sq)
    if flips == 0:
        raise InvalidMove(sq, "move flips no discs")
    me |= mask | flips
    opp &= ~flips & FULL
    key = _moved_key(pos.key, sq, flips, side)
    if side == BLACK:
        nxt = Position(me, opp, key)
    else:
        nxt = Position(opp, me, key)
    return nxt, MoveFrame(sq, flips, side)


def undo_move(pos: Position, frame: MoveFrame) -> Position:
    me, opp = pos.me_opp(frame.side)
    mask = 1 << frame.sq
    me &= ~(mask | frame.flipped) & FULL
    opp |= frame.flipped
    key = _moved_key(pos.key, frame.sq, frame.flipped, frame.side)
    if frame.side == BLACK:
        return Position(me, opp, key)
    return Position(opp, me, key)
