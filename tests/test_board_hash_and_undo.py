from __future__ import annotations

import pytest

from othello_engine.engine.bitboard import zobrist_hash
from othello_engine.engine.board import BLACK, WHITE, Position, make_move, undo_move
from othello_engine.engine.errors import InvalidMove, InvalidPosition


def test_make_undo_restores_board_and_hash():
    b0 = Position.initial()
    for sq in b0.legal_moves(BLACK):
        b1, frame = make_move(b0, sq, BLACK)
        b2 = undo_move(b1, frame)
        assert (b2.black, b2.white) == (b0.black, b0.white)
        assert b2.key == b0.key == zobrist_hash(b0.black, b0.white, 0)


def test_incremental_hash_matches_recomputed():
    b0 = Position.initial()
    b1, _ = make_move(b0, 37, BLACK)  # f5
    assert b1.key == zobrist_hash(b1.black, b1.white, 0)
    assert b1.hash64(WHITE) == zobrist_hash(b1.black, b1.white, 1)
    assert b1.hash64(WHITE) != b1.hash64(BLACK)


def test_apply_flips_bounded_run_only():
    # f5 flips e5 only
    b = Position.initial().apply(37, BLACK)
    assert b.black == (1 << 28) | (1 << 35) | (1 << 36) | (1 << 37)
    assert b.white == (1 << 27)
    assert b.count(BLACK) == 4 and b.count(WHITE) == 1


def test_apply_flips_several_directions():
    b = Position.from_rows([
        "X.X.X...",
        ".OOO....",
        "XO.OX...",
        ".OOO....",
        "X.X.X...",
        "........",
        "........",
        "........",
    ])
    after = b.apply(18, BLACK)  # c3, the hole in the middle of the ring
    assert after.white == 0
    assert after.count(BLACK) == b.count(BLACK) + 8 + 1


def test_flip_run_without_closing_disc_does_not_flip():
    b = Position.from_rows([
        "XOO.....",
        "........",
        "........",
        "........",
        "........",
        "........",
        "........",
        "........",
    ])
    # Black on d1 closes the run back to a1; White on d1 has nothing to flip
    assert b.flips(3, BLACK) == (1 << 1) | (1 << 2)
    assert b.flips(3, WHITE) == 0
    with pytest.raises(InvalidMove):
        b.apply(3, WHITE)


@pytest.mark.parametrize("sq,reason", [(27, "occupied"), (0, "no discs"), (64, "out of range"), (-1, "out of range")])
def test_invalid_moves_are_rejected(sq, reason):
    with pytest.raises(InvalidMove) as exc:
        Position.initial().apply(sq, BLACK)
    assert reason in str(exc.value)


def test_invalid_positions_are_rejected():
    with pytest.raises(InvalidPosition):
        Position(1, 1)
    with pytest.raises(InvalidPosition):
        Position(1 << 64, 0)
    with pytest.raises(InvalidPosition):
        Position(-1, 0)
    with pytest.raises(InvalidPosition):
        Position.initial().legal_moves(2)


def test_rows_round_trip_and_terminal():
    rows = ["XXXXXXXX"] * 4 + ["OOOOOOOO"] * 4
    b = Position.from_rows(rows)
    assert b.to_rows() == rows
    assert b.is_terminal()
    assert b.empties() == 0
    assert b.disc_diff(BLACK) == 0
    assert not Position.initial().is_terminal()


def test_bad_side_is_rejected():
    b = Position.initial()
    with pytest.raises(InvalidPosition):
        b.flips(19, 2)
    with pytest.raises(InvalidPosition):
        b.apply(19, 2)
