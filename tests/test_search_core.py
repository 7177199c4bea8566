import random
import threading
import time

import pytest

from othello_engine.engine import reference
from othello_engine.engine.board import BLACK, WHITE, Position, make_move, opponent
from othello_engine.engine.eval import WIN_SCORE
from othello_engine.engine.search import SearchEngine, SearchState, search_position
from othello_engine.engine.strength import get_profile


def _play_to(discs: int, seed: int):
    """Random game from the start until `discs` discs are on the board."""
    rng = random.Random(seed)
    while True:
        b, side = Position.initial(), BLACK
        while b.discs() < discs and not b.is_terminal():
            moves = b.legal_moves(side)
            if not moves:
                side = opponent(side)
                continue
            b, _ = make_move(b, rng.choice(moves), side)
            side = opponent(side)
        if b.discs() == discs and b.has_moves(side):
            return b, side


def _forced_move_position() -> Position:
    # a1 is the only empty square; White's only move there flips b1 and fills the board 32-32
    white_sqs = {2, 8, 16, 24, 32, 40, 48, 56, 9, 18, 27, 36, 45, 54, 63}
    rest = [sq for sq in range(64) if sq not in white_sqs and sq not in (0, 1)]
    white_sqs |= set(rest[:15])
    black_sqs = {1} | set(rest[15:])
    return Position(sum(1 << s for s in black_sqs), sum(1 << s for s in white_sqs))


def test_search_basic_runs_and_returns_pv():
    b = Position.initial()
    res = SearchEngine().search(b, BLACK, max_depth=3)
    assert res.move in b.legal_moves(BLACK)
    assert res.move == res.best_move
    assert isinstance(res.evaluation, int)
    assert res.depth_reached == 3
    assert res.nodes_evaluated > 0
    assert not res.timed_out
    assert res.pv and res.pv[0] == res.best_move
    assert [m for m, _ in res.ranked][0] == res.best_move
    assert sorted(m for m, _ in res.ranked) == sorted(b.legal_moves(BLACK))


def test_search_is_deterministic():
    b, side = _play_to(20, seed=3)
    r1 = SearchEngine().search(b, side, max_depth=4)
    r2 = SearchEngine().search(b, side, max_depth=4)
    assert (r1.move, r1.evaluation, r1.nodes_evaluated, r1.pv) == (r2.move, r2.evaluation, r2.nodes_evaluated, r2.pv)


@pytest.mark.parametrize(
    "discs,seed,depth",
    [(8, 1, 4), (12, 2, 4), (24, 5, 3), (30, 6, 3), (40, 9, 3), (57, 11, 7), (58, 12, 6)],
)
def test_alpha_beta_matches_plain_minimax(discs, seed, depth):
    b, side = _play_to(discs, seed)
    expected, values = reference.best(b, side, depth)
    res = SearchEngine().search(b, side, max_depth=depth)
    assert res.evaluation == expected
    assert values[res.move] == expected


def test_starting_position_depth_four():
    b = Position.initial()
    expected, values = reference.best(b, BLACK, 4)
    # The four openings are symmetric, so they share one value
    assert set(values) == {19, 26, 37, 44}
    assert len(set(values.values())) == 1
    res = SearchEngine().search(b, BLACK, max_depth=4)
    assert res.move in values
    assert res.evaluation == expected


def test_single_legal_move_is_returned():
    b = _forced_move_position()
    assert b.legal_moves(WHITE) == [0]
    assert b.legal_moves(BLACK) == []
    res = SearchEngine().search(b, WHITE, max_depth=6)
    assert res.move == 0
    assert res.evaluation == 0
    assert res.depth_reached == 1


def test_terminal_root_returns_no_move():
    b = Position.from_rows(["XXXXXXXX"] * 5 + ["OOOOOOOO"] * 3)
    res = SearchEngine().search(b, WHITE, max_depth=4)
    assert res.move is None
    assert res.evaluation == -16 * WIN_SCORE
    assert res.depth_reached == 0
    assert res.nodes_evaluated == 0


def test_forced_pass_at_root_scores_continuation():
    b = Position.from_rows([
        "XXXXXXXX",
        "XXXXXXXX",
        "XXXXXXXX",
        "XXXXXXXX",
        "XXXXXXXX",
        "XXXXXXXO",
        "XXXXXXX.",
        "XXXXXX..",
    ])
    res = SearchEngine().search(b, WHITE, max_depth=2)
    assert res.move is None
    assert res.best_move is None
    # Black's reply on h7 wipes out White's last disc
    assert res.evaluation == -62 * WIN_SCORE


def test_timeout_returns_last_completed_depth():
    b, side = _play_to(20, seed=4)
    engine = SearchEngine()
    t0 = time.perf_counter()
    res = engine.search(b, side, max_depth=30, time_ms=50)
    elapsed = time.perf_counter() - t0
    assert res.timed_out
    assert engine.state is SearchState.TIMED_OUT
    assert res.depth_reached >= 1
    assert res.move in b.legal_moves(side)
    assert elapsed < 5.0
    depths = [d for d, _, _ in engine.completed_depths]
    assert depths == list(range(1, res.depth_reached + 1))
    assert engine.completed_depths[-1][1] == res.best_move
    assert engine.completed_depths[-1][2] == res.evaluation


def test_cancel_event_keeps_depth_one():
    b, side = _play_to(20, seed=4)
    stop = threading.Event()
    stop.set()
    res = SearchEngine().search(b, side, max_depth=10, cancel_event=stop)
    assert res.timed_out
    assert res.depth_reached == 1
    assert res.move in b.legal_moves(side)


def test_cancel_from_another_thread():
    b, side = _play_to(20, seed=8)
    engine = SearchEngine()
    timer = threading.Timer(0.05, engine.cancel)
    timer.start()
    try:
        res = engine.search(b, side, max_depth=40)
    finally:
        timer.cancel()
    assert res.timed_out
    assert res.depth_reached >= 1


def test_mistakes_do_not_change_diagnostics():
    b = Position.initial()
    base = get_profile("intermediate").with_overrides(max_depth=3, time_ms=60_000)
    sloppy = base.with_overrides(mistake_prob=1.0)
    clean = base.with_overrides(mistake_prob=0.0)
    r_clean = SearchEngine(seed=1).search(b, BLACK, clean)
    r_sloppy = SearchEngine(seed=1).search(b, BLACK, sloppy)
    assert r_clean.move == r_clean.best_move
    assert r_sloppy.move != r_sloppy.best_move
    assert r_sloppy.move in b.legal_moves(BLACK)
    assert (r_sloppy.best_move, r_sloppy.evaluation, r_sloppy.nodes_evaluated, r_sloppy.depth_reached) == (
        r_clean.best_move, r_clean.evaluation, r_clean.nodes_evaluated, r_clean.depth_reached
    )


def test_book_move_skips_search():
    res = SearchEngine().search(Position.initial(), BLACK, get_profile("expert"))
    assert res.from_book
    assert res.move == 37
    assert res.depth_reached == 0
    assert res.nodes_evaluated == 0
    assert res.evaluation == 0


def test_default_profile_uses_book():
    res = search_position(Position.initial(), BLACK)
    assert res.from_book


def test_depth_must_be_positive():
    with pytest.raises(ValueError):
        SearchEngine().search(Position.initial(), BLACK, max_depth=0)


def test_persisted_table_survives_between_searches():
    b, side = _play_to(16, seed=2)
    engine = SearchEngine(persist_tt=True)
    engine.search(b, side, max_depth=3)
    assert len(engine.tt) > 0
    size = len(engine.tt)
    engine.search(b, side, max_depth=3)
    assert len(engine.tt) >= size
    fresh = SearchEngine()
    fresh.search(b, side, max_depth=3)
    fresh.search(b, side, max_depth=1)
    assert len(fresh.tt) < size
