from __future__ import annotations

import enum
import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..logging_setup import log_event
from .bitboard import legal_moves
from .board import Position, check_side, make_move
from .eval import WIN_SCORE, evaluate, terminal_score
from .movegen import order_moves
from .openings import book_move
from .strength import DEFAULT_PROFILE, DifficultyProfile, get_profile
from .tt import EXACT, LOWER, UPPER, TranspositionTable

logger = logging.getLogger(__name__)

INF = 64 * WIN_SCORE + 1
MAX_PLY = 128


class SearchState(enum.Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    DONE = "done"
    TIMED_OUT = "timed_out"


@dataclass
class SearchResult:
    move: Optional[int]
    evaluation: int
    nodes_evaluated: int
    depth_reached: int
    timed_out: bool
    # Engine's choice before the difficulty profile's mistake policy
    best_move: Optional[int] = None
    pv: List[int] = field(default_factory=list)
    # (move, score) best first; non-best scores may be upper bounds
    ranked: List[Tuple[int, int]] = field(default_factory=list)
    time_ms: int = 0
    from_book: bool = False


class _Abort(Exception):
    """Unwinds a depth iteration that ran out of time or was cancelled."""


class SearchEngine:
    """Iterative-deepening negamax with alpha-beta pruning.

    One engine owns one transposition table. The table is cleared at the start
    of every search unless `persist_tt` is set, in which case results carry
    over between calls (e.g. successive turns of one game).
    """

    def __init__(
        self,
        tt_capacity: int = 1_000_000,
        persist_tt: bool = False,
        time_margin: float = 0.9,
        aspiration: int = 50,
        seed: Optional[int] = None,
    ) -> None:
        self.tt = TranspositionTable(tt_capacity)
        self.persist_tt = persist_tt
        self.time_margin = time_margin
        self.aspiration = aspiration
        self.rng = random.Random(seed)
        self.state = SearchState.IDLE
        self.nodes = 0
        # Killer moves: two killers per ply index
        self.killers: List[List[int]] = [[-1, -1] for _ in range(MAX_PLY)]
        # History heuristic: move (0..63) → score
        self.history: List[int] = [0] * 64
        self.completed_depths: List[Tuple[int, Optional[int], int]] = []
        self._cancel = threading.Event()
        self._stop: threading.Event = self._cancel
        self._deadline: Optional[float] = None
        self._abortable = False

    def cancel(self) -> None:
        """Ask a running search to stop; it returns the last completed depth."""
        self._stop.set()

    def reset(self) -> None:
        self.tt.clear()
        self.killers = [[-1, -1] for _ in range(MAX_PLY)]
        self.history = [0] * 64

    def search(
        self,
        pos: Position,
        side: int,
        profile: Optional[DifficultyProfile] = None,
        *,
        max_depth: Optional[int] = None,
        time_ms: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
        rng: Optional[random.Random] = None,
    ) -> SearchResult:
        """Search `pos` for `side`.

        Depth and time come from `profile` unless given explicitly;
        `time_ms=None` with an explicit `max_depth` means no time limit.
        """
        check_side(side)
        if profile is None and max_depth is None:
            profile = get_profile(DEFAULT_PROFILE)
        if max_depth is None:
            max_depth = profile.max_depth
        if time_ms is None and profile is not None:
            time_ms = profile.time_ms
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1")

        start = time.perf_counter()
        if cancel_event is not None:
            self._stop = cancel_event
        else:
            self._cancel.clear()
            self._stop = self._cancel
        self._deadline = None if time_ms is None else start + time_ms * self.time_margin / 1000.0
        self.nodes = 0
        self.completed_depths = []
        if not self.persist_tt:
            self.reset()
        self.state = SearchState.SEARCHING

        try:
            if pos.is_terminal():
                self.state = SearchState.DONE
                return SearchResult(None, terminal_score(pos, side), 0, 0, False, time_ms=self._elapsed_ms(start))

            if profile is not None and profile.use_opening_book:
                hit = book_move(pos, side)
                if hit is not None:
                    sq, name = hit
                    score = evaluate(pos, side)
                    self.state = SearchState.DONE
                    log_event("search", "book", move=sq, opening=name)
                    return SearchResult(
                        sq, score, 0, 0, False, best_move=sq, pv=[sq],
                        ranked=[(sq, score)], time_ms=self._elapsed_ms(start), from_book=True,
                    )

            result = self._iterate(pos, side, max_depth, start)
        except BaseException:
            self.state = SearchState.IDLE
            raise

        if profile is not None and result.best_move is not None:
            result.move = profile.select_move(result.ranked, rng or self.rng)
        log_event(
            "search", "done", depth=result.depth_reached, nodes=result.nodes_evaluated,
            score=result.evaluation, move=result.move, best=result.best_move,
            timed_out=result.timed_out, time_ms=result.time_ms,
            tt_size=len(self.tt), tt_evictions=self.tt.stats["evictions"],
        )
        return result

    def _elapsed_ms(self, start: float) -> int:
        return int((time.perf_counter() - start) * 1000)

    def _out_of_time(self) -> bool:
        if self._stop.is_set():
            return True
        return self._deadline is not None and time.perf_counter() >= self._deadline

    def _iterate(self, pos: Position, side: int, max_depth: int, start: float) -> SearchResult:
        best_move: Optional[int] = None
        best_score = 0
        ranked: List[Tuple[int, int]] = []
        depth_reached = 0
        timed_out = False

        for depth in range(1, max_depth + 1):
            # Depth 1 always completes so there is a move to return
            if depth > 1 and self._out_of_time():
                timed_out = True
                break
            self._abortable = depth > 1
            self.tt.new_generation()
            try:
                score, move, scores = self._aspiration(pos, side, depth, best_score, best_move)
            except _Abort:
                timed_out = True
                logger.debug("depth %d abandoned after %d nodes", depth, self.nodes)
                break
            best_score, best_move, depth_reached = score, move, depth
            ranked = sorted(scores.items(), key=lambda kv: (-kv[1], kv[0] != move, kv[0]))
            self.completed_depths.append((depth, move, score))
            logger.debug("depth %d: move=%s score=%d nodes=%d", depth, move, score, self.nodes)
            if depth >= pos.empties():
                # Every line reaches the end of the game; deeper iterations cannot change the result
                break

        self._abortable = False
        self.state = SearchState.TIMED_OUT if timed_out else SearchState.DONE
        pv = self._principal_variation(pos, side, depth_reached)
        return SearchResult(
            best_move, best_score, self.nodes, depth_reached, timed_out,
            best_move=best_move, pv=pv, ranked=ranked, time_ms=self._elapsed_ms(start),
        )

    def _aspiration(
        self, pos: Position, side: int, depth: int, guess: int, pv_move: Optional[int]
    ) -> Tuple[int, Optional[int], Dict[int, int]]:
        if depth == 1 or self.aspiration <= 0:
            return self._root(pos, side, depth, -INF, INF, pv_move)
        # Widen the window twice, then fall back to a full-window search
        for width in (self.aspiration, self.aspiration * 2, self.aspiration * 4):
            alpha, beta = guess - width, guess + width
            score, move, scores = self._root(pos, side, depth, alpha, beta, pv_move)
            if alpha < score < beta:
                return score, move, scores
        return self._root(pos, side, depth, -INF, INF, pv_move)

    def _root(
        self, pos: Position, side: int, depth: int, alpha: int, beta: int, pv_move: Optional[int]
    ) -> Tuple[int, Optional[int], Dict[int, int]]:
        me, opp = pos.me_opp(side)
        mask = legal_moves(me, opp)
        if mask == 0:
            # Forced pass at the root: no move to return, score the continuation
            score = -self._negamax(pos, 1 - side, depth, -beta, -alpha, 1)
            return score, None, {}

        key = pos.hash64(side)
        entry = self.tt.probe(key)
        tt_move = pv_move if pv_move is not None else (entry.best if entry and entry.best >= 0 else None)
        scores: Dict[int, int] = {}
        best_score = -INF
        best_move: Optional[int] = None
        a = alpha
        for sq in order_moves(mask, tt_move, self.killers[0], self.history):
            child, _ = make_move(pos, sq, side)
            score = -self._negamax(child, 1 - side, depth - 1, -beta, -a, 1)
            scores[sq] = score
            if score > best_score:
                best_score, best_move = score, sq
            if score > a:
                a = score
            if a >= beta:
                break
        flag = EXACT
        if best_score <= alpha:
            flag = UPPER
        elif best_score >= beta:
            flag = LOWER
        self.tt.store(key, depth, best_score, flag, best_move if best_move is not None else -1)
        return best_score, best_move, scores

    def _negamax(self, pos: Position, side: int, depth: int, alpha: int, beta: int, ply: int) -> int:
        self.nodes += 1
        if self._abortable and (self.nodes & 63) == 0 and self._out_of_time():
            raise _Abort()

        if depth == 0:
            return evaluate(pos, side)

        me, opp = pos.me_opp(side)
        mask = legal_moves(me, opp)
        if mask == 0:
            if legal_moves(opp, me) == 0:
                return terminal_score(pos, side)
            # Forced pass does not consume depth
            return -self._negamax(pos, 1 - side, depth, -beta, -alpha, ply + 1)

        key = pos.hash64(side)
        entry = self.tt.probe(key)
        tt_move: Optional[int] = None
        if entry is not None:
            if entry.best >= 0:
                tt_move = entry.best
            if entry.depth >= depth:
                if entry.flag == EXACT:
                    return entry.score
                if entry.flag == LOWER:
                    alpha = max(alpha, entry.score)
                elif entry.flag == UPPER:
                    beta = min(beta, entry.score)
                if alpha >= beta:
                    return entry.score

        alpha_start = alpha
        killers = self.killers[ply] if ply < MAX_PLY else ()
        best_score = -INF
        best_move = -1
        for sq in order_moves(mask, tt_move, killers, self.history):
            child, _ = make_move(pos, sq, side)
            score = -self._negamax(child, 1 - side, depth - 1, -beta, -alpha, ply + 1)
            if score > best_score:
                best_score, best_move = score, sq
            if score > alpha:
                alpha = score
            if alpha >= beta:
                # Beta cutoff: update killers and history
                if ply < MAX_PLY and killers[0] != sq:
                    killers[1] = killers[0]
                    killers[0] = sq
                self.history[sq] = min(self.history[sq] + depth * depth, 10_000)
                break

        # Bound type relative to the window this node actually searched
        flag = EXACT
        if best_score <= alpha_start:
            flag = UPPER
        elif best_score >= beta:
            flag = LOWER
        self.tt.store(key, depth, best_score, flag, best_move if flag != UPPER else -1)
        return best_score

    def _principal_variation(self, pos: Position, side: int, depth: int) -> List[int]:
        line: List[int] = []
        seen = set()
        while len(line) < depth:
            if not pos.has_moves(side):
                if not pos.has_moves(1 - side):
                    break
                side = 1 - side
                continue
            key = pos.hash64(side)
            if key in seen:
                break
            seen.add(key)
            entry = self.tt.table.get(key)
            if entry is None or entry.best < 0 or not (pos.legal_mask(side) >> entry.best) & 1:
                break
            line.append(entry.best)
            pos, _ = make_move(pos, entry.best, side)
            side = 1 - side
        return line


def search_position(pos: Position, side: int, profile: Optional[DifficultyProfile] = None, **kwargs) -> SearchResult:
    """One-shot search with a fresh engine and table."""
    return SearchEngine().search(pos, side, profile, **kwargs)
