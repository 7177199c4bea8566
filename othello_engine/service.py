from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Hashable, Optional

from .engine.board import Position, check_side
from .engine.errors import SearchInProgress
from .engine.search import SearchResult
from .engine.strength import DEFAULT_PROFILE, DifficultyProfile, get_profile
from .logging_setup import log_event
from .schemas import SearchRequest
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)


class SearchHandle:
    """A search running off the caller's thread. Poll with done(), collect with result()."""

    def __init__(self, game_id: Hashable, future: "Future[SearchResult]", cancel_event: threading.Event) -> None:
        self.game_id = game_id
        self.future = future
        self._cancel_event = cancel_event

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> SearchResult:
        return self.future.result(timeout)

    def cancel(self) -> None:
        """Stop early; the result is the deepest completed iteration."""
        self._cancel_event.set()

    def add_done_callback(self, fn: Callable[[SearchResult], None]) -> None:
        def _deliver(fut: "Future[SearchResult]") -> None:
            if fut.cancelled() or fut.exception() is not None:
                return
            fn(fut.result())

        self.future.add_done_callback(_deliver)


class SearchService:
    """Runs searches on a worker pool, at most one in flight per game.

    Every job gets its own engine and transposition table, so searches over
    different games never share mutable state.
    """

    def __init__(self, settings: Optional[Settings] = None, max_workers: Optional[int] = None) -> None:
        self.settings = settings or load_settings()
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers or self.settings.workers, thread_name_prefix="search"
        )
        self._lock = threading.Lock()
        self._inflight: Dict[Hashable, SearchHandle] = {}

    def __enter__(self) -> "SearchService":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def profile(self, name: str) -> DifficultyProfile:
        return get_profile(name, self.settings.profiles)

    def start(
        self,
        game_id: Hashable,
        pos: Position,
        side: int,
        profile: Optional[DifficultyProfile] = None,
        **kwargs,
    ) -> SearchHandle:
        check_side(side)
        if profile is None and "max_depth" not in kwargs:
            profile = self.profile(DEFAULT_PROFILE)
        cancel_event = threading.Event()
        with self._lock:
            if game_id in self._inflight:
                raise SearchInProgress(f"a search is already running for game {game_id!r}")
            future = self._pool.submit(self._run, game_id, pos, side, profile, cancel_event, kwargs)
            handle = SearchHandle(game_id, future, cancel_event)
            self._inflight[game_id] = handle
        return handle

    def validate(self, data: Dict[str, Any]) -> SearchRequest:
        """Parse untrusted request data against this service's configured tiers."""
        return SearchRequest.model_validate(data, context={"profiles": self.settings.profiles})

    def submit(self, game_id: Hashable, request: SearchRequest) -> SearchHandle:
        """Start a validated request; an unknown profile raises ValueError."""
        kwargs = {}
        if request.max_depth is not None:
            kwargs["max_depth"] = request.max_depth
        if request.time_ms is not None:
            kwargs["time_ms"] = request.time_ms
        return self.start(game_id, request.to_position(), request.side, self.profile(request.profile), **kwargs)

    def in_flight(self, game_id: Hashable) -> bool:
        with self._lock:
            return game_id in self._inflight

    def _run(self, game_id, pos, side, profile, cancel_event, kwargs) -> SearchResult:  # type: ignore[no-untyped-def]
        engine = self.settings.make_engine()
        try:
            return engine.search(pos, side, profile, cancel_event=cancel_event, **kwargs)
        except Exception:
            logger.exception("search failed for game %r", game_id)
            raise
        finally:
            # Released before the future resolves so the caller can start the next search at once
            with self._lock:
                self._inflight.pop(game_id, None)
            log_event("service", "finished", game=str(game_id))

    def shutdown(self, cancel: bool = True) -> None:
        if cancel:
            with self._lock:
                handles = list(self._inflight.values())
            for h in handles:
                h.cancel()
        self._pool.shutdown(wait=True)
