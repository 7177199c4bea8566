from __future__ import annotations

import argparse
import logging
import sys
from time import perf_counter
from typing import List, Optional

import orjson

from othello_engine.db.store import load_table, save_table
from othello_engine.engine.board import SIDE_NAMES, parse_side
from othello_engine.engine.errors import InvalidMove, InvalidPosition
from othello_engine.engine.notation import coord_to_notation, string_to_moves
from othello_engine.engine.openings import name_for_prefix
from othello_engine.engine.perft import perft, play_moves
from othello_engine.engine.strength import DEFAULT_PROFILE, get_profile
from othello_engine.logging_setup import setup_logging
from othello_engine.schemas import SearchResponse
from othello_engine.settings import load_settings

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="othello-engine")
    p.add_argument("--config", default=None, help="Path to a TOML config file")
    p.add_argument("--log-level", default=None, help="Override the configured log level")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("search", help="Search a position reached from the initial board")
    s.add_argument("--moves", default="", help="Move sequence like f5d6c3 ('--' for a pass)")
    s.add_argument("--side", default=None, help="Side to move (default: whoever is to move after --moves)")
    s.add_argument("--profile", default=DEFAULT_PROFILE, help="Difficulty tier")
    s.add_argument("--depth", type=int, default=None, help="Override the profile depth")
    s.add_argument("--time-ms", type=int, default=None, help="Override the profile time budget")
    s.add_argument("--seed", type=int, default=None, help="Seed for the mistake policy")
    s.add_argument("--tt-file", default=None, help="sqlite snapshot of the transposition table to load and save")
    s.add_argument("--json", action="store_true", help="Print the result as JSON")

    f = sub.add_parser("perft", help="Count move paths to a fixed depth")
    f.add_argument("--depth", type=int, required=True)
    f.add_argument("--moves", default="", help="Move sequence like f5d6c3")
    return p


def _cmd_search(args: argparse.Namespace, settings) -> int:  # type: ignore[no-untyped-def]
    moves = string_to_moves(args.moves)
    pos, side = play_moves(moves)
    if args.side is not None:
        side = parse_side(args.side)
    profile = get_profile(args.profile, settings.profiles)

    if args.tt_file:
        settings.persist_tt = True
    engine = settings.make_engine(seed=args.seed)
    if args.tt_file:
        load_table(args.tt_file, engine.tt)

    kwargs = {}
    if args.depth is not None:
        kwargs["max_depth"] = args.depth
    if args.time_ms is not None:
        kwargs["time_ms"] = args.time_ms
    result = engine.search(pos, side, profile, **kwargs)

    if args.tt_file:
        save_table(args.tt_file, engine.tt)

    response = SearchResponse.from_result(result)
    if args.json:
        sys.stdout.write(orjson.dumps(response.model_dump(), option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")
        return 0

    for rank, row in enumerate(pos.to_rows(), start=1):
        print(f"{rank} {' '.join(row)}")
    print("  a b c d e f g h")
    opening = name_for_prefix([m for m in moves if m >= 0])
    if opening:
        print(f"opening: {opening}")
    print(f"to move: {SIDE_NAMES[side]} ({profile.name})")
    if result.move is None:
        print(f"move: pass  eval={result.evaluation}")
    else:
        print(
            f"move: {coord_to_notation(result.move)}  eval={result.evaluation}  depth={result.depth_reached}"
            f"  nodes={result.nodes_evaluated}  time={result.time_ms}ms  timed_out={result.timed_out}"
        )
        if result.move != result.best_move:
            print(f"engine best: {coord_to_notation(result.best_move)}")
        print("pv: " + " ".join(response.pv))
    return 0


def _cmd_perft(args: argparse.Namespace) -> int:
    pos, side = play_moves(string_to_moves(args.moves))
    t0 = perf_counter()
    n = perft(pos, side, args.depth)
    dt = perf_counter() - t0
    print(f"perft(d={args.depth})={n} in {dt:.3f}s")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    settings = load_settings(args.config)
    setup_logging(overwrite=True, level=args.log_level or settings.log_level, to_file=settings.log_file)

    try:
        if args.command == "search":
            return _cmd_search(args, settings)
        return _cmd_perft(args)
    except (InvalidMove, InvalidPosition, ValueError) as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
