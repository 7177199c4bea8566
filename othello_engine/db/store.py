from __future__ import annotations

import logging
import pathlib
import sqlite3
from typing import Union

from ..engine.tt import TTEntry, TranspositionTable

logger = logging.getLogger(__name__)

SCHEMA = r"""
CREATE TABLE IF NOT EXISTS tt_entries (
  seq   INTEGER PRIMARY KEY,
  hash  INTEGER NOT NULL,
  depth INTEGER NOT NULL,
  score INTEGER NOT NULL,
  flag  INTEGER NOT NULL,
  best  INTEGER NOT NULL,
  gen   INTEGER NOT NULL
);
"""

# sqlite integers are signed 64-bit; Zobrist keys are unsigned
_SIGN = 1 << 63
_MOD = 1 << 64


def _to_db(h: int) -> int:
    return h - _MOD if h >= _SIGN else h


def _from_db(h: int) -> int:
    return h + _MOD if h < 0 else h


def connect(path: Union[str, pathlib.Path]) -> sqlite3.Connection:
    conn = sqlite3.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.executescript(SCHEMA)
    return conn


def save_table(path: Union[str, pathlib.Path], tt: TranspositionTable) -> int:
    """Replace the snapshot at `path` with the table's entries, in eviction order."""
    conn = connect(path)
    try:
        with conn:
            conn.execute("DELETE FROM tt_entries")
            rows = [
                (_to_db(key), e.depth, e.score, e.flag, e.best, e.gen)
                for key, e in tt.entries()
            ]
            conn.executemany(
                "INSERT INTO tt_entries(hash,depth,score,flag,best,gen) VALUES(?,?,?,?,?,?)",
                rows,
            )
    finally:
        conn.close()
    logger.info("Saved %d table entries to %s", len(rows), path)
    return len(rows)


def load_table(path: Union[str, pathlib.Path], tt: TranspositionTable) -> int:
    """Restore a snapshot into `tt`; the table's own replacement rules apply."""
    conn = connect(path)
    try:
        cur = conn.execute("SELECT hash,depth,score,flag,best,gen FROM tt_entries ORDER BY seq")
        items = [
            (_from_db(h), TTEntry(depth=d, score=s, flag=f, best=b, gen=g))
            for h, d, s, f, b, g in cur.fetchall()
        ]
    finally:
        conn.close()
    n = tt.load(items)
    logger.info("Loaded %d of %d table entries from %s", n, len(items), path)
    return n
