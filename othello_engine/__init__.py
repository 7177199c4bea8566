"""Othello/Reversi search engine: `(position, side, profile) -> move, evaluation, diagnostics`"""

from __future__ import annotations

from typing import List, Optional

from .engine import (
    BLACK,
    WHITE,
    DifficultyProfile,
    InvalidMove,
    InvalidPosition,
    Position,
    SearchEngine,
    SearchResult,
    get_profile,
    search_position,
)
from .engine.movegen import generate

__version__ = "0.1.0"


def search(position: Position, side: int, profile: Optional[DifficultyProfile] = None, **kwargs) -> SearchResult:
    return search_position(position, side, profile, **kwargs)


def apply_move(position: Position, move: int, side: int) -> Position:
    """Play `move` for `side`; raises InvalidMove for an illegal move."""
    return position.apply(move, side)


def legal_moves(position: Position, side: int) -> List[int]:
    """Legal moves in search order; empty when `side` must pass."""
    return generate(position, side)


__all__ = [
    'BLACK',
    'WHITE',
    'DifficultyProfile',
    'InvalidMove',
    'InvalidPosition',
    'Position',
    'SearchEngine',
    'SearchResult',
    'apply_move',
    'get_profile',
    'legal_moves',
    'search',
]
