"""Board representation, move generation, evaluation and search"""

from .board import BLACK, WHITE, MoveFrame, Position, make_move, opponent, undo_move
from .errors import InvalidMove, InvalidPosition, SearchInProgress
from .search import SearchEngine, SearchResult, SearchState, search_position
from .strength import PROFILES, DifficultyProfile, get_profile
from .tt import TranspositionTable

__all__ = [
    'BLACK',
    'WHITE',
    'MoveFrame',
    'Position',
    'make_move',
    'opponent',
    'undo_move',
    'InvalidMove',
    'InvalidPosition',
    'SearchInProgress',
    'SearchEngine',
    'SearchResult',
    'SearchState',
    'search_position',
    'PROFILES',
    'DifficultyProfile',
    'get_profile',
    'TranspositionTable',
]
