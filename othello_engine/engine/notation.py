"""
Coordinate notation for Othello moves.

Squares 0..63 map to 'a1'..'h8' with the file as letter and the rank as digit;
a move sequence is the concatenation of its squares ('f5d6c3'). Passes are
written as '--'.
"""

from __future__ import annotations

from typing import List, Optional

# Special string for pass moves (no available moves)
PASS_NOTATION = '--'


def coord_to_notation(coord: Optional[int]) -> str:
    """Convert board coordinate (0-63) to coordinate notation (e.g., 'e4'). None is a pass."""
    if coord is None or coord == -1:
        return PASS_NOTATION
    if coord < 0 or coord > 63:
        raise ValueError(f"Invalid coordinate: {coord}")
    return f"{chr(ord('a') + coord % 8)}{coord // 8 + 1}"


def notation_to_coord(notation: str) -> int:
    """Convert coordinate notation (e.g., 'e4') to board coordinate (0-63)."""
    if notation == PASS_NOTATION:
        raise ValueError(f"Cannot convert pass notation '{PASS_NOTATION}' to coordinate")
    if len(notation) != 2:
        raise ValueError(f"Invalid notation format: {notation}")

    file_char = notation[0].lower()
    rank_char = notation[1]
    if not file_char.isalpha() or not rank_char.isdigit():
        raise ValueError(f"Invalid notation format: {notation}")

    file = ord(file_char) - ord('a')
    rank = int(rank_char) - 1
    if file < 0 or file > 7 or rank < 0 or rank > 7:
        raise ValueError(f"Invalid notation: {notation}")
    return rank * 8 + file


def moves_to_string(moves: List[int]) -> str:
    """Convert list of move coordinates to a notation string; -1 is a pass."""
    return ''.join(coord_to_notation(move) for move in moves)


def string_to_moves(moves_str: str) -> List[int]:
    """Parse a notation string into coordinates, -1 for passes. Invalid pairs raise ValueError."""
    text = moves_str.strip().replace(" ", "").replace(",", "")
    if len(text) % 2:
        raise ValueError(f"Incomplete move string: {moves_str!r}")
    moves = []
    for i in range(0, len(text), 2):
        pair = text[i:i + 2]
        moves.append(-1 if pair == PASS_NOTATION else notation_to_coord(pair))
    return moves
