"""Request/response schemas for callers that hand the engine untrusted input"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from .engine.bitboard import FULL
from .engine.board import Position, parse_side
from .engine.notation import coord_to_notation
from .engine.search import SearchResult


def _notation(sq: Optional[int]) -> Optional[str]:
    return None if sq is None else coord_to_notation(sq)


class SearchRequest(BaseModel):
    """Position and constraints for one search"""
    black: int = Field(..., ge=0, le=FULL, description="Black occupancy mask, bit 0 = a1")
    white: int = Field(..., ge=0, le=FULL, description="White occupancy mask")
    side: int = Field(0, description="Side to move: 0/'black' or 1/'white'")
    profile: str = Field("advanced", min_length=1, description="Difficulty tier")
    max_depth: Optional[int] = Field(None, ge=1, le=60, description="Override profile depth")
    time_ms: Optional[int] = Field(None, gt=0, le=600_000, description="Override profile time budget")

    @field_validator("side", mode="before")
    @classmethod
    def _side(cls, v):
        if isinstance(v, str):
            return parse_side(v)
        if v not in (0, 1):
            raise ValueError("side must be 0 (black) or 1 (white)")
        return v

    @field_validator("profile")
    @classmethod
    def _profile(cls, v: str, info: ValidationInfo) -> str:
        # Tiers may come from config; check against the caller's table when one is given
        name = v.strip().lower()
        profiles = (info.context or {}).get("profiles")
        if profiles is not None and name not in profiles:
            raise ValueError(f"unknown profile {v!r}; choose from {sorted(profiles)}")
        return name

    @model_validator(mode="after")
    def _disjoint(self) -> "SearchRequest":
        if self.black & self.white:
            raise ValueError("black and white occupancy overlap")
        return self

    def to_position(self) -> Position:
        return Position(self.black, self.white)


class SearchResponse(BaseModel):
    """Search outcome with diagnostics"""
    move: Optional[str]
    square: Optional[int]
    best_move: Optional[str]
    evaluation: int
    nodes_evaluated: int
    depth_reached: int
    timed_out: bool
    pv: List[str]
    time_ms: int
    from_book: bool = False

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResponse":
        return cls(
            move=_notation(result.move),
            square=result.move,
            best_move=_notation(result.best_move),
            evaluation=result.evaluation,
            nodes_evaluated=result.nodes_evaluated,
            depth_reached=result.depth_reached,
            timed_out=result.timed_out,
            pv=[coord_to_notation(sq) for sq in result.pv],
            time_ms=result.time_ms,
            from_book=result.from_book,
        )
