import pytest
from pydantic import ValidationError

from othello_engine.engine.board import BLACK, WHITE, Position
from othello_engine.engine.search import SearchResult
from othello_engine.schemas import SearchRequest, SearchResponse


def _initial_request(**kw):
    b = Position.initial()
    return SearchRequest(black=b.black, white=b.white, **kw)


def test_request_defaults_and_side_parsing():
    req = _initial_request()
    assert req.side == BLACK
    assert req.profile == "advanced"
    assert _initial_request(side="White").side == WHITE
    assert _initial_request(side=1).side == WHITE
    assert _initial_request(profile="EXPERT").profile == "expert"
    pos = req.to_position()
    assert pos == Position.initial()


@pytest.mark.parametrize(
    "kw",
    [
        {"side": "red"},
        {"side": 2},
        {"profile": ""},
        {"max_depth": 0},
        {"time_ms": 0},
    ],
)
def test_request_rejects_bad_fields(kw):
    with pytest.raises(ValidationError):
        _initial_request(**kw)


def test_request_rejects_bad_masks():
    with pytest.raises(ValidationError):
        SearchRequest(black=1, white=1)
    with pytest.raises(ValidationError):
        SearchRequest(black=1 << 64, white=0)
    with pytest.raises(ValidationError):
        SearchRequest(black=-1, white=0)


def test_response_from_result():
    res = SearchResult(37, 12, 100, 3, False, best_move=37, pv=[37, 43, 18], time_ms=5)
    out = SearchResponse.from_result(res)
    assert out.move == "f5"
    assert out.square == 37
    assert out.pv == ["f5", "d6", "c3"]
    assert out.model_dump()["evaluation"] == 12


def test_response_for_pass():
    out = SearchResponse.from_result(SearchResult(None, -5, 10, 1, False))
    assert out.move is None
    assert out.square is None
    assert out.best_move is None


def test_profile_checked_against_supplied_tiers():
    b = Position.initial()
    data = {"black": b.black, "white": b.white, "profile": "Blitz"}
    assert SearchRequest.model_validate(data).profile == "blitz"
    assert SearchRequest.model_validate(data, context={"profiles": {"blitz": None}}).profile == "blitz"
    with pytest.raises(ValidationError, match="unknown profile"):
        SearchRequest.model_validate(data, context={"profiles": {"expert": None}})
