import logging
import sys
import threading

import orjson
import pytest

from othello_engine.db.store import load_table
from othello_engine.engine.tt import TranspositionTable
from othello_engine.tools.cli import main


@pytest.fixture
def config(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text('[logging]\nlevel = "WARNING"\nfile = false\n', encoding="utf-8")
    return str(cfg)


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    hooks = (sys.excepthook, threading.excepthook)
    yield
    # Drop the handlers main() installed; they hold this test's captured streams
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    if hasattr(root, "_oe_logging_configured"):
        del root._oe_logging_configured
    sys.excepthook, threading.excepthook = hooks
    logging.captureWarnings(False)


def test_perft_command(config, capsys):
    assert main(["--config", config, "perft", "--depth", "3"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("perft(d=3)=56 in ")


def test_search_command_prints_board_and_move(config, capsys):
    rc = main([
        "--config", config, "search", "--moves", "f5d6c3", "--profile", "beginner",
        "--depth", "2", "--time-ms", "10000", "--seed", "1",
    ])
    assert rc == 0
    out = capsys.readouterr().out
    assert "  a b c d e f g h" in out
    assert "opening: Tiger" in out
    assert "to move: white (beginner)" in out
    assert "move: " in out and "depth=2" in out


def test_search_command_json(config, capsys):
    rc = main([
        "--config", config, "search", "--moves", "f5", "--profile", "expert",
        "--depth", "3", "--time-ms", "10000", "--json",
    ])
    assert rc == 0
    data = orjson.loads(capsys.readouterr().out)
    # Expert consults the book after f5
    assert data["move"] == "d6"
    assert data["from_book"] is True
    assert data["depth_reached"] == 0


def test_search_command_saves_table(config, tmp_path, capsys):
    db = tmp_path / "tt.db"
    rc = main([
        "--config", config, "search", "--moves", "f5d6c3d3", "--profile", "intermediate",
        "--depth", "3", "--time-ms", "10000", "--tt-file", str(db),
    ])
    assert rc == 0
    assert db.exists()
    assert load_table(db, TranspositionTable(1000)) > 0


@pytest.mark.parametrize(
    "args",
    [
        ["search", "--moves", "a1"],
        ["search", "--moves", "f5x9"],
        ["search", "--profile", "grandmaster"],
        ["search", "--side", "red"],
        ["perft", "--depth", "2", "--moves", "f5f5"],
    ],
)
def test_bad_input_exits_with_2(config, capsys, args):
    assert main(["--config", config] + args) == 2
    assert "error:" in capsys.readouterr().err
