from __future__ import annotations

import logging
import os
import pathlib
from dataclasses import dataclass, field
from importlib import resources
from typing import Any, Dict, Optional, Union

try:
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib  # type: ignore[no-redef]

from .engine.search import SearchEngine
from .engine.strength import PROFILES, DifficultyProfile

logger = logging.getLogger(__name__)

CONFIG_HOME = pathlib.Path(os.path.expanduser("~/.othello_engine"))
CONFIG_PATH = CONFIG_HOME / "config.toml"
PROFILE_FIELDS = ("max_depth", "time_ms", "mistake_prob", "use_opening_book")


@dataclass
class Settings:
    tt_capacity: int = 1_000_000
    persist_tt: bool = False
    time_margin: float = 0.9
    aspiration_window: int = 50
    workers: int = 2
    log_level: str = "INFO"
    log_file: bool = True
    profiles: Dict[str, DifficultyProfile] = field(default_factory=lambda: dict(PROFILES))

    def make_engine(self, seed: Optional[int] = None) -> SearchEngine:
        return SearchEngine(
            tt_capacity=self.tt_capacity,
            persist_tt=self.persist_tt,
            time_margin=self.time_margin,
            aspiration=self.aspiration_window,
            seed=seed,
        )


def _read_defaults() -> Dict[str, Any]:
    pkg = resources.files("othello_engine").joinpath("defaults.toml")
    with pkg.open("rb") as f:
        return tomllib.load(f)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def _profiles(section: Dict[str, Any]) -> Dict[str, DifficultyProfile]:
    profiles = dict(PROFILES)
    for name, values in section.items():
        unknown = set(values) - set(PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"profile {name!r}: unknown keys {sorted(unknown)}")
        key = name.lower()
        if key in profiles:
            profiles[key] = profiles[key].with_overrides(**values)
        else:
            missing = set(PROFILE_FIELDS[:3]) - set(values)
            if missing:
                raise ValueError(f"new profile {name!r} needs {sorted(missing)}")
            profiles[key] = DifficultyProfile(name=key, **values)
    return profiles


def load_settings(path: Optional[Union[str, pathlib.Path]] = None) -> Settings:
    """Defaults merged with the user config (explicit path, or ~/.othello_engine/config.toml if present)."""
    data = _read_defaults()
    if path is not None:
        p = pathlib.Path(path)
        with open(p, "rb") as f:
            data = _merge(data, tomllib.load(f))
        logger.info("Loaded configuration from %s", p)
    elif CONFIG_PATH.exists():
        with open(CONFIG_PATH, "rb") as f:
            data = _merge(data, tomllib.load(f))
        logger.info("Loaded configuration from %s", CONFIG_PATH)

    eng = data.get("engine", {})
    log = data.get("logging", {})
    return Settings(
        tt_capacity=int(eng.get("tt_capacity", 1_000_000)),
        persist_tt=bool(eng.get("persist_tt", False)),
        time_margin=float(eng.get("time_margin", 0.9)),
        aspiration_window=int(eng.get("aspiration_window", 50)),
        workers=int(eng.get("workers", 2)),
        log_level=str(log.get("level", "INFO")),
        log_file=bool(log.get("file", True)),
        profiles=_profiles(data.get("profiles", {})),
    )
