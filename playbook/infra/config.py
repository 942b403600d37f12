from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from ..features.sessions import DEFAULT_SESSION_PROFILES, SessionName, SessionProfile

SETTINGS_PATH = os.environ.get(
    "PLAYBOOK_SETTINGS_PATH",
    os.path.join(os.path.dirname(__file__), "..", "settings.toml"),
)


def _session_profiles(raw: dict) -> Dict[SessionName, SessionProfile]:
    out = dict(DEFAULT_SESSION_PROFILES)
    for key, vals in (raw or {}).items():
        name = SessionName(key)
        base = out[name]
        out[name] = SessionProfile(
            volume_multiplier=float(vals.get("volume_multiplier", base.volume_multiplier)),
            stop_buffer=float(vals.get("stop_buffer", base.stop_buffer)),
            rules=tuple(vals.get("rules", base.rules)),
        )
    return out


@dataclass
class Settings:
    project_name: str = "playbook-scanner"
    min_1h_candles: int = 50
    benchmark_symbol: str = "BTCUSDT"
    benchmark_safe_pct: float = -3.0
    overbought_rsi: float = 70.0
    rejection_score: int = -50
    stop_pct: float = 2.0
    tp1_pct: float = 3.5
    tp2_pct: float = 5.0
    min_rr: float = 2.0
    rr_penalty: int = -20
    session_profiles: Dict[SessionName, SessionProfile] = field(
        default_factory=lambda: dict(DEFAULT_SESSION_PROFILES)
    )

    @classmethod
    def load(cls, path: str | None = None) -> "Settings":
        p = path or SETTINGS_PATH
        with open(p, "rb") as f:
            cfg = tomllib.load(f)
        proj = cfg.get("project", {})
        hist = cfg.get("history", {})
        bench = cfg.get("benchmark", {})
        gate = cfg.get("gate", {})
        book = cfg.get("playbook", {})
        return cls(
            project_name=proj.get("name", "playbook-scanner"),
            min_1h_candles=int(hist.get("min_1h_candles", 50)),
            benchmark_symbol=str(bench.get("symbol", "BTCUSDT")),
            benchmark_safe_pct=float(bench.get("safe_change_pct", -3.0)),
            overbought_rsi=float(gate.get("overbought_rsi", 70.0)),
            rejection_score=int(gate.get("rejection_score", -50)),
            stop_pct=float(book.get("stop_pct", 2.0)),
            tp1_pct=float(book.get("tp1_pct", 3.5)),
            tp2_pct=float(book.get("tp2_pct", 5.0)),
            min_rr=float(book.get("min_rr", 2.0)),
            rr_penalty=int(book.get("rr_penalty", -20)),
            session_profiles=_session_profiles(cfg.get("sessions", {})),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings from settings.toml, loaded once per process."""
    return Settings.load()
