from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import numpy as np
import pandas as pd
import pytest

from playbook.features.indicators import ROCState
from playbook.features.liquidity import NO_SWEEP
from playbook.features.patterns import CandlePattern, Confirmation
from playbook.features.sessions import DEFAULT_SESSION_PROFILES, SessionName, grade_session_volume, session_info
from playbook.features.structure import NO_GAP, NO_LEVELS
from playbook.infra.yaml_config import Instrument
from playbook.scoring.context import BenchmarkState, ScoringContext

LONDON_MORNING = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _candles(n: int, seed: int = 0, start: str = "2024-04-01", freq: str = "1h", drift: float = 0.0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    close = 100.0 * np.exp(np.cumsum(rng.normal(drift, 0.01, size=n)))
    open_ = np.concatenate([[close[0]], close[:-1]])
    high = np.maximum(open_, close) * (1 + rng.random(n) * 0.005)
    low = np.minimum(open_, close) * (1 - rng.random(n) * 0.005)
    vol = rng.uniform(1000.0, 2000.0, size=n)
    return pd.DataFrame(
        {
            "ts": pd.date_range(start, periods=n, freq=freq, tz="UTC"),
            "open": open_,
            "high": high,
            "low": low,
            "close": close,
            "volume": vol,
        }
    )


@pytest.fixture
def make_candles():
    return _candles


def _ctx(**overrides) -> ScoringContext:
    # Neutral baseline: London morning, adequate volume, no pattern or structure.
    session = session_info(LONDON_MORNING)
    base = ScoringContext(
        instrument=Instrument("ETHUSDT", "Ethereum", "alt", ("L1",)),
        as_of=LONDON_MORNING,
        price=100.0,
        candle_count=100,
        rsi_1h=55.0,
        rsi_4h=55.0,
        ema200=90.0,
        price_vs_ema200=11.1,
        ema20=100.0,
        ema50=100.0,
        in_uptrend=False,
        trend_strength=0.0,
        bias_4h_favorable=True,
        macd=None,
        atr=1.0,
        bollinger=None,
        roc=ROCState(0.0, 0.0, False),
        volume_ratio=1.0,
        volume_spike=1.0,
        volume_climax=False,
        volume_context="normal",
        signal_volume_above_avg=True,
        volume_grade=grade_session_volume(1.0, DEFAULT_SESSION_PROFILES[SessionName.LONDON]),
        pattern=CandlePattern("Red Candle", False, Confirmation.NONE),
        levels=NO_LEVELS,
        fvg=NO_GAP,
        session=session,
        asian_range=None,
        sweep=NO_SWEEP,
        change_24h=0.0,
        benchmark=BenchmarkState("BTCUSDT", 0.5, True),
    )
    return replace(base, **overrides)


@pytest.fixture
def make_ctx():
    return _ctx
