"""Indicator calculations used by the setup scanner.

Every function accepts an ordered (oldest -> newest) price or volume sequence
(pandas Series, numpy array or plain list) and returns `None` rather than
raising when there is not enough history.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

Numeric = Union[pd.Series, np.ndarray, Sequence[float]]


def _as_array(values: Numeric) -> np.ndarray:
    return np.asarray(values, dtype=float)


def pct_change(current: float, reference: float) -> float:
    """Percentage move from `reference` to `current`; 0.0 for a non-positive reference."""
    if reference is None or not reference > 0:
        return 0.0
    return (float(current) - float(reference)) / float(reference) * 100.0


def _wilder(values: np.ndarray, period: int) -> float:
    # Simple mean seed, then Wilder smoothing over the remainder.
    avg = float(values[:period].mean())
    for x in values[period:]:
        avg = (avg * (period - 1) + float(x)) / period
    return avg


def rsi(closes: Numeric, period: int = 14) -> Optional[float]:
    """Wilder's RSI; latest value only, in [0, 100].

    A zero average loss yields exactly 100.
    """
    arr = _as_array(closes)
    if len(arr) < period + 1:
        return None
    deltas = np.diff(arr)
    avg_gain = _wilder(np.clip(deltas, 0.0, None), period)
    avg_loss = _wilder(np.clip(-deltas, 0.0, None), period)
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return float(100.0 - 100.0 / (1.0 + rs))


def ema(series: Numeric, period: int) -> pd.Series:
    """Exponential moving average seeded with the first data point.

    Uses k = 2 / (period + 1); the output has one value per input point.
    """
    s = series if isinstance(series, pd.Series) else pd.Series(_as_array(series))
    if s.empty:
        return s.astype(float)
    return s.astype(float).ewm(span=period, adjust=False).mean()


@dataclass(frozen=True)
class MACDState:
    macd: float
    signal: float
    histogram: float
    bullish_cross: bool
    bearish_cross: bool
    rising: bool


def macd(closes: Numeric, fast: int = 12, slow: int = 26, signal: int = 9) -> Optional[MACDState]:
    """MACD(12, 26, 9) with the signal line built only past the slow EMA warm-up."""
    arr = _as_array(closes)
    if len(arr) < 35:
        return None
    line = ema(arr, fast).to_numpy() - ema(arr, slow).to_numpy()
    trimmed = line[slow:]
    if len(trimmed) < 2:
        return None
    sig = ema(trimmed, signal).to_numpy()
    hist = float(trimmed[-1] - sig[-1])
    prev_hist = float(trimmed[-2] - sig[-2])
    return MACDState(
        macd=float(trimmed[-1]),
        signal=float(sig[-1]),
        histogram=hist,
        bullish_cross=prev_hist <= 0 and hist > 0,
        bearish_cross=prev_hist >= 0 and hist < 0,
        rising=hist > prev_hist,
    )


def true_range(candles: pd.DataFrame) -> np.ndarray:
    """True range for bars 1..n-1 (bar 0 has no previous close)."""
    h = candles["high"].to_numpy(dtype=float)[1:]
    l = candles["low"].to_numpy(dtype=float)[1:]
    pc = candles["close"].to_numpy(dtype=float)[:-1]
    return np.maximum.reduce([h - l, np.abs(h - pc), np.abs(l - pc)])


def atr(candles: pd.DataFrame, period: int = 14) -> Optional[float]:
    """Average True Range with a simple-mean seed and Wilder smoothing."""
    if len(candles) < period + 1:
        return None
    return _wilder(true_range(candles), period)


@dataclass(frozen=True)
class BollingerState:
    upper: float
    lower: float
    mean: float
    bandwidth: float
    percent_b: float
    squeeze: bool


def bollinger_bands(
    closes: Numeric,
    period: int = 20,
    mult: float = 2.0,
    squeeze_ratio: float = 0.75,
    squeeze_history: int = 70,
) -> Optional[BollingerState]:
    """Bollinger Bands over the trailing window (population std).

    The squeeze compares the current bandwidth with the mean bandwidth of every
    window in the series, but only once `squeeze_history` closes exist.
    """
    arr = _as_array(closes)
    if len(arr) < period:
        return None
    window = arr[-period:]
    mean = float(window.mean())
    if mean == 0:
        return None
    sd = float(window.std(ddof=0))
    upper, lower = mean + mult * sd, mean - mult * sd
    bandwidth = (upper - lower) / mean * 100.0
    percent_b = (arr[-1] - lower) / (upper - lower) if upper != lower else 0.5

    baseline = bandwidth
    if len(arr) >= squeeze_history:
        s = pd.Series(arr)
        m = s.rolling(period, min_periods=period).mean()
        sdr = s.rolling(period, min_periods=period).std(ddof=0)
        with np.errstate(divide="ignore", invalid="ignore"):
            bws = (2.0 * mult * sdr) / m * 100.0
        baseline = float(bws.replace([np.inf, -np.inf], np.nan).dropna().mean())
    return BollingerState(
        upper=upper,
        lower=lower,
        mean=mean,
        bandwidth=bandwidth,
        percent_b=float(percent_b),
        squeeze=bandwidth < baseline * squeeze_ratio,
    )


@dataclass(frozen=True)
class ROCState:
    roc: float
    prior_roc: float
    improving: bool


def roc(closes: Numeric, period: int = 10, lag: int = 5, ceiling: float = 5.0) -> ROCState:
    """Rate of change now and `lag` bars ago.

    Missing history reads as 0.0 so the momentum rule simply stays quiet.
    """
    arr = _as_array(closes)
    n = len(arr)
    cur = pct_change(arr[-1], arr[-1 - period]) if n > period else 0.0
    prior = pct_change(arr[-1 - lag], arr[-1 - lag - period]) if n > period + lag else 0.0
    return ROCState(roc=cur, prior_roc=prior, improving=cur > prior and cur < ceiling)


def volume_ratio(volumes: Numeric, recent: int = 5, baseline: int = 20) -> float:
    """Average of the last `recent` bars over the trailing `baseline` average."""
    arr = _as_array(volumes)
    if len(arr) == 0:
        return 0.0
    avg = float(arr[-baseline:].mean())
    return float(arr[-recent:].mean()) / avg if avg > 0 else 0.0


def volume_spike(volumes: Numeric, baseline: int = 20) -> float:
    """Latest bar volume relative to the trailing `baseline` average."""
    arr = _as_array(volumes)
    if len(arr) == 0:
        return 0.0
    avg = float(arr[-baseline:].mean())
    return float(arr[-1]) / avg if avg > 0 else 0.0
