from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class SupportResistance:
    supports: Tuple[float, ...]
    resistances: Tuple[float, ...]
    near_support: bool
    near_resistance: bool

    @property
    def nearest_support(self) -> Optional[float]:
        return self.supports[0] if self.supports else None

    @property
    def nearest_resistance(self) -> Optional[float]:
        return self.resistances[0] if self.resistances else None


NO_LEVELS = SupportResistance((), (), False, False)


def _is_pivot(values: np.ndarray, i: int, wing: int, low: bool) -> bool:
    neighbours = np.concatenate([values[i - wing : i], values[i + 1 : i + 1 + wing]])
    if low:
        return bool((values[i] <= neighbours).all())
    return bool((values[i] >= neighbours).all())


def find_support_resistance(
    candles: pd.DataFrame,
    count: int = 3,
    wing: int = 2,
    near_pct: float = 0.02,
) -> SupportResistance:
    """Pivot support/resistance relative to the latest close.

    A bar is a support pivot when its low is <= the lows of the `wing` bars on
    each side (resistance: high >= highs). Supports below price come nearest
    first (descending), resistances above price nearest first (ascending).
    """
    n = len(candles)
    if n < 2 * wing + 1:
        return NO_LEVELS
    highs = candles["high"].to_numpy(dtype=float)
    lows = candles["low"].to_numpy(dtype=float)
    price = float(candles["close"].iloc[-1])

    supports, resistances = [], []
    for i in range(wing, n - wing):
        if _is_pivot(lows, i, wing, low=True) and lows[i] < price:
            supports.append(float(lows[i]))
        if _is_pivot(highs, i, wing, low=False) and highs[i] > price:
            resistances.append(float(highs[i]))
    supports.sort(reverse=True)
    resistances.sort()

    near_support = bool(supports) and (price - supports[0]) / price < near_pct
    near_resistance = bool(resistances) and (resistances[0] - price) / price < near_pct
    return SupportResistance(
        supports=tuple(supports[:count]),
        resistances=tuple(resistances[:count]),
        near_support=near_support,
        near_resistance=near_resistance,
    )


@dataclass(frozen=True)
class FairValueGap:
    found: bool
    low: Optional[float] = None
    high: Optional[float] = None
    mid: Optional[float] = None
    in_zone: bool = False
    rejection_candle: bool = False


NO_GAP = FairValueGap(found=False)


def _rejection_candle(candle: pd.Series, mid: float, wick_ratio: float = 0.5) -> bool:
    """Low dipped under the gap midpoint, body closed back above it on a real wick."""
    o, l, c = float(candle["open"]), float(candle["low"]), float(candle["close"])
    body_low = min(o, c)
    body = abs(c - o)
    return l < mid and body_low > mid and (body_low - l) >= body * wick_ratio


def detect_fvg(
    candles: pd.DataFrame,
    lookback: int = 20,
    min_back: int = 5,
    proximity_pct: float = 0.015,
) -> FairValueGap:
    """Most recent bullish fair-value gap that price currently occupies.

    Scans three-bar windows from `min_back` bars back to `lookback` bars back;
    a gap exists when bar i's high is strictly below bar i+2's low. The first
    gap with price inside it, or within `proximity_pct` of its midpoint, wins.
    """
    n = len(candles)
    if n < min_back:
        return NO_GAP
    highs = candles["high"].to_numpy(dtype=float)
    lows = candles["low"].to_numpy(dtype=float)
    last = candles.iloc[-1]
    price = float(last["close"])
    if price <= 0:
        return NO_GAP

    for i in range(n - min_back, max(0, n - lookback) - 1, -1):
        gap_low, gap_high = float(highs[i]), float(lows[i + 2])
        if not gap_high > gap_low:
            continue
        mid = (gap_low + gap_high) / 2.0
        in_zone = gap_low <= price <= gap_high
        near = abs(price - mid) / price < proximity_pct
        if in_zone or near:
            return FairValueGap(
                found=True,
                low=gap_low,
                high=gap_high,
                mid=mid,
                in_zone=in_zone,
                rejection_candle=_rejection_candle(last, mid),
            )
    return NO_GAP
