"""Stop-hunt / liquidity-sweep detection.

A sweep is a wick that pierces a reference level while the candle closes back
on the defended side, with the piercing wick long relative to the body.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import pandas as pd

from .sessions import AsianRange

MIN_BODY = 0.0001


class SweepType(str, Enum):
    NONE = "none"
    BULLISH = "bullish_sweep"
    BEARISH = "bearish_sweep"
    ASIAN_LOW = "asian_low_sweep"
    ASIAN_HIGH = "asian_high_sweep"


_LABELS = {
    SweepType.BULLISH: "Stop Hunt Below Support",
    SweepType.BEARISH: "Stop Hunt Above Resistance",
    SweepType.ASIAN_LOW: "Asian Low Swept: Bullish Reversal",
    SweepType.ASIAN_HIGH: "Asian High Swept: Bearish Reversal",
}


@dataclass(frozen=True)
class LiquiditySweep:
    detected: bool
    type: SweepType = SweepType.NONE
    label: str = ""
    level: Optional[float] = None
    bullish: bool = False


NO_SWEEP = LiquiditySweep(detected=False)


def _sweep(kind: SweepType, level: float) -> LiquiditySweep:
    bullish = kind in (SweepType.BULLISH, SweepType.ASIAN_LOW)
    return LiquiditySweep(True, kind, _LABELS[kind], float(level), bullish)


def _candle_sweeps(
    candle: pd.Series,
    support: Optional[float],
    resistance: Optional[float],
    asian_range: Optional[AsianRange],
    level_wick_mult: float,
    asian_wick_mult: float,
) -> List[LiquiditySweep]:
    o, h, l, c = (float(candle[k]) for k in ("open", "high", "low", "close"))
    body = abs(c - o) or MIN_BODY
    lower_wick = min(o, c) - l
    upper_wick = h - max(o, c)

    found = []
    if support is not None and l < support < c and lower_wick > body * level_wick_mult:
        found.append(_sweep(SweepType.BULLISH, support))
    if resistance is not None and h > resistance > c and upper_wick > body * level_wick_mult:
        found.append(_sweep(SweepType.BEARISH, resistance))
    if asian_range is not None:
        if l < asian_range.low < c and lower_wick > body * asian_wick_mult:
            found.append(_sweep(SweepType.ASIAN_LOW, asian_range.low))
        if h > asian_range.high > c and upper_wick > body * asian_wick_mult:
            found.append(_sweep(SweepType.ASIAN_HIGH, asian_range.high))
    return found


def detect_liquidity_sweep(
    candles: pd.DataFrame,
    supports: Sequence[float],
    resistances: Sequence[float],
    asian_range: Optional[AsianRange] = None,
    window: int = 5,
    level_wick_mult: float = 1.5,
    asian_wick_mult: float = 1.0,
) -> LiquiditySweep:
    """Scan the last `window` candles against the nearest support/resistance
    and the Asian range. The most recent bullish sweep wins; a bearish sweep
    is only reported when no bullish one exists.
    """
    if len(candles) < window:
        return NO_SWEEP
    support = supports[0] if len(supports) else None
    resistance = resistances[0] if len(resistances) else None

    found: List[LiquiditySweep] = []
    for _, candle in candles.tail(window).iterrows():
        found.extend(
            _candle_sweeps(candle, support, resistance, asian_range, level_wick_mult, asian_wick_mult)
        )
    bullish = [s for s in found if s.bullish]
    if bullish:
        return bullish[-1]
    bearish = [s for s in found if not s.bullish]
    return bearish[-1] if bearish else NO_SWEEP
