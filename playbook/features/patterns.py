"""Candlestick pattern classification on the last one to three bars."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import pandas as pd


class Confirmation(str, Enum):
    NONE = "NONE"
    LOW = "LOW"
    HIGH = "HIGH"


@dataclass(frozen=True)
class CandlePattern:
    name: str
    bullish: bool
    strength: Confirmation

    @property
    def confirmed(self) -> bool:
        """A named reversal pattern rather than a plain coloured candle."""
        return self.strength is Confirmation.HIGH

    @property
    def confirmed_bullish(self) -> bool:
        return self.confirmed and self.bullish


NOT_AVAILABLE = CandlePattern("N/A", False, Confirmation.NONE)


@dataclass(frozen=True)
class _Bar:
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def from_row(cls, row: pd.Series) -> "_Bar":
        return cls(float(row["open"]), float(row["high"]), float(row["low"]), float(row["close"]))

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def upper_wick(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> float:
        return min(self.open, self.close) - self.low

    @property
    def green(self) -> bool:
        return self.close > self.open

    @property
    def red(self) -> bool:
        return self.close < self.open


def _bullish_engulfing(last: _Bar, prev: _Bar) -> bool:
    return last.green and last.body > prev.body and last.close > prev.open and last.open < prev.close


def _bearish_engulfing(last: _Bar, prev: _Bar) -> bool:
    return last.red and last.body > prev.body and last.close < prev.open and last.open > prev.close


def _hammer(last: _Bar) -> bool:
    return last.green and last.lower_wick > last.body * 2 and last.upper_wick < last.body * 0.3


def _shooting_star(last: _Bar) -> bool:
    return last.red and last.upper_wick > last.body * 2 and last.lower_wick < last.body * 0.3


def _morning_star(first: _Bar, middle: _Bar, last: _Bar, large_body: float = 0.5, small_body: float = 0.35) -> bool:
    # First bar must be a large bearish candle: body covering at least half its range.
    first_range = first.high - first.low
    if not first.red or first_range <= 0 or first.body < first_range * large_body:
        return False
    if middle.body > first.body * small_body:
        return False
    return last.green and last.close > (first.open + first.close) / 2.0


def detect_candle_pattern(candles: pd.DataFrame) -> CandlePattern:
    """Classify the most recent candle, first match wins.

    Order: Bullish Engulfing, Hammer, Morning Star, Shooting Star, Bearish
    Engulfing, then a plain Green/Red Candle. Named patterns carry HIGH
    confirmation, a green candle LOW, a red candle NONE.
    """
    if len(candles) < 3:
        return NOT_AVAILABLE
    first, prev, last = (_Bar.from_row(candles.iloc[i]) for i in (-3, -2, -1))

    if _bullish_engulfing(last, prev):
        return CandlePattern("Bullish Engulfing", True, Confirmation.HIGH)
    if _hammer(last):
        return CandlePattern("Hammer", True, Confirmation.HIGH)
    if _morning_star(first, prev, last):
        return CandlePattern("Morning Star", True, Confirmation.HIGH)
    if _shooting_star(last):
        return CandlePattern("Shooting Star", False, Confirmation.HIGH)
    if _bearish_engulfing(last, prev):
        return CandlePattern("Bearish Engulfing", False, Confirmation.HIGH)
    if last.green:
        return CandlePattern("Green Candle", True, Confirmation.LOW)
    return CandlePattern("Red Candle", False, Confirmation.NONE)
