from __future__ import annotations

from typing import List, Tuple

import pandas as pd

from playbook.features.patterns import Confirmation, detect_candle_pattern
from playbook.features.structure import detect_fvg, find_support_resistance

Bar = Tuple[float, float, float, float]  # open, high, low, close


def _make_df(bars: List[Bar]) -> pd.DataFrame:
    o, h, l, c = zip(*bars)
    return pd.DataFrame(
        {
            "ts": pd.date_range("2024-05-01", periods=len(bars), freq="1h", tz="UTC"),
            "open": o,
            "high": h,
            "low": l,
            "close": c,
            "volume": [1000.0] * len(bars),
        }
    )


FIRST: Bar = (100.0, 101.0, 99.0, 100.5)


def test_bullish_engulfing():
    p = detect_candle_pattern(_make_df([FIRST, (105.0, 105.5, 99.5, 100.0), (99.0, 106.5, 98.8, 106.0)]))
    assert p.name == "Bullish Engulfing"
    assert p.confirmed_bullish


def test_hammer():
    p = detect_candle_pattern(_make_df([FIRST, (99.8, 100.0, 99.4, 99.6), (100.0, 101.1, 97.0, 101.0)]))
    assert p.name == "Hammer"
    assert p.strength is Confirmation.HIGH


def test_morning_star():
    bars = [(110.0, 110.5, 99.5, 100.0), (99.0, 100.0, 98.5, 99.5), (99.6, 106.5, 99.4, 106.0)]
    p = detect_candle_pattern(_make_df(bars))
    assert p.name == "Morning Star"
    assert p.bullish


def test_shooting_star_is_bearish_reversal():
    p = detect_candle_pattern(_make_df([FIRST, (100.0, 100.8, 99.6, 100.4), (101.0, 103.5, 99.95, 100.0)]))
    assert p.name == "Shooting Star"
    assert p.confirmed and not p.bullish


def test_plain_candles_and_short_input():
    green = detect_candle_pattern(_make_df([FIRST, (100.0, 100.6, 99.9, 100.5), (100.5, 101.0, 100.4, 100.8)]))
    assert green.name == "Green Candle"
    assert green.strength is Confirmation.LOW and not green.confirmed_bullish
    assert detect_candle_pattern(_make_df([FIRST, FIRST])).name == "N/A"


def test_v_shaped_support():
    closes = [110, 108, 106, 104, 102, 100, 102, 104, 106, 108, 101]
    df = _make_df([(c, c + 1.0, c - 1.0, c) for c in map(float, closes)])
    sr = find_support_resistance(df)
    assert sr.supports == (99.0,)
    assert sr.nearest_support == 99.0
    assert sr.near_support
    assert sr.resistances == ()


def test_support_resistance_too_short():
    sr = find_support_resistance(_make_df([FIRST] * 4))
    assert sr.supports == () and not sr.near_support


def test_fvg_reclaim_with_rejection_wick():
    bars = [
        (98.0, 99.0, 97.0, 98.5),
        (98.5, 99.5, 98.0, 99.0),
        (99.0, 99.8, 98.5, 99.5),
        (99.5, 100.0, 99.0, 99.8),
        (99.8, 105.0, 99.7, 104.8),
        (104.8, 106.0, 104.0, 105.5),
        (105.5, 106.5, 104.5, 105.0),
        (105.0, 105.5, 103.5, 104.0),
        (104.0, 104.2, 102.8, 103.0),
        (103.0, 103.2, 101.5, 102.5),
    ]
    gap = detect_fvg(_make_df(bars))
    assert gap.found
    assert (gap.low, gap.high, gap.mid) == (100.0, 104.0, 102.0)
    assert gap.in_zone
    assert gap.rejection_candle


def test_no_fvg_in_flat_market():
    assert not detect_fvg(_make_df([FIRST] * 25)).found
