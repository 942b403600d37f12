"""Per-instrument signal context.

`build_context` runs every indicator and detector once and freezes the
results; scoring rules, setup classification, levels and the checklist all
read from the same `ScoringContext`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..features.candles import CandleInput, ensure_candles
from ..features.indicators import (
    BollingerState,
    MACDState,
    ROCState,
    atr,
    bollinger_bands,
    ema,
    macd,
    pct_change,
    roc,
    rsi,
    volume_ratio,
    volume_spike,
)
from ..features.liquidity import LiquiditySweep, detect_liquidity_sweep
from ..features.patterns import CandlePattern, detect_candle_pattern
from ..features.sessions import (
    AsianRange,
    SessionInfo,
    VolumeGrade,
    detect_asian_range,
    grade_session_volume,
    session_info,
)
from ..features.structure import FairValueGap, SupportResistance, detect_fvg, find_support_resistance
from ..infra.config import Settings, get_settings
from ..infra.yaml_config import Instrument

CLIMAX_SPIKE = 2.0


@dataclass(frozen=True)
class BenchmarkState:
    symbol: str
    change_4h: float
    safe: bool
    price: Optional[float] = None
    rsi_1h: Optional[float] = None


def benchmark_state(
    symbol: str,
    candles_4h: CandleInput | None,
    candles_1h: CandleInput | None = None,
    settings: Settings | None = None,
) -> BenchmarkState:
    """Last 4h move of the benchmark; "safe" while it stays above the threshold.

    Computed once per batch and shared read-only by every instrument.
    """
    settings = settings or get_settings()
    c4 = ensure_candles(candles_4h)
    closes = c4["close"].to_numpy(dtype=float)
    last = float(closes[-1]) if len(closes) else 0.0
    prev = float(closes[-2]) if len(closes) > 1 else last
    change = pct_change(last, prev)

    c1 = ensure_candles(candles_1h)
    price = float(c1["close"].iloc[-1]) if len(c1) else (last or None)
    return BenchmarkState(
        symbol=symbol,
        change_4h=change,
        safe=change > settings.benchmark_safe_pct,
        price=price,
        rsi_1h=rsi(c1["close"]) if len(c1) else None,
    )


@dataclass(frozen=True)
class ScoringContext:
    instrument: Instrument
    as_of: datetime
    price: float
    candle_count: int
    rsi_1h: Optional[float]
    rsi_4h: Optional[float]
    ema200: float
    price_vs_ema200: float
    ema20: float
    ema50: float
    in_uptrend: bool
    trend_strength: float
    bias_4h_favorable: bool
    macd: Optional[MACDState]
    atr: Optional[float]
    bollinger: Optional[BollingerState]
    roc: ROCState
    volume_ratio: float
    volume_spike: float
    volume_climax: bool
    volume_context: str
    signal_volume_above_avg: bool
    volume_grade: VolumeGrade
    pattern: CandlePattern
    levels: SupportResistance
    fvg: FairValueGap
    session: SessionInfo
    asian_range: Optional[AsianRange]
    sweep: LiquiditySweep
    change_24h: float
    benchmark: BenchmarkState

    @property
    def rsi_in_primary_zone(self) -> bool:
        return self.rsi_1h is not None and 30 <= self.rsi_1h <= 40


def _volume_context(climax: bool, levels: SupportResistance) -> str:
    if not climax:
        return "normal"
    if levels.near_support:
        return "accumulation"
    if levels.near_resistance:
        return "distribution"
    return "spike"


def build_context(
    instrument: Instrument,
    candles_1h: CandleInput,
    candles_4h: CandleInput,
    benchmark: BenchmarkState,
    now: datetime,
    settings: Settings | None = None,
) -> Optional[ScoringContext]:
    """Compute every signal for one instrument.

    Returns None when the 1h history is shorter than `min_1h_candles` or no 4h
    candles were supplied.
    """
    settings = settings or get_settings()
    c1 = ensure_candles(candles_1h)
    c4 = ensure_candles(candles_4h)
    if len(c1) < settings.min_1h_candles or c4.empty:
        return None

    closes = c1["close"].reset_index(drop=True)
    volumes = c1["volume"].reset_index(drop=True)
    closes_4h = c4["close"].reset_index(drop=True)
    n = len(closes)
    price = float(closes.iloc[-1])

    ema200 = float(ema(closes, min(200, n - 1)).iloc[-1])
    ema20 = float(ema(closes, 20).iloc[-1])
    ema50 = float(ema(closes, 50).iloc[-1])
    ema50_4h = float(ema(closes_4h, 50).iloc[-1])

    levels = find_support_resistance(c1)
    session = session_info(now, settings.session_profiles)
    asian = detect_asian_range(c1)

    raw_ratio = volume_ratio(volumes)
    spike = volume_spike(volumes)
    climax = spike > CLIMAX_SPIKE
    avg20 = float(volumes.tail(20).mean())

    return ScoringContext(
        instrument=instrument,
        as_of=now,
        price=price,
        candle_count=n,
        rsi_1h=rsi(closes),
        rsi_4h=rsi(closes_4h),
        ema200=ema200,
        price_vs_ema200=pct_change(price, ema200),
        ema20=ema20,
        ema50=ema50,
        in_uptrend=n >= 50 and ema20 > ema50,
        trend_strength=pct_change(ema20, ema50),
        bias_4h_favorable=float(closes_4h.iloc[-1]) > ema50_4h,
        macd=macd(closes),
        atr=atr(c1),
        bollinger=bollinger_bands(closes),
        roc=roc(closes),
        volume_ratio=raw_ratio,
        volume_spike=spike,
        volume_climax=climax,
        volume_context=_volume_context(climax, levels),
        signal_volume_above_avg=float(volumes.iloc[-1]) > avg20,
        volume_grade=grade_session_volume(raw_ratio, session.profile),
        pattern=detect_candle_pattern(c1),
        levels=levels,
        fvg=detect_fvg(c1),
        session=session,
        asian_range=asian,
        sweep=detect_liquidity_sweep(c1, levels.supports, levels.resistances, asian),
        change_24h=pct_change(price, float(closes.iloc[max(0, n - 25)])),
        benchmark=benchmark,
    )
