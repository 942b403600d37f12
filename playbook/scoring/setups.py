"""Setup classification: A (RSI + structure), B (FVG reclaim), C (momentum).

Classifiers run in a fixed priority order and the first one that matches
wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from .context import ScoringContext


class SetupType(str, Enum):
    NONE = "None"
    A = "A: RSI+Structure"
    A_CONFIRMED = "A: RSI+Structure (Confirmed)"
    B = "B: FVG Reclaim"
    B_CONFIRMED = "B: FVG Reclaim (Confirmed)"
    C = "C: Momentum Candidate"


class SetupStatus(str, Enum):
    NONE = "NONE"
    FORMING = "FORMING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class Criterion:
    key: str
    label: str
    passed: bool


@dataclass(frozen=True)
class SetupDecision:
    type: SetupType
    status: SetupStatus
    bonus: int = 0
    reasons: Tuple[str, ...] = ()


NO_SETUP = SetupDecision(SetupType.NONE, SetupStatus.NONE)

SETUP_A_CONFIRMED_BONUS = 15
SETUP_A_FORMING_BONUS = 5
SETUP_A_FORMING_MIN = 4
SETUP_C_MIN_SCORE = 40


def setup_a_criteria(ctx: ScoringContext) -> Tuple[Criterion, ...]:
    """The six Setup A checks, in display order."""
    return (
        Criterion("rsi_zone", "RSI 1H in 30-40", ctx.rsi_in_primary_zone),
        Criterion("near_support", "Near support", ctx.levels.near_support),
        Criterion("confirmed_candle", "Confirmed bullish candle", ctx.pattern.confirmed_bullish),
        Criterion("session_volume", "Session volume >= 0.8x", ctx.volume_grade.adjusted_ratio >= 0.8),
        Criterion("signal_volume", "Signal candle volume above 20-bar avg", ctx.signal_volume_above_avg),
        Criterion("benchmark_safe", "Benchmark safe", ctx.benchmark.safe),
    )


def _setup_a(ctx: ScoringContext, score: int) -> Optional[SetupDecision]:
    criteria = setup_a_criteria(ctx)
    met = {c.key: c.passed for c in criteria}
    passed = sum(met.values())
    if passed == len(criteria):
        return SetupDecision(
            SetupType.A_CONFIRMED,
            SetupStatus.CONFIRMED,
            SETUP_A_CONFIRMED_BONUS,
            ("Setup A confirmed: all 6 criteria met",),
        )
    if passed >= SETUP_A_FORMING_MIN and met["rsi_zone"] and met["benchmark_safe"]:
        missing = ", ".join(c.label for c in criteria if not c.passed)
        return SetupDecision(
            SetupType.A,
            SetupStatus.FORMING,
            SETUP_A_FORMING_BONUS,
            (f"Setup A forming ({passed}/6), missing: {missing}",),
        )
    return None


def _setup_b(ctx: ScoringContext, score: int) -> Optional[SetupDecision]:
    f = ctx.fvg
    if not (f.found and f.in_zone and ctx.rsi_1h is not None and ctx.rsi_1h < 50 and ctx.benchmark.safe):
        return None
    if f.rejection_candle:
        return SetupDecision(
            SetupType.B_CONFIRMED,
            SetupStatus.CONFIRMED,
            reasons=("Setup B confirmed: rejection candle inside the FVG",),
        )
    return SetupDecision(
        SetupType.B, SetupStatus.FORMING, reasons=("Setup B forming: waiting for a rejection candle",)
    )


def _setup_c(ctx: ScoringContext, score: int) -> Optional[SetupDecision]:
    if (
        ctx.rsi_1h is not None
        and ctx.rsi_1h < 60
        and ctx.change_24h < 2
        and ctx.benchmark.safe
        and score >= SETUP_C_MIN_SCORE
    ):
        return SetupDecision(
            SetupType.C,
            SetupStatus.FORMING,
            reasons=(f"Setup C: momentum candidate (24h {ctx.change_24h:+.1f}%)",),
        )
    return None


SETUP_PRIORITY: Tuple[Callable[[ScoringContext, int], Optional[SetupDecision]], ...] = (
    _setup_a,
    _setup_b,
    _setup_c,
)


def classify_setup(ctx: ScoringContext, score: int) -> SetupDecision:
    """First matching setup in priority order; `score` is the running additive score."""
    for classify in SETUP_PRIORITY:
        decision = classify(ctx, score)
        if decision is not None:
            return decision
    return NO_SETUP
