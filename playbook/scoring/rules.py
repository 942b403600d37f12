"""Additive scoring rules.

Each rule is a pure function `(ScoringContext) -> (delta, reason | None)`.
`SCORING_RULES` is folded left to right; a rule contributes only when it
returns a reason. Deltas and thresholds are fixed playbook constants.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from ..features.sessions import SessionName
from .context import ScoringContext

RuleResult = Tuple[int, Optional[str]]
ScoreRule = Callable[[ScoringContext], RuleResult]

QUIET: RuleResult = (0, None)


def rsi_zone(ctx: ScoringContext) -> RuleResult:
    r = ctx.rsi_1h
    if r is None:
        return QUIET
    if 30 <= r <= 40:
        return 30, f"RSI 1H in primary zone ({r:.1f})"
    if 40 < r <= 50:
        return 15, f"RSI 1H neutral ({r:.1f})"
    if r < 30:
        return 20, f"RSI 1H deeply oversold ({r:.1f})"
    return QUIET


def rsi_alignment(ctx: ScoringContext) -> RuleResult:
    r1, r4 = ctx.rsi_1h, ctx.rsi_4h
    if r1 is None or r4 is None:
        return QUIET
    if r1 < 40 and r4 < 40:
        return 15, f"RSI aligned oversold (4H: {r4:.0f})"
    if r1 > 65 and r4 > 65:
        return -15, f"RSI aligned overbought (4H: {r4:.0f})"
    if (r1 < 40 and r4 > 60) or (r1 > 60 and r4 < 40):
        return -5, f"RSI timeframe divergence (4H: {r4:.0f})"
    return QUIET


def support_proximity(ctx: ScoringContext) -> RuleResult:
    if ctx.levels.near_support:
        return 20, "Price near key support level"
    return QUIET


def ema200_proximity(ctx: ScoringContext) -> RuleResult:
    d = ctx.price_vs_ema200
    if -2 < d < 2:
        return 10, f"Near 200 EMA ({d:+.1f}%)"
    return QUIET


def session_volume(ctx: ScoringContext) -> RuleResult:
    g = ctx.volume_grade
    return g.delta, (
        f"{g.note} ({g.tier.value}, {g.adjusted_ratio:.2f}x session-adjusted, "
        f"{g.raw_ratio:.2f}x raw)"
    )


def volume_climax(ctx: ScoringContext) -> RuleResult:
    if ctx.volume_context == "accumulation":
        return 10, f"Volume climax at support ({ctx.volume_spike:.1f}x): accumulation"
    if ctx.volume_context == "distribution":
        return -5, f"Volume climax at resistance ({ctx.volume_spike:.1f}x): distribution risk"
    return QUIET


def candle_confirmation(ctx: ScoringContext) -> RuleResult:
    p = ctx.pattern
    if p.confirmed_bullish and ctx.levels.near_support:
        return 15, f"{p.name} at support (confirmed)"
    if p.confirmed_bullish:
        return 10, f"{p.name} (confirmed)"
    if p.bullish:
        return 5, f"{p.name} (unconfirmed)"
    if p.confirmed:
        return -10, f"{p.name}: bearish reversal candle"
    return QUIET


def fvg_reclaim(ctx: ScoringContext) -> RuleResult:
    f = ctx.fvg
    if not (f.found and f.in_zone) or ctx.rsi_1h is None or ctx.rsi_1h >= 50:
        return QUIET
    if f.rejection_candle:
        return 25, "FVG reclaim confirmed by rejection wick"
    return 20, "Price in FVG reclaim zone (no rejection candle yet)"


def macd_momentum(ctx: ScoringContext) -> RuleResult:
    m = ctx.macd
    if m is None:
        return QUIET
    if m.bullish_cross:
        return 15, "MACD bullish crossover"
    if m.bearish_cross:
        return -10, "MACD bearish crossover"
    if m.rising and m.histogram < 0:
        return 5, "MACD momentum improving"
    return QUIET


def trend_dip(ctx: ScoringContext) -> RuleResult:
    r = ctx.rsi_1h
    if ctx.candle_count < 50 or r is None:
        return QUIET
    if ctx.in_uptrend and r < 45:
        return 10, f"Dip in uptrend (EMA20 > EMA50 by {ctx.trend_strength:.1f}%)"
    if not ctx.in_uptrend and r < 40:
        return -10, "Dip in downtrend: catching knife risk"
    return QUIET


def bollinger_position(ctx: ScoringContext) -> RuleResult:
    bb = ctx.bollinger
    if bb is None:
        return QUIET
    if bb.percent_b < 0.15 and ctx.rsi_1h is not None and ctx.rsi_1h < 40:
        return 15, "Price at lower Bollinger Band + RSI oversold"
    if bb.percent_b < 0.2:
        return 5, "Near lower Bollinger Band"
    return QUIET


def bollinger_squeeze(ctx: ScoringContext) -> RuleResult:
    if ctx.bollinger is not None and ctx.bollinger.squeeze:
        return 5, f"Bollinger squeeze (bandwidth {ctx.bollinger.bandwidth:.2f}%): breakout building"
    return QUIET


def bollinger_overextension(ctx: ScoringContext) -> RuleResult:
    bb = ctx.bollinger
    if bb is not None and bb.percent_b > 0.95 and ctx.rsi_1h is not None and ctx.rsi_1h > 65:
        return -10, "At upper Bollinger Band + RSI high: overextended"
    return QUIET


def rate_of_change(ctx: ScoringContext) -> RuleResult:
    m = ctx.roc
    if m.improving and ctx.rsi_1h is not None and ctx.rsi_1h < 55:
        return 10, f"Momentum improving (ROC: {m.roc:.1f}%)"
    if m.roc < -8:
        return -5, f"Momentum deteriorating (ROC: {m.roc:.1f}%)"
    return QUIET


def liquidity_sweep(ctx: ScoringContext) -> RuleResult:
    s = ctx.sweep
    if not s.detected:
        return QUIET
    return (15 if s.bullish else -15), f"Liquidity sweep: {s.label}"


def session_transition(ctx: ScoringContext) -> RuleResult:
    s = ctx.session
    if s.transition_risk:
        return -10, f"Session risk: {s.next_session} open in {s.minutes_to_next}min, stop hunt likely"
    return QUIET


def asian_range_note(ctx: ScoringContext) -> RuleResult:
    a = ctx.asian_range
    if a is not None and a.tight and ctx.session.name is SessionName.ASIAN:
        return 0, f"Asian range tight ({a.range_pct:.2f}%): big move expected at session open"
    return QUIET


SCORING_RULES: Tuple[ScoreRule, ...] = (
    rsi_zone,
    rsi_alignment,
    support_proximity,
    ema200_proximity,
    session_volume,
    volume_climax,
    candle_confirmation,
    fvg_reclaim,
    macd_momentum,
    trend_dip,
    bollinger_position,
    bollinger_squeeze,
    bollinger_overextension,
    rate_of_change,
    liquidity_sweep,
    session_transition,
    asian_range_note,
)


@dataclass(frozen=True)
class ScoreLine:
    rule: str
    delta: int
    reason: str


@dataclass(frozen=True)
class ScoreTally:
    score: int = 0
    lines: Tuple[ScoreLine, ...] = ()

    @property
    def reasons(self) -> Tuple[str, ...]:
        return tuple(line.reason for line in self.lines)

    def add(self, rule: str, delta: int, reason: Optional[str]) -> "ScoreTally":
        if reason is None:
            return self
        return ScoreTally(self.score + int(delta), self.lines + (ScoreLine(rule, int(delta), reason),))


def apply_rules(ctx: ScoringContext, rules: Sequence[ScoreRule] = SCORING_RULES) -> ScoreTally:
    tally = ScoreTally()
    for rule in rules:
        delta, reason = rule(ctx)
        tally = tally.add(rule.__name__, delta, reason)
    return tally
