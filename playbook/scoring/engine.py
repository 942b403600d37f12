"""Scoring pass: one `SetupAnalysis` per instrument.

A pass is a pure function of the instrument's candles, the shared benchmark
state and the injected `now`; re-running it on identical inputs yields an
identical result.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Tuple

from ..features.candles import CandleInput
from ..features.sessions import VolumeTier
from ..infra.config import Settings, get_settings
from ..infra.log import get_logger
from ..infra.yaml_config import Instrument
from .checklist import Checklist, evaluate_checklist
from .context import BenchmarkState, ScoringContext, benchmark_state, build_context
from .levels import TradeLevels, atr_levels, playbook_levels, playbook_rr, session_adjusted_stop
from .rules import SCORING_RULES, ScoreLine, ScoreTally, apply_rules
from .setups import Criterion, SetupStatus, SetupType, classify_setup, setup_a_criteria

log = get_logger(__name__)


@dataclass(frozen=True)
class SetupAnalysis:
    symbol: str
    context: ScoringContext
    score: int
    reasons: Tuple[str, ...]
    score_lines: Tuple[ScoreLine, ...]
    rejection: Optional[str]
    setup_type: SetupType
    setup_status: SetupStatus
    setup_a: Tuple[Criterion, ...]
    atr_levels: TradeLevels
    playbook_levels: TradeLevels
    session_adjusted_stop: float
    playbook_rr: float
    checklist: Checklist

    @property
    def rejected(self) -> bool:
        return self.setup_status is SetupStatus.REJECTED

    @property
    def entry(self) -> bool:
        """A classified setup with the benchmark safe."""
        return self.setup_type is not SetupType.NONE and self.context.benchmark.safe


def hard_rejection(ctx: ScoringContext, settings: Settings) -> Optional[str]:
    """Reason the instrument is rejected outright, or None."""
    bench = ctx.benchmark
    if not bench.safe:
        return f"Benchmark risk-off: {bench.symbol} {bench.change_4h:.1f}% on 4H"
    if ctx.rsi_1h is not None and ctx.rsi_1h > settings.overbought_rsi:
        return f"RSI 1H overbought ({ctx.rsi_1h:.1f}): no chase"
    if ctx.volume_grade.tier is VolumeTier.DEAD and not ctx.volume_climax:
        return (
            f"Dead volume for the {ctx.session.name.value} session "
            f"({ctx.volume_grade.adjusted_ratio:.2f}x) and no climax"
        )
    return None


def _score(ctx: ScoringContext, settings: Settings) -> Tuple[ScoreTally, SetupType, SetupStatus]:
    tally = apply_rules(ctx, SCORING_RULES)
    decision = classify_setup(ctx, tally.score)
    for i, reason in enumerate(decision.reasons):
        tally = tally.add("setup", decision.bonus if i == 0 else 0, reason)
    if decision.type is not SetupType.NONE:
        rr = playbook_rr(settings)
        if rr < settings.min_rr:
            tally = tally.add(
                "risk_reward",
                settings.rr_penalty,
                f"Warning: playbook R:R {rr:.2f} below {settings.min_rr:.1f}",
            )
    return tally, decision.type, decision.status


def analyze_context(ctx: ScoringContext, settings: Settings | None = None) -> SetupAnalysis:
    settings = settings or get_settings()
    atr_lv = atr_levels(ctx.price, ctx.atr, ctx.levels.supports)

    rejection = hard_rejection(ctx, settings)
    if rejection is not None:
        log.debug("%s rejected: %s", ctx.instrument.symbol, rejection)
        tally = ScoreTally(settings.rejection_score, (ScoreLine("hard_rejection", settings.rejection_score, rejection),))
        setup_type, status = SetupType.NONE, SetupStatus.REJECTED
    else:
        tally, setup_type, status = _score(ctx, settings)

    return SetupAnalysis(
        symbol=ctx.instrument.symbol,
        context=ctx,
        score=tally.score,
        reasons=tally.reasons,
        score_lines=tally.lines,
        rejection=rejection,
        setup_type=setup_type,
        setup_status=status,
        setup_a=setup_a_criteria(ctx),
        atr_levels=atr_lv,
        playbook_levels=playbook_levels(ctx.price, settings),
        session_adjusted_stop=session_adjusted_stop(atr_lv.stop_loss, ctx.session, ctx.asian_range),
        playbook_rr=playbook_rr(settings),
        checklist=evaluate_checklist(ctx),
    )


def analyze_instrument(
    instrument: Instrument,
    candles_1h: CandleInput,
    candles_4h: CandleInput,
    benchmark: BenchmarkState,
    now: datetime,
    settings: Settings | None = None,
) -> Optional[SetupAnalysis]:
    """Score one instrument; None when its history is too short to score."""
    settings = settings or get_settings()
    ctx = build_context(instrument, candles_1h, candles_4h, benchmark, now, settings)
    if ctx is None:
        log.debug("%s skipped: insufficient history", instrument.symbol)
        return None
    return analyze_context(ctx, settings)


def analyze_batch(
    instruments: Iterable[Instrument],
    candles: Mapping[str, Mapping[str, CandleInput]],
    benchmark_symbol: Optional[str],
    now: datetime,
    settings: Settings | None = None,
) -> List[SetupAnalysis]:
    """Score every instrument against one shared benchmark state.

    `candles` maps symbol -> {"1h": ..., "4h": ...}. Results are ordered by
    score, highest first; the benchmark itself and instruments without enough
    data are left out. Without `benchmark_symbol` the instrument tagged
    `benchmark` is used, then the configured default.
    """
    settings = settings or get_settings()
    instruments = list(instruments)
    if benchmark_symbol is None:
        tagged = [i.symbol for i in instruments if i.is_benchmark]
        benchmark_symbol = tagged[0] if tagged else settings.benchmark_symbol
    bench_candles = candles.get(benchmark_symbol) or {}
    bench = benchmark_state(benchmark_symbol, bench_candles.get("4h"), bench_candles.get("1h"), settings)
    if not bench_candles:
        log.warning("No candles for benchmark %s; treating it as flat", benchmark_symbol)

    out: List[SetupAnalysis] = []
    for inst in instruments:
        if inst.symbol == benchmark_symbol:
            continue
        data = candles.get(inst.symbol)
        if not data:
            log.debug("%s skipped: no candles", inst.symbol)
            continue
        analysis = analyze_instrument(inst, data.get("1h"), data.get("4h"), bench, now, settings)
        if analysis is not None:
            out.append(analysis)
    out.sort(key=lambda a: a.score, reverse=True)
    log.info(
        "Scored %d/%d instruments (benchmark %s %+.2f%% 4H, safe=%s)",
        len(out),
        len(instruments),
        bench.symbol,
        bench.change_4h,
        bench.safe,
    )
    return out
