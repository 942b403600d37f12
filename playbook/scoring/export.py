"""Serializable hand-off payload for an external reviewer.

Field names and nesting are a stable contract; consumers parse them
structurally. Prices are left unrounded, percentages and ratios go to 2 dp,
RSI to 1 dp, %B to 3 dp, MACD histogram and ATR to 6 dp.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..features.sessions import SessionInfo, session_info
from .context import BenchmarkState
from .engine import SetupAnalysis
from .levels import TradeLevels
from .narratives import concentration_warnings, narrative_heat, shortlist

SINGLE_INSTRUCTION = (
    "Analyze this token setup. Ask me for 1H and 4H chart screenshots if the setup "
    "looks strong. Focus on whether this is a valid entry or if I should wait."
)
BATCH_INSTRUCTION = (
    "Analyze these token setups together. Compare which has the strongest setup and "
    "best R:R. Ask me for chart screenshots (1H + 4H) of the top picks before "
    "confirming entries."
)
SHARED_KEYS = ("_instruction", "scanTime", "session", "btc")


def _r(value: Optional[float], places: int) -> Optional[float]:
    return None if value is None else round(float(value), places)


def _session_block(s: SessionInfo) -> Dict[str, Any]:
    return {
        "current": s.name.value,
        "nextOpen": s.next_session,
        "minsToNext": s.minutes_to_next,
        "dangerWindow": s.danger_window,
        "transitionRisk": s.transition_risk,
        "volumeMultiplier": s.profile.volume_multiplier,
        "stopBuffer": s.profile.stop_buffer,
    }


def _benchmark_block(b: BenchmarkState) -> Dict[str, Any]:
    return {
        "symbol": b.symbol,
        "safe": b.safe,
        "change4h": _r(b.change_4h, 2),
        "price": b.price,
        "rsi1h": _r(b.rsi_1h, 1),
    }


def _levels_block(lv: TradeLevels) -> Dict[str, Any]:
    return {
        "method": lv.method,
        "entry": lv.entry,
        "stopLoss": lv.stop_loss,
        "tp1": lv.tp1,
        "tp2": lv.tp2,
        "riskPct": _r(lv.risk_pct, 2),
        "rewardPct": _r(lv.reward_pct, 2),
        "rrRatio": _r(lv.rr_ratio, 2),
    }


def build_export_payload(analysis: SetupAnalysis) -> Dict[str, Any]:
    """Restate one analysis as a plain nested dict."""
    a = analysis
    ctx = a.context
    inst = ctx.instrument
    m = ctx.macd
    bb = ctx.bollinger
    fvg = ctx.fvg
    asian = ctx.asian_range
    sweep = ctx.sweep
    grade = ctx.volume_grade

    trade = _levels_block(a.atr_levels)
    trade["sessionAdjustedStop"] = (
        a.session_adjusted_stop if a.session_adjusted_stop != a.atr_levels.stop_loss else None
    )

    return {
        "_instruction": SINGLE_INSTRUCTION,
        "token": {
            "symbol": inst.base_asset,
            "pair": inst.symbol,
            "name": inst.name,
            "narratives": list(inst.narratives),
        },
        "scanTime": ctx.as_of.isoformat(),
        "session": _session_block(ctx.session),
        "btc": _benchmark_block(ctx.benchmark),
        "price": {
            "current": ctx.price,
            "change24h": _r(ctx.change_24h, 2),
            "vsEMA200": _r(ctx.price_vs_ema200, 2),
        },
        "indicators": {
            "rsi1h": _r(ctx.rsi_1h, 1),
            "rsi4h": _r(ctx.rsi_4h, 1),
            "macd": None
            if m is None
            else {
                "histogram": _r(m.histogram, 6),
                "bullishCross": m.bullish_cross,
                "bearishCross": m.bearish_cross,
                "rising": m.rising,
            },
            "bollingerBands": None
            if bb is None
            else {
                "percentB": _r(bb.percent_b, 3),
                "squeeze": bb.squeeze,
                "bandwidth": _r(bb.bandwidth, 2),
            },
            "atr": _r(ctx.atr, 6),
            "roc": _r(ctx.roc.roc, 2),
            "momentumImproving": ctx.roc.improving,
        },
        "trend": {
            "direction": "UP" if ctx.in_uptrend else "DOWN",
            "ema20vsEma50": _r(ctx.trend_strength, 2),
            "bias4hFavorable": ctx.bias_4h_favorable,
        },
        "volume": {
            "ratio": _r(grade.raw_ratio, 2),
            "sessionAdjustedRatio": _r(grade.adjusted_ratio, 2),
            "tier": grade.tier.value,
            "spike": _r(ctx.volume_spike, 2),
            "climax": ctx.volume_climax,
            "context": ctx.volume_context,
        },
        "structure": {
            "pattern": ctx.pattern.name,
            "patternStrength": ctx.pattern.strength.value,
            "bullishCandle": ctx.pattern.bullish,
            "nearSupport": ctx.levels.near_support,
            "supports": [_r(s, 6) for s in ctx.levels.supports],
            "resistances": [_r(r, 6) for r in ctx.levels.resistances],
            "fvg": {
                "inZone": fvg.in_zone,
                "high": fvg.high,
                "low": fvg.low,
                "rejectionCandle": fvg.rejection_candle,
            }
            if fvg.found
            else None,
        },
        "asianRange": None
        if asian is None
        else {
            "high": asian.high,
            "low": asian.low,
            "rangePct": _r(asian.range_pct, 2),
            "tight": asian.tight,
        },
        "liquiditySweep": {
            "type": sweep.type.value,
            "label": sweep.label,
            "level": sweep.level,
            "bullish": sweep.bullish,
        }
        if sweep.detected
        else None,
        "setup": {
            "type": a.setup_type.value,
            "status": a.setup_status.value,
            "score": a.score,
            "entry": a.entry,
            "rejection": a.rejection,
            "reasons": list(a.reasons),
            "setupA": {c.key: c.passed for c in a.setup_a},
        },
        "tradeLevels": trade,
        "playbookLevels": dict(_levels_block(a.playbook_levels), blendedRR=_r(a.playbook_rr, 2)),
        "checklist": {
            "items": [{"key": i.key, "label": i.label, "passed": i.passed} for i in a.checklist.items],
            "passed": a.checklist.passed,
            "total": a.checklist.total,
            "verdict": a.checklist.verdict,
        },
    }


def build_batch_payload(analyses: Sequence[SetupAnalysis], now: datetime) -> Dict[str, Any]:
    """Several analyses under one shared time, session and benchmark block.

    Also carries the batch-level views: shortlist, narrative heat and
    concentration warnings.
    """
    tokens = []
    for a in analyses:
        p = build_export_payload(a)
        for key in SHARED_KEYS:
            p.pop(key, None)
        tokens.append(p)
    bench = analyses[0].context.benchmark if analyses else None
    session = analyses[0].context.session if analyses else session_info(now)
    return {
        "_instruction": BATCH_INSTRUCTION,
        "scanTime": now.isoformat(),
        "session": _session_block(session),
        "btc": _benchmark_block(bench) if bench is not None else None,
        "shortlist": [a.symbol for a in shortlist(analyses)],
        "narrativeHeat": [
            {
                "narrative": h.name,
                "avgChange": _r(h.avg_change, 2),
                "pumping": h.pumping,
                "total": h.total,
                "hot": h.hot,
            }
            for h in narrative_heat(analyses)
        ],
        "concentration": [
            {"narrative": w.narrative, "tokens": list(w.symbols), "count": w.count}
            for w in concentration_warnings(analyses)
        ],
        "tokens": tokens,
    }


def export_json(payload: Dict[str, Any], indent: Optional[int] = 2) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=indent, sort_keys=True)
