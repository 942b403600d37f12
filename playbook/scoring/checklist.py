from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .context import ScoringContext

VERDICT_PASS = "ALL CHECKS PASS"
VERDICT_FORMING = "FORMING"
VERDICT_WAIT = "WAIT"
FORMING_MIN = 5


@dataclass(frozen=True)
class ChecklistItem:
    key: str
    label: str
    passed: bool


@dataclass(frozen=True)
class Checklist:
    items: Tuple[ChecklistItem, ...]

    @property
    def passed(self) -> int:
        return sum(1 for i in self.items if i.passed)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def verdict(self) -> str:
        if self.passed == self.total:
            return VERDICT_PASS
        if self.passed >= FORMING_MIN:
            return VERDICT_FORMING
        return VERDICT_WAIT


def evaluate_checklist(ctx: ScoringContext) -> Checklist:
    """Seven-item pre-trade checklist; independent of the score."""
    return Checklist(
        (
            ChecklistItem("benchmark", f"{ctx.benchmark.symbol} not dumping", ctx.benchmark.safe),
            ChecklistItem("bias", "4H bias favourable (close above 4H EMA50)", ctx.bias_4h_favorable),
            ChecklistItem("narrative", "Active narrative tag", bool(ctx.instrument.narratives)),
            ChecklistItem("volume", "Volume above session-adjusted average", ctx.volume_grade.adjusted_ratio >= 1.0),
            ChecklistItem("session", "No session open within 30min", not ctx.session.danger_window),
            ChecklistItem("rsi", "RSI 1H in primary zone (30-40)", ctx.rsi_in_primary_zone),
            ChecklistItem("candle", "Confirmed bullish candle", ctx.pattern.confirmed_bullish),
        )
    )
