"""Batch-level views over a scan: narrative heat, concentration, shortlist.

All three are pure functions of a sequence of `SetupAnalysis` and keep the
input order wherever ordering is not defined by a sort key.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .engine import SetupAnalysis

HOT_PUMP_PCT = 5.0
HOT_MIN_PUMPING = 2
HOT_AVG_PCT = 4.0


@dataclass(frozen=True)
class NarrativeHeat:
    name: str
    avg_change: float
    pumping: int
    total: int
    hot: bool


@dataclass(frozen=True)
class ConcentrationWarning:
    narrative: str
    symbols: Tuple[str, ...]

    @property
    def count(self) -> int:
        return len(self.symbols)


def shortlist(analyses: Sequence[SetupAnalysis], min_score: int = 40) -> List[SetupAnalysis]:
    """Analyses scoring at least `min_score` while the benchmark is safe."""
    return [a for a in analyses if a.score >= min_score and a.context.benchmark.safe]


def narrative_heat(analyses: Sequence[SetupAnalysis]) -> List[NarrativeHeat]:
    """Average 24h change per narrative, hottest first.

    A narrative is hot when at least two of its instruments are up more than
    5% on the day, or its average change exceeds 4%.
    """
    changes: Dict[str, List[float]] = defaultdict(list)
    for a in analyses:
        for name in a.context.instrument.narratives:
            changes[name].append(float(a.context.change_24h or 0.0))
    out = []
    for name, values in changes.items():
        avg = sum(values) / len(values)
        pumping = sum(1 for v in values if v > HOT_PUMP_PCT)
        out.append(
            NarrativeHeat(
                name=name,
                avg_change=avg,
                pumping=pumping,
                total=len(values),
                hot=pumping >= HOT_MIN_PUMPING or avg > HOT_AVG_PCT,
            )
        )
    out.sort(key=lambda h: h.avg_change, reverse=True)
    return out


def concentration_warnings(
    analyses: Sequence[SetupAnalysis], min_score: int = 40, min_count: int = 3
) -> List[ConcentrationWarning]:
    """Narratives holding `min_count` or more shortlisted instruments."""
    groups: Dict[str, List[str]] = defaultdict(list)
    for a in shortlist(analyses, min_score):
        for name in a.context.instrument.narratives:
            groups[name].append(a.symbol)
    return [ConcentrationWarning(name, tuple(syms)) for name, syms in groups.items() if len(syms) >= min_count]
