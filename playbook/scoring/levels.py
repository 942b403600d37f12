"""Trade levels: ATR/structure-based and fixed playbook percentages.

Both strategies return the same `TradeLevels` shape so they can be shown side
by side.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..features.sessions import AsianRange, SessionInfo
from ..infra.config import Settings


@dataclass(frozen=True)
class TradeLevels:
    method: str
    entry: float
    stop_loss: float
    tp1: float
    tp2: float
    risk_pct: float
    reward_pct: float
    rr_ratio: float


def _levels(method: str, entry: float, stop: float, tp1: float, tp2: float) -> TradeLevels:
    risk = (entry - stop) / entry * 100.0 if entry > 0 else 0.0
    reward = (tp1 - entry) / entry * 100.0 if entry > 0 else 0.0
    rr = reward / risk if risk > 0 else 0.0
    return TradeLevels(method, entry, stop, tp1, tp2, risk, reward, rr)


def atr_levels(price: float, atr: Optional[float], supports: Sequence[float]) -> TradeLevels:
    """Stop at the farther of 1.5 ATR below price and 0.5% under the nearest
    support; targets at +2 ATR and +3.5 ATR.

    Without an ATR the stop falls back to -1.5% and targets to +3.5%/+5%.
    """
    nearest_support = supports[0] if len(supports) else price * 0.98
    atr_stop = price - atr * 1.5 if atr else price * 0.985
    support_stop = nearest_support * 0.995
    stop = min(atr_stop, support_stop)
    tp1 = price + atr * 2 if atr else price * 1.035
    tp2 = price + atr * 3.5 if atr else price * 1.05
    return _levels("atr", price, stop, tp1, tp2)


def playbook_levels(price: float, settings: Settings) -> TradeLevels:
    """Fixed -2% stop with +3.5%/+5% targets."""
    return _levels(
        "playbook",
        price,
        price * (1 - settings.stop_pct / 100.0),
        price * (1 + settings.tp1_pct / 100.0),
        price * (1 + settings.tp2_pct / 100.0),
    )


def playbook_rr(settings: Settings) -> float:
    """Reward:risk of the playbook with half the position out at each target."""
    blended_target = 0.5 * settings.tp1_pct + 0.5 * settings.tp2_pct
    return blended_target / settings.stop_pct if settings.stop_pct > 0 else 0.0


def session_adjusted_stop(
    stop: float,
    session: SessionInfo,
    asian_range: Optional[AsianRange],
) -> float:
    """Widen the stop by the session buffer; in or ahead of the Asian session
    also keep it under the Asian low to survive a pre-London sweep.
    """
    adjusted = stop * (1 - session.profile.stop_buffer)
    if asian_range is not None and (session.in_asian or session.transition_risk):
        adjusted = min(adjusted, asian_range.low * 0.995)
    return adjusted
