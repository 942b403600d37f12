"""Trading-session model (UTC).

Sessions: Asian 00:00-08:00, London 08:00-16:00, US 13:00-22:00. The
London/US overlap (13:00-16:00) is its own label and 22:00-24:00 is
off-hours. All functions take the current time explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

import pandas as pd

from ..infra.clock import ensure_utc

ASIAN_OPEN = 0
LONDON_OPEN = 8 * 60
US_OPEN = 13 * 60
LONDON_CLOSE = 16 * 60
US_CLOSE = 22 * 60
DAY_MINUTES = 24 * 60

DANGER_WINDOW_MIN = 30
TRANSITION_WINDOW_MIN = 120


class SessionName(str, Enum):
    ASIAN = "ASIAN"
    LONDON = "LONDON"
    US = "US"
    LONDON_US = "LONDON/US"
    OFF_HOURS = "OFF-HOURS"


@dataclass(frozen=True)
class SessionProfile:
    volume_multiplier: float
    stop_buffer: float
    rules: Tuple[str, ...] = ()


DEFAULT_SESSION_PROFILES: Dict[SessionName, SessionProfile] = {
    SessionName.ASIAN: SessionProfile(
        0.6,
        0.005,
        ("Thin books: expect range trading", "Widen stops below the Asian low"),
    ),
    SessionName.LONDON: SessionProfile(
        1.0,
        0.003,
        ("First hour often sweeps the Asian range", "Trade the reclaim, not the breakout"),
    ),
    SessionName.US: SessionProfile(
        1.1,
        0.003,
        ("Follow-through session", "Respect the London high/low"),
    ),
    SessionName.LONDON_US: SessionProfile(
        1.3,
        0.002,
        ("Peak liquidity: strictest volume bar", "Momentum entries allowed with confirmation"),
    ),
    SessionName.OFF_HOURS: SessionProfile(
        0.5,
        0.006,
        ("Illiquid gap before Asia", "Avoid new entries"),
    ),
}

_COLORS = {
    SessionName.ASIAN: "#a78bfa",
    SessionName.LONDON: "#60a5fa",
    SessionName.US: "#22c55e",
    SessionName.LONDON_US: "#f97316",
    SessionName.OFF_HOURS: "#6b7280",
}

_LABELS = {
    SessionName.ASIAN: "Asian session",
    SessionName.LONDON: "London session",
    SessionName.US: "US session",
    SessionName.LONDON_US: "London/US overlap",
    SessionName.OFF_HOURS: "Off-hours",
}


@dataclass(frozen=True)
class SessionInfo:
    name: SessionName
    color: str
    label: str
    next_session: str
    minutes_to_next: int
    in_asian: bool
    in_london: bool
    in_us: bool
    danger_window: bool
    transition_risk: bool
    profile: SessionProfile

    @property
    def in_overlap(self) -> bool:
        return self.in_london and self.in_us

    @property
    def hours_to_next(self) -> int:
        return self.minutes_to_next // 60


def _minutes_of_day(now: datetime) -> int:
    now = ensure_utc(now)
    return now.hour * 60 + now.minute


def _next_open(minutes: int) -> Tuple[str, int]:
    if minutes < LONDON_OPEN:
        return "London", LONDON_OPEN - minutes
    if minutes < US_OPEN:
        return "US", US_OPEN - minutes
    return "Asian", DAY_MINUTES - minutes


def session_info(
    now: datetime,
    profiles: Optional[Mapping[SessionName, SessionProfile]] = None,
) -> SessionInfo:
    """Classify `now` (UTC) into a session and count down to the next open."""
    profiles = profiles or DEFAULT_SESSION_PROFILES
    minutes = _minutes_of_day(now)
    in_asian = minutes < LONDON_OPEN
    in_london = LONDON_OPEN <= minutes < LONDON_CLOSE
    in_us = US_OPEN <= minutes < US_CLOSE

    if in_london and in_us:
        name = SessionName.LONDON_US
    elif in_london:
        name = SessionName.LONDON
    elif in_us:
        name = SessionName.US
    elif in_asian:
        name = SessionName.ASIAN
    else:
        name = SessionName.OFF_HOURS

    next_session, minutes_to_next = _next_open(minutes)
    return SessionInfo(
        name=name,
        color=_COLORS[name],
        label=_LABELS[name],
        next_session=next_session,
        minutes_to_next=minutes_to_next,
        in_asian=in_asian,
        in_london=in_london,
        in_us=in_us,
        danger_window=minutes_to_next <= DANGER_WINDOW_MIN,
        transition_risk=in_asian and minutes_to_next <= TRANSITION_WINDOW_MIN,
        profile=profiles.get(name, DEFAULT_SESSION_PROFILES[name]),
    )


class VolumeTier(str, Enum):
    CLIMAX = "CLIMAX"
    STRONG = "STRONG"
    ADEQUATE = "ADEQUATE"
    WEAK = "WEAK"
    DEAD = "DEAD"


@dataclass(frozen=True)
class VolumeGrade:
    tier: VolumeTier
    raw_ratio: float
    adjusted_ratio: float
    delta: int
    note: str


# (floor, tier, score delta, note); first floor the adjusted ratio reaches wins.
_VOLUME_TIERS = (
    (2.0, VolumeTier.CLIMAX, 25, "Volume climax for this session"),
    (1.2, VolumeTier.STRONG, 20, "Strong volume for this session"),
    (0.8, VolumeTier.ADEQUATE, 10, "Adequate volume for this session"),
    (0.5, VolumeTier.WEAK, 0, "Weak volume for this session: low conviction"),
)


def grade_session_volume(raw_ratio: float, profile: SessionProfile) -> VolumeGrade:
    """Normalise a raw 5/20-bar volume ratio by the session's expected volume."""
    mult = profile.volume_multiplier if profile.volume_multiplier > 0 else 1.0
    adjusted = float(raw_ratio) / mult
    for floor, tier, delta, note in _VOLUME_TIERS:
        if adjusted >= floor:
            return VolumeGrade(tier, float(raw_ratio), adjusted, delta, note)
    return VolumeGrade(
        VolumeTier.DEAD, float(raw_ratio), adjusted, -15, "Dead volume for this session: no participation"
    )


@dataclass(frozen=True)
class AsianRange:
    high: float
    low: float
    range_pct: float
    tight: bool
    candle_count: int


def detect_asian_range(
    candles: pd.DataFrame,
    lookback: int = 50,
    min_candles: int = 2,
    tight_pct: float = 1.5,
) -> Optional[AsianRange]:
    """High/low of the most recent Asian window found in 1-hour candles.

    Candles opening before 08:00 UTC are grouped by UTC date; the most recent
    date holding at least `min_candles` of them is used.
    """
    if len(candles) < 4:
        return None
    tail = candles.tail(lookback)
    ts = pd.to_datetime(tail["ts"], utc=True)
    asian = tail.loc[ts.dt.hour < 8]
    if asian.empty:
        return None
    days = pd.to_datetime(asian["ts"], utc=True).dt.date
    for day in sorted(days.unique(), reverse=True):
        block = asian.loc[days == day]
        if len(block) < min_candles:
            continue
        high = float(block["high"].max())
        low = float(block["low"].min())
        range_pct = (high - low) / low * 100.0 if low > 0 else 0.0
        return AsianRange(high, low, range_pct, range_pct < tight_pct, int(len(block)))
    return None
