"""Wall-clock helpers.

The scoring engine never reads the system clock itself: callers pass `now`
explicitly. Only CLI entry points fall back to `utc_now()`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

import pandas as pd


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(ts: Union[datetime, pd.Timestamp]) -> datetime:
    """Return `ts` as an aware UTC datetime; naive values are taken as UTC."""
    if isinstance(ts, pd.Timestamp):
        ts = ts.to_pydatetime()
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_now(raw: Optional[str]) -> datetime:
    """Parse a CLI `--now` override (ISO-8601); empty means the real clock."""
    if not raw:
        return utc_now()
    token = raw.strip().replace("Z", "+00:00")
    try:
        return ensure_utc(datetime.fromisoformat(token))
    except ValueError as e:
        raise ValueError(f"Invalid --now timestamp: {raw!r}") from e
