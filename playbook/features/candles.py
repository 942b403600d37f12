"""Candle input boundary.

Market-data collaborators hand over klines as fixed-order rows
`[openTime, open, high, low, close, volume, ...]` with numeric or numeric-string
fields. Everything downstream works on the DataFrame produced here, with
columns: ts (UTC), open, high, low, close, volume.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence, Union

import numpy as np
import pandas as pd

CANDLE_COLUMNS = ("ts", "open", "high", "low", "close", "volume")
_PRICE_COLUMNS = ("open", "high", "low", "close", "volume")

CandleInput = Union[pd.DataFrame, Iterable[Sequence[Any]]]


class MalformedCandlesError(ValueError):
    """Raised when a candle sequence violates the input contract."""


def empty_candles() -> pd.DataFrame:
    out = pd.DataFrame({c: pd.Series(dtype=float) for c in _PRICE_COLUMNS})
    out.insert(0, "ts", pd.Series(dtype="datetime64[ns, UTC]"))
    return out


def _parse_open_time(raw: pd.Series) -> pd.Series:
    numeric = pd.to_numeric(raw, errors="coerce")
    if numeric.notna().all():
        return pd.to_datetime(numeric.astype("int64"), unit="ms", utc=True)
    try:
        return pd.to_datetime(raw, utc=True)
    except (ValueError, TypeError) as e:
        raise MalformedCandlesError(f"Unparseable openTime values: {e}") from e


def _validate(out: pd.DataFrame) -> pd.DataFrame:
    for col in _PRICE_COLUMNS:
        try:
            out[col] = pd.to_numeric(out[col], errors="raise").astype(float)
        except (ValueError, TypeError) as e:
            raise MalformedCandlesError(f"Non-numeric {col} field: {e}") from e
        if not np.isfinite(out[col].to_numpy()).all():
            raise MalformedCandlesError(f"Non-finite {col} field")
    if len(out) > 1 and not out["ts"].is_monotonic_increasing:
        raise MalformedCandlesError("Candle openTime must be strictly increasing")
    if out["ts"].duplicated().any():
        raise MalformedCandlesError("Candle openTime must be strictly increasing")
    return out.reset_index(drop=True)


def candles_from_rows(rows: Iterable[Sequence[Any]]) -> pd.DataFrame:
    """Convert kline rows into a validated candle DataFrame.

    Extra trailing fields (close time, quote volume, ...) are ignored.
    """
    rows = list(rows)
    if not rows:
        return empty_candles()
    short = [i for i, r in enumerate(rows) if len(r) < len(CANDLE_COLUMNS)]
    if short:
        raise MalformedCandlesError(
            f"Candle rows need {len(CANDLE_COLUMNS)} fields; row {short[0]} has "
            f"{len(rows[short[0]])}"
        )
    raw = pd.DataFrame([list(r[: len(CANDLE_COLUMNS)]) for r in rows], columns=CANDLE_COLUMNS)
    raw["ts"] = _parse_open_time(raw["ts"])
    return _validate(raw)


def ensure_candles(candles: CandleInput | None) -> pd.DataFrame:
    """Accept either raw kline rows or an already-built candle DataFrame."""
    if candles is None:
        return empty_candles()
    if isinstance(candles, pd.DataFrame):
        missing = set(CANDLE_COLUMNS) - set(candles.columns)
        if missing:
            raise MalformedCandlesError(f"Missing required columns: {sorted(missing)}")
        out = candles.loc[:, list(CANDLE_COLUMNS)].copy()
        if pd.api.types.is_datetime64_any_dtype(out["ts"]):
            out["ts"] = pd.to_datetime(out["ts"], utc=True)
        else:
            # Same openTime contract as kline rows: epoch ms or ISO strings
            out["ts"] = _parse_open_time(out["ts"])
        return _validate(out)
    return candles_from_rows(candles)
