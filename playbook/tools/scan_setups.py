"""Score a universe of instruments from a candle snapshot.

The snapshot is JSON shaped as {symbol: {"1h": rows, "4h": rows}} where each
row is an exchange kline [openTime, open, high, low, close, volume, ...].

Examples:
  python -m playbook.tools.scan_setups --candles snapshot.json
  python -m playbook.tools.scan_setups --candles snapshot.json \
      --now 2024-05-01T09:00:00Z --top 5 --out-json payload.json
"""

from __future__ import annotations

import argparse
import json
import os
from typing import Dict, List, Optional

import pandas as pd

from ..features.candles import candles_from_rows
from ..infra.clock import parse_now
from ..infra.config import Settings, get_settings
from ..infra.log import get_logger
from ..infra.yaml_config import UNIVERSE_PATH, load_universe
from ..scoring.engine import SetupAnalysis, analyze_batch
from ..scoring.export import build_batch_payload, export_json
from ..scoring.narratives import concentration_warnings, narrative_heat

log = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Rank instruments by playbook setup score")
    p.add_argument("--candles", required=True, help="JSON candle snapshot")
    p.add_argument("--universe", default=UNIVERSE_PATH, help="Universe YAML")
    p.add_argument("--settings", default="", help="Override settings TOML")
    p.add_argument("--benchmark", default="", help="Override benchmark symbol")
    p.add_argument("--now", default="", help="ISO-8601 scan time (default: now, UTC)")
    p.add_argument("--top", type=int, default=0, help="Only show/export the top N")
    p.add_argument("--out-json", default="", help="Write the export payload here")
    return p.parse_args(argv)


def load_snapshot(path: str) -> Dict[str, Dict[str, pd.DataFrame]]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    out: Dict[str, Dict[str, pd.DataFrame]] = {}
    for symbol, frames in raw.items():
        out[str(symbol).upper()] = {tf: candles_from_rows(rows) for tf, rows in (frames or {}).items()}
    return out


def format_table(results: List[SetupAnalysis]) -> pd.DataFrame:
    rows = []
    for a in results:
        ctx = a.context
        rows.append(
            {
                "symbol": a.symbol,
                "score": a.score,
                "setup": a.setup_type.value,
                "status": a.setup_status.value,
                "rsi1h": None if ctx.rsi_1h is None else round(ctx.rsi_1h, 1),
                "vol": ctx.volume_grade.tier.value,
                "checklist": f"{a.checklist.passed}/{a.checklist.total}",
                "entry": a.entry,
            }
        )
    return pd.DataFrame(rows)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    settings = Settings.load(args.settings) if args.settings else get_settings()
    now = parse_now(args.now)
    universe = load_universe(args.universe)
    candles = load_snapshot(args.candles)

    results = analyze_batch(universe, candles, args.benchmark.upper() or None, now, settings)
    hot = [h.name for h in narrative_heat(results) if h.hot]
    crowded = concentration_warnings(results)
    if args.top > 0:
        results = results[: args.top]

    print(f"[scan] {now.isoformat()} session={results[0].context.session.name.value if results else '-'}")
    if hot:
        print(f"[scan] hot narratives: {', '.join(hot)}")
    for w in crowded:
        print(f"[scan] concentration: {w.count} shortlisted in {w.narrative} ({', '.join(w.symbols)})")
    if results:
        print(format_table(results).to_string(index=False))
    else:
        print("[scan] no instrument had enough history to score")

    if args.out_json:
        os.makedirs(os.path.dirname(args.out_json) or ".", exist_ok=True)
        with open(args.out_json, "w", encoding="utf-8") as f:
            f.write(export_json(build_batch_payload(results, now)))
        log.info("Wrote %d payloads to %s", len(results), args.out_json)


if __name__ == "__main__":
    main()
