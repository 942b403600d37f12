from __future__ import annotations

import json
from dataclasses import replace

import pytest

from playbook.features.indicators import BollingerState, MACDState
from playbook.features.liquidity import LiquiditySweep, SweepType
from playbook.infra.config import Settings
from playbook.scoring.context import BenchmarkState
from playbook.scoring.engine import analyze_context
from playbook.scoring.export import SHARED_KEYS, build_batch_payload, build_export_payload, export_json

PAYLOAD_KEYS = {
    "_instruction",
    "token",
    "scanTime",
    "session",
    "btc",
    "price",
    "indicators",
    "trend",
    "volume",
    "structure",
    "asianRange",
    "liquiditySweep",
    "setup",
    "tradeLevels",
    "playbookLevels",
    "checklist",
}


@pytest.fixture
def rich_ctx(make_ctx):
    return make_ctx(
        rsi_1h=38.123456,
        rsi_4h=44.98,
        atr=0.123456789,
        macd=MACDState(0.5, 0.3, 0.2000004, True, False, True),
        bollinger=BollingerState(104.0, 96.0, 100.0, 8.0, 0.123456, False),
        change_24h=-1.23456,
        sweep=LiquiditySweep(True, SweepType.BULLISH, "Stop Hunt Below Support", 99.5, True),
        benchmark=BenchmarkState("BTCUSDT", 0.98765, True, 65000.12345, 51.26),
    )


def test_payload_contract(rich_ctx):
    p = build_export_payload(analyze_context(rich_ctx, Settings()))
    assert set(p) == PAYLOAD_KEYS
    assert p["token"] == {"symbol": "ETH", "pair": "ETHUSDT", "name": "Ethereum", "narratives": ["L1"]}
    assert p["scanTime"] == "2024-05-01T09:00:00+00:00"
    assert p["session"]["current"] == "LONDON"
    assert p["btc"] == {"symbol": "BTCUSDT", "safe": True, "change4h": 0.99, "price": 65000.12345, "rsi1h": 51.3}


def test_payload_rounding(rich_ctx):
    p = build_export_payload(analyze_context(rich_ctx, Settings()))
    ind = p["indicators"]
    assert ind["rsi1h"] == 38.1
    assert ind["rsi4h"] == 45.0
    assert ind["atr"] == 0.123457
    assert ind["macd"]["histogram"] == 0.2
    assert ind["bollingerBands"]["percentB"] == 0.123
    assert p["price"] == {"current": 100.0, "change24h": -1.23, "vsEMA200": 11.1}
    assert p["liquiditySweep"]["type"] == "bullish_sweep"
    assert p["structure"]["fvg"] is None
    assert p["asianRange"] is None


def test_payload_setup_and_levels(rich_ctx):
    a = analyze_context(rich_ctx, Settings())
    p = build_export_payload(a)
    assert p["setup"]["score"] == a.score
    assert p["setup"]["reasons"] == list(a.reasons)
    assert set(p["setup"]["setupA"]) == {
        "rsi_zone",
        "near_support",
        "confirmed_candle",
        "session_volume",
        "signal_volume",
        "benchmark_safe",
    }
    assert p["tradeLevels"]["stopLoss"] == a.atr_levels.stop_loss
    assert p["playbookLevels"]["blendedRR"] == 2.12
    assert p["checklist"]["total"] == 7
    assert p["checklist"]["verdict"] == a.checklist.verdict


def test_rejected_payload(rich_ctx):
    ctx = replace(rich_ctx, benchmark=BenchmarkState("BTCUSDT", -5.0, False))
    p = build_export_payload(analyze_context(ctx, Settings()))
    assert p["setup"]["status"] == "REJECTED"
    assert p["setup"]["score"] == -50
    assert p["setup"]["rejection"] == p["setup"]["reasons"][0]


def test_batch_payload_hoists_shared_blocks(rich_ctx, make_ctx):
    analyses = [analyze_context(rich_ctx, Settings()), analyze_context(make_ctx(), Settings())]
    p = build_batch_payload(analyses, rich_ctx.as_of)
    assert len(p["tokens"]) == 2
    for token in p["tokens"]:
        assert not set(SHARED_KEYS) & set(token)
    assert p["btc"]["symbol"] == "BTCUSDT"
    empty = build_batch_payload([], rich_ctx.as_of)
    assert empty["tokens"] == [] and empty["btc"] is None


def test_export_json_is_stable(rich_ctx):
    a = analyze_context(rich_ctx, Settings())
    text = export_json(build_export_payload(a))
    assert text == export_json(build_export_payload(a))
    assert json.loads(text)["token"]["pair"] == "ETHUSDT"
