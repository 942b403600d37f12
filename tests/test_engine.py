from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from playbook.features.patterns import CandlePattern, Confirmation
from playbook.features.sessions import DEFAULT_SESSION_PROFILES, SessionName, grade_session_volume
from playbook.features.structure import SupportResistance
from playbook.infra.config import Settings
from playbook.infra.yaml_config import Instrument
from playbook.scoring.context import BenchmarkState, benchmark_state
from playbook.scoring.engine import analyze_batch, analyze_context, analyze_instrument, hard_rejection
from playbook.scoring.export import build_batch_payload, export_json
from playbook.scoring.setups import SetupStatus, SetupType

NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
SETTINGS = Settings()
UNIVERSE = [
    Instrument("BTCUSDT", "Bitcoin", "benchmark"),
    Instrument("ETHUSDT", "Ethereum", "alt", ("L1",)),
    Instrument("SOLUSDT", "Solana", "alt", ("L1",)),
    Instrument("LINKUSDT", "Chainlink", "alt", ("Oracle",)),
    Instrument("NEWUSDT", "Fresh listing", "alt"),
]


@pytest.fixture
def setup_a_ctx(make_ctx):
    return make_ctx(
        rsi_1h=35.0,
        levels=SupportResistance((99.0,), (), True, False),
        pattern=CandlePattern("Hammer", True, Confirmation.HIGH),
    )


def _snapshot(make_candles, bench_move: float = 1.001):
    data = {}
    for i, inst in enumerate(UNIVERSE):
        n = 20 if inst.symbol == "NEWUSDT" else 150
        data[inst.symbol] = {
            "1h": make_candles(n, seed=10 + i),
            "4h": make_candles(60, seed=50 + i, freq="4h"),
        }
    btc4 = data["BTCUSDT"]["4h"]
    btc4.loc[btc4.index[-1], "close"] = btc4["close"].iloc[-2] * bench_move
    return data


def test_benchmark_state(make_candles):
    c4 = make_candles(10, freq="4h")
    c4.loc[c4.index[-1], "close"] = c4["close"].iloc[-2] * 0.95
    state = benchmark_state("BTCUSDT", c4, make_candles(30), SETTINGS)
    assert state.change_4h == pytest.approx(-5.0)
    assert not state.safe
    assert state.rsi_1h is not None
    flat = benchmark_state("BTCUSDT", None, None, SETTINGS)
    assert flat.change_4h == 0.0 and flat.safe


def test_benchmark_dump_rejects_everything(setup_a_ctx):
    ctx = replace(setup_a_ctx, benchmark=BenchmarkState("BTCUSDT", -5.0, False))
    a = analyze_context(ctx, SETTINGS)
    assert a.score == -50
    assert a.rejected and a.setup_status is SetupStatus.REJECTED
    assert a.setup_type is SetupType.NONE
    assert len(a.reasons) == 1 and "BTCUSDT" in a.reasons[0]
    # Levels and checklist are still available for display
    assert a.atr_levels.stop_loss < ctx.price
    assert a.checklist.total == 7
    assert not a.entry


def test_overbought_and_dead_volume_rejections(make_ctx):
    assert "overbought" in hard_rejection(make_ctx(rsi_1h=75.0), SETTINGS)
    dead = grade_session_volume(0.2, DEFAULT_SESSION_PROFILES[SessionName.LONDON])
    assert "Dead volume" in hard_rejection(make_ctx(volume_grade=dead), SETTINGS)
    # A climax bar keeps a quiet session alive
    assert hard_rejection(make_ctx(volume_grade=dead, volume_climax=True), SETTINGS) is None
    assert hard_rejection(make_ctx(), SETTINGS) is None


def test_confirmed_setup_a_score(setup_a_ctx):
    a = analyze_context(setup_a_ctx, SETTINGS)
    assert a.setup_type is SetupType.A_CONFIRMED
    assert a.setup_status is SetupStatus.CONFIRMED
    assert a.score == 65 + 15
    assert a.entry
    assert a.checklist.verdict == "ALL CHECKS PASS"
    assert a.playbook_rr == pytest.approx(2.125)


def test_rr_gate_penalises_classified_setups_only(setup_a_ctx, make_ctx):
    strict = Settings(min_rr=3.0)
    gated = analyze_context(setup_a_ctx, strict)
    assert gated.score == analyze_context(setup_a_ctx, SETTINGS).score - 20
    assert gated.setup_type is SetupType.A_CONFIRMED
    assert "R:R" in gated.reasons[-1]
    plain = analyze_context(make_ctx(), strict)
    assert plain.setup_type is SetupType.NONE
    assert plain.score == 10


def test_insufficient_history_is_skipped(make_candles):
    bench = BenchmarkState("BTCUSDT", 0.0, True)
    inst = UNIVERSE[1]
    assert analyze_instrument(inst, make_candles(49), make_candles(10, freq="4h"), bench, NOW, SETTINGS) is None
    assert analyze_instrument(inst, make_candles(120), None, bench, NOW, SETTINGS) is None
    assert analyze_instrument(inst, make_candles(50), make_candles(10, freq="4h"), bench, NOW, SETTINGS) is not None


def test_batch_ranks_by_score(make_candles):
    results = analyze_batch(UNIVERSE, _snapshot(make_candles), None, NOW, SETTINGS)
    symbols = [a.symbol for a in results]
    assert sorted(symbols) == ["ETHUSDT", "LINKUSDT", "SOLUSDT"]
    scores = [a.score for a in results]
    assert scores == sorted(scores, reverse=True)
    assert all(a.context.benchmark.symbol == "BTCUSDT" for a in results)
    assert all(a.context.as_of == NOW for a in results)


def test_batch_with_benchmark_dump(make_candles):
    results = analyze_batch(UNIVERSE, _snapshot(make_candles, bench_move=0.95), "BTCUSDT", NOW, SETTINGS)
    assert results
    for a in results:
        assert a.rejected
        assert a.score == -50
        assert len(a.reasons) == 1


def test_batch_is_deterministic(make_candles):
    first = analyze_batch(UNIVERSE, _snapshot(make_candles), None, NOW, SETTINGS)
    second = analyze_batch(UNIVERSE, _snapshot(make_candles), None, NOW, SETTINGS)
    assert export_json(build_batch_payload(first, NOW)) == export_json(build_batch_payload(second, NOW))
