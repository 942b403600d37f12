from __future__ import annotations

import json

from playbook.tools.scan_setups import main as scan_main
from playbook.tools.session_info import main as session_main


def _rows(df):
    return [
        [int(ts.value // 1_000_000), o, h, l, c, v]
        for ts, o, h, l, c, v in df[["ts", "open", "high", "low", "close", "volume"]].itertuples(index=False)
    ]


def test_session_info_cli(capsys):
    session_main(["--now", "2024-05-01T07:45:00Z"])
    out = capsys.readouterr().out
    assert "ASIAN" in out
    assert "London in 15min" in out
    assert "danger  : True" in out


def test_scan_setups_cli(tmp_path, capsys, make_candles):
    snapshot = {
        sym: {"1h": _rows(make_candles(120, seed=i)), "4h": _rows(make_candles(40, seed=i + 20, freq="4h"))}
        for i, sym in enumerate(["BTCUSDT", "ETHUSDT", "SOLUSDT"])
    }
    candles = tmp_path / "snapshot.json"
    candles.write_text(json.dumps(snapshot), encoding="utf-8")
    universe = tmp_path / "universe.yaml"
    universe.write_text(
        "instruments:\n"
        "  - {symbol: BTCUSDT, role: benchmark}\n"
        "  - {symbol: ETHUSDT, narratives: [L1]}\n"
        "  - {symbol: SOLUSDT}\n",
        encoding="utf-8",
    )
    out_json = tmp_path / "out" / "payload.json"

    scan_main(
        [
            "--candles",
            str(candles),
            "--universe",
            str(universe),
            "--now",
            "2024-05-01T09:00:00Z",
            "--top",
            "1",
            "--out-json",
            str(out_json),
        ]
    )
    printed = capsys.readouterr().out
    assert "session=LONDON" in printed
    payload = json.loads(out_json.read_text(encoding="utf-8"))
    assert payload["scanTime"] == "2024-05-01T09:00:00+00:00"
    assert len(payload["tokens"]) == 1
    assert payload["tokens"][0]["token"]["pair"] in {"ETHUSDT", "SOLUSDT"}
    assert {"shortlist", "narrativeHeat", "concentration"} <= set(payload)
