from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

UNIVERSE_PATH = os.path.join(os.path.dirname(__file__), "..", "universe.yaml")


def _expand_env(obj: Any) -> Any:
    if isinstance(obj, str):
        return os.path.expandvars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env(v) for v in obj]
    return obj


def load_yaml_config(path: str) -> Dict[str, Any]:
    try:
        import yaml  # type: ignore
    except Exception as e:  # noqa: BLE001
        raise RuntimeError("PyYAML not installed. Run: pip install pyyaml") from e
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return _expand_env(data)


@dataclass(frozen=True)
class Instrument:
    symbol: str
    name: str = ""
    role: str = "alt"
    narratives: Tuple[str, ...] = ()

    @property
    def is_benchmark(self) -> bool:
        return self.role == "benchmark"

    @property
    def base_asset(self) -> str:
        return self.symbol[:-4] if self.symbol.endswith("USDT") else self.symbol


def load_universe(path: Optional[str] = None) -> List[Instrument]:
    """Instruments listed under `instruments:` in the universe YAML."""
    data = load_yaml_config(path or UNIVERSE_PATH)
    out = []
    for raw in data.get("instruments") or []:
        if not isinstance(raw, dict) or not raw.get("symbol"):
            raise ValueError(f"Universe entry without a symbol: {raw!r}")
        out.append(
            Instrument(
                symbol=str(raw["symbol"]).upper(),
                name=str(raw.get("name", "")),
                role=str(raw.get("role", "alt")),
                narratives=tuple(str(n) for n in raw.get("narratives") or ()),
            )
        )
    return out
