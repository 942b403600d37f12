"""Print the current trading session (UTC) and its profile.

Examples:
  python -m playbook.tools.session_info
  python -m playbook.tools.session_info --now 2024-05-01T07:45:00Z
"""

from __future__ import annotations

import argparse
from typing import Optional

from ..features.sessions import session_info
from ..infra.clock import parse_now
from ..infra.config import get_settings


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Show the active trading session in UTC")
    p.add_argument("--now", default="", help="ISO-8601 time to evaluate (default: now)")
    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    now = parse_now(args.now)
    info = session_info(now, get_settings().session_profiles)
    print(f"[session] at      : {now.strftime('%Y-%m-%d %H:%M %Z')}")
    print(f"[session] current : {info.name.value} ({info.label})")
    print(f"[session] next    : {info.next_session} in {info.minutes_to_next}min ({info.hours_to_next}h)")
    print(f"[session] danger  : {info.danger_window}  transition_risk={info.transition_risk}")
    print(
        f"[session] profile : volume x{info.profile.volume_multiplier:.2f}  "
        f"stop buffer {info.profile.stop_buffer * 100:.2f}%"
    )
    for rule in info.profile.rules:
        print(f"[session]   - {rule}")


if __name__ == "__main__":
    main()
