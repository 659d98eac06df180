"""Component readiness flags behind the ``/ready`` and ``/healthz`` endpoints."""

from __future__ import annotations

import time
from typing import Dict

__all__ = ["REQUIRED", "components_snapshot", "overall_ready", "set_component"]

# The health server and the gateway session must both be up before the bot is ready.
REQUIRED = frozenset({"runtime", "discord"})

_components: Dict[str, dict] = {}


def set_component(name: str, ok: bool) -> None:
    _components[name] = {"ok": bool(ok), "ts": time.time()}


def components_snapshot() -> dict[str, dict]:
    """Every known component plus any required one that has not reported yet."""

    snapshot = {name: dict(entry) for name, entry in _components.items()}
    for name in REQUIRED - snapshot.keys():
        snapshot[name] = {"ok": False, "ts": 0.0}
    return snapshot


def overall_ready() -> bool:
    return all(_components.get(name, {}).get("ok", False) for name in REQUIRED)
