from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter

# Named counters (custom)
_NAMED = Counter()

ARTIFACTS_TOTAL = PromCounter(
    "pkggen_artifacts_total",
    "Generated artifacts by kind and outcome",
    ["kind", "status"],
)

MIGRATION_DELTAS_TOTAL = PromCounter(
    "pkggen_migration_deltas_total",
    "Migration deltas emitted for field mutations",
    ["action", "reversible"],
)


def reset_metrics() -> None:
    """
    Test helper: clears the in-process counters to avoid cross-test leakage.
    Prometheus collectors are process-global and are left alone.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def inc_artifact(kind: str, status: str) -> None:
    ARTIFACTS_TOTAL.labels(kind=kind, status=status).inc()
    inc_named(f"artifacts_{status}")


def inc_delta(action: str, reversible: bool) -> None:
    MIGRATION_DELTAS_TOTAL.labels(action=action, reversible=str(bool(reversible)).lower()).inc()
    inc_named(f"deltas_{action}")


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
