from __future__ import annotations

import logging
from typing import Any

from fleetwatch.config import ServerConfig
from fleetwatch.engine.health_scorer import HealthScorer
from fleetwatch.models import Liveness, MetricSnapshot, ServerRecord, StatusColor

logger = logging.getLogger(__name__)


class FleetRegistry:
    """Authoritative table of server records, owned by the monitor.

    Every write re-scores the record before returning, with no await in
    between, so the scorer never sees a half-applied update.
    """

    def __init__(self, servers: list[ServerConfig], scorer: HealthScorer) -> None:
        self.scorer = scorer
        self._records: dict[str, ServerRecord] = {
            s.name: ServerRecord(name=s.name, host=s.host, port=s.port) for s in servers
        }

    def get(self, name: str) -> ServerRecord:
        return self._records[name]

    @property
    def records(self) -> list[ServerRecord]:
        return list(self._records.values())

    # ── writers ─────────────────────────────────────────

    def apply_metrics(self, name: str, payload: Any) -> ServerRecord:
        record = self._records[name]
        record.metrics = MetricSnapshot.from_payload(payload)
        record.agent_connected = True
        self.scorer.update(record)
        return record

    def apply_liveness(self, name: str, latency_ms: int, status_code: int) -> ServerRecord:
        record = self._records[name]
        record.liveness = Liveness(latency_ms=latency_ms, status_code=status_code)
        self.scorer.update(record)
        return record

    def mark_agent_connected(self, name: str) -> None:
        self._records[name].agent_connected = True

    def mark_agent_unreachable(self, name: str) -> None:
        record = self._records[name]
        record.agent_connected = False
        record.status = StatusColor.UNREACHABLE

    # ── readers ─────────────────────────────────────────

    def snapshot(self) -> list[dict]:
        return [r.to_wire() for r in self._records.values()]
