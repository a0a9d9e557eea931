from __future__ import annotations

from collections import deque
from enum import StrEnum

from pydantic import BaseModel, Field

from .metrics import MetricSnapshot


class StatusColor(StrEnum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    FAILED = "failed"
    UNKNOWN = "unknown"
    UNREACHABLE = "unreachable"


STATUS_HEX: dict[StatusColor, str] = {
    StatusColor.HEALTHY: "#00ff00",
    StatusColor.WARNING: "#00cc00",
    StatusColor.CRITICAL: "#ffcc00",
    StatusColor.FAILED: "#ff0000",
    StatusColor.UNKNOWN: "#cccccc",
    StatusColor.UNREACHABLE: "#ff0000",
}


class Liveness(BaseModel):
    """Result of the most recent probe of a server's public endpoint."""

    latency_ms: int = 0
    status_code: int = 200


class HealthScore(BaseModel):
    raw: float
    normalized: float
    status: StatusColor


class ServerRecord(BaseModel):
    """Monitor-side state for one worker.

    ``metrics`` is written only by the agent feed and ``liveness`` only by
    the prober; the scorer merges the two when it reads them.
    """

    name: str
    host: str
    port: int
    metrics: MetricSnapshot = Field(default_factory=MetricSnapshot)
    liveness: Liveness = Field(default_factory=Liveness)
    agent_connected: bool = False
    status: StatusColor = StatusColor.UNKNOWN
    score: float = 0.0
    normalized_score: float = 0.0
    score_trend: deque[float] = Field(default_factory=deque)

    @property
    def endpoint(self) -> str:
        return f"http://{self.host}:{self.port}"

    def to_wire(self) -> dict:
        """JSON form sent to dashboard clients."""
        return {
            "name": self.name,
            "url": f"http://{self.host}",
            "port": self.port,
            "endpoint": self.endpoint,
            "status": STATUS_HEX[self.status],
            "health": self.status.value,
            "score": self.score,
            "normalizedScore": round(self.normalized_score, 4),
            "scoreTrend": list(self.score_trend),
            "latency": self.liveness.latency_ms,
            "statusCode": self.liveness.status_code,
            "agentConnected": self.agent_connected,
            **self.metrics.to_wire(),
        }
