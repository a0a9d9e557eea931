from __future__ import annotations

import logging
from collections import deque

from fleetwatch.models import HealthScore, Liveness, MetricSnapshot, ServerRecord, StatusColor

logger = logging.getLogger(__name__)

MAX_RAW_SCORE = 9.0


def compute_raw_score(metrics: MetricSnapshot, liveness: Liveness) -> float:
    """Severity points for one server; every metric is weighted equally."""
    score = 0.0

    # +1 for each elevated reading
    if metrics.cpu_load_pct > 80:
        score += 1
    if metrics.memory_load_pct > 80:
        score += 1
    if liveness.latency_ms > 200:
        score += 1
    if liveness.status_code != 200:
        score += 1
    if metrics.disk_usage_pct > 80:
        score += 1
    if metrics.requests_per_sec > 100:
        score += 1

    # +0.5 more for each severe one
    if metrics.cpu_load_pct > 95:
        score += 0.5
    if metrics.memory_load_pct > 95:
        score += 0.5
    if liveness.latency_ms > 1000:
        score += 0.5
    if liveness.status_code >= 500:
        score += 0.5
    if metrics.disk_usage_pct > 95:
        score += 0.5
    if metrics.requests_per_sec > 500:
        score += 0.5

    return score


def normalize(raw_score: float) -> float:
    return min(1.0, max(0.0, raw_score / MAX_RAW_SCORE))


def color_for(normalized: float) -> StatusColor:
    if normalized <= 0.25:
        return StatusColor.HEALTHY
    if normalized <= 0.5:
        return StatusColor.WARNING
    if normalized <= 0.75:
        return StatusColor.CRITICAL
    return StatusColor.FAILED


def score(metrics: MetricSnapshot, liveness: Liveness) -> HealthScore:
    raw = compute_raw_score(metrics, liveness)
    normalized = normalize(raw)
    return HealthScore(raw=raw, normalized=normalized, status=color_for(normalized))


class HealthScorer:
    """Scores a record in place and keeps its bounded trend of scores."""

    def __init__(self, trend_capacity: int = 100) -> None:
        if trend_capacity < 1:
            raise ValueError(f"trend_capacity must be positive, got {trend_capacity}")
        self.trend_capacity = trend_capacity

    def update(self, record: ServerRecord) -> HealthScore:
        result = score(record.metrics, record.liveness)
        record.score = result.raw
        record.normalized_score = result.normalized
        record.status = result.status
        # Inverted so the trend reads higher-is-better.
        self._append(record.score_trend, 1 - result.normalized)
        logger.debug(
            "%s - score %.2f (%.2f) - %s",
            record.name, result.raw, result.normalized, result.status,
        )
        return result

    def _append(self, trend: deque[float], value: float) -> None:
        while len(trend) >= self.trend_capacity:
            trend.popleft()
        trend.append(value)
