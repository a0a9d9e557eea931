from .agent_feed import AgentFeed
from .broadcaster import Broadcaster, ConnectionManager
from .fleet_registry import FleetRegistry
from .health_scorer import HealthScorer
from .liveness_prober import LivenessProber
from .periodic import PeriodicTask
from .publisher import AgentSensors, MetricsPublisher

__all__ = [
    "AgentFeed",
    "AgentSensors",
    "Broadcaster",
    "ConnectionManager",
    "FleetRegistry",
    "HealthScorer",
    "LivenessProber",
    "MetricsPublisher",
    "PeriodicTask",
]
