from .metrics import MetricSnapshot
from .server import STATUS_HEX, HealthScore, Liveness, ServerRecord, StatusColor

__all__ = [
    "MetricSnapshot",
    "Liveness",
    "ServerRecord",
    "StatusColor",
    "STATUS_HEX",
    "HealthScore",
]
