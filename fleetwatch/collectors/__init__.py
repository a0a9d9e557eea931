from .base import BaseSampler, CollectionError
from .cpu_collector import CpuCollector, CpuSampleState
from .disk_collector import DiskCollector
from .memory_collector import MemoryCollector
from .request_counter import RequestCounter

__all__ = [
    "BaseSampler",
    "CollectionError",
    "CpuCollector",
    "CpuSampleState",
    "DiskCollector",
    "MemoryCollector",
    "RequestCounter",
]
