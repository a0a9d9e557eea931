from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0


class MetricSnapshot(BaseModel):
    """Resource readings published by an agent once per second.

    Superseded by the next snapshot; never persisted.
    """

    model_config = ConfigDict(populate_by_name=True)

    memory_load_pct: int = Field(default=0, alias="memoryLoad")
    cpu_load_pct: int = Field(default=0, alias="cpuLoad")
    disk_usage_pct: int = Field(default=0, alias="diskUsage")
    requests_per_sec: int = Field(default=0, alias="requestsPerSecond")

    @field_validator("memory_load_pct", "cpu_load_pct", "disk_usage_pct", mode="before")
    @classmethod
    def _percent(cls, value: Any) -> int:
        return min(100, max(0, _to_int(value)))

    @field_validator("requests_per_sec", mode="before")
    @classmethod
    def _rate(cls, value: Any) -> int:
        return max(0, _to_int(value))

    @classmethod
    def from_payload(cls, data: Any) -> MetricSnapshot:
        """Build a snapshot from an untrusted payload.

        Missing or malformed fields become zero instead of rejecting the
        whole update.
        """
        if not isinstance(data, dict):
            return cls()
        fields = ("memoryLoad", "cpuLoad", "diskUsage", "requestsPerSecond")
        return cls.model_validate({k: data[k] for k in fields if data.get(k) is not None})

    def to_wire(self) -> dict[str, int]:
        return self.model_dump(by_alias=True)
