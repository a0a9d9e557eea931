from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent


class ServerConfig(BaseModel):
    """One monitored worker and the agent running beside it."""

    name: str
    host: str = "localhost"
    port: int
    agent_host: str = "localhost"
    agent_port: int

    @property
    def endpoint(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def agent_url(self) -> str:
        return f"ws://{self.agent_host}:{self.agent_port}/ws/stats"


def _default_servers() -> list[ServerConfig]:
    return [
        ServerConfig(name=f"server-0{i}", port=4000 + i, agent_port=5000 + i)
        for i in range(1, 4)
    ]


class Settings(BaseSettings):
    # --- app ---
    app_name: str = "Fleet Health Monitor"
    debug: bool = False
    log_level: str = "INFO"

    # --- agent ---
    agent_host: str = "0.0.0.0"
    agent_port: int = 5001
    publish_interval: float = 1.0  # seconds between snapshots per subscriber
    cgroup_dir: str = "/sys/fs/cgroup"
    disk_path: str = "/"
    fallback_percent: int = 20  # reported when a counter can't be read

    # --- monitor ---
    monitor_host: str = "0.0.0.0"
    monitor_port: int = 3000
    probe_interval: float = 5.0
    probe_initial_delay: float = 1.0
    probe_timeout: float = 5.0
    unreachable_latency_ms: int = 9999
    broadcast_interval: float = 1.0
    broadcast_send_timeout: float = 0.5
    trend_capacity: int = Field(100, gt=0)
    agent_max_backoff: float = 30.0
    dashboard_dir: str = str(BASE_DIR.parent / "www")
    cors_origins: list[str] = ["*"]
    servers: list[ServerConfig] = _default_servers()

    # --- worker ---
    worker_host: str = "0.0.0.0"
    worker_port: int = 4001
    stress_duration: str = "30s"

    model_config = {"env_file": ".env", "env_prefix": "FLEETWATCH_"}


settings = Settings()
