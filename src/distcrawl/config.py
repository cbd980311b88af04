"""Configuration using pydantic-settings."""

from pydantic_settings import BaseSettings

DEFAULT_LISTEN_ADDR = "0.0.0.0:50051"
MAX_BODY_BYTES = 1024 * 1024


class WorkerSettings(BaseSettings):
    """Crawl worker configuration."""

    listen_addr: str = DEFAULT_LISTEN_ADDR
    fetch_timeout: float = 10.0
    max_body_bytes: int = MAX_BODY_BYTES
    user_agent: str = "distcrawl-worker/0.1"
    max_connections: int = 100
    max_keepalive_connections: int = 20
    shutdown_grace: float = 5.0
    log_level: str = "INFO"

    model_config = {"env_prefix": "DISTCRAWL_WORKER_"}


class MasterSettings(BaseSettings):
    """Crawl master configuration."""

    workers: list[str] = []
    rpc_deadline: float = 15.0
    concurrency: int = 8
    log_level: str = "INFO"

    model_config = {"env_prefix": "DISTCRAWL_MASTER_"}


worker_settings = WorkerSettings()
master_settings = MasterSettings()
