"""
Application configuration management.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Repository
    repo_path: str = "."
    git_binary: str = "git"

    # Server
    host: str = "0.0.0.0"
    port: int = 9090
    cors_origins: List[str] = ["*"]

    # WebSocket sessions
    heartbeat_interval_seconds: float = 20.0
    session_queue_size: int = 256

    # File watcher
    event_queue_size: int = 1000

    # Git commands
    command_timeout_seconds: Optional[float] = None  # None waits forever
    strict_mutations: bool = True  # Report failed git mutations as success=false

    # Application
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "GIT_MONITOR_"
        case_sensitive = False


# Global settings instance
settings = Settings()
