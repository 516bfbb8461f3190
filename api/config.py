# api/config.py
"""
Configuration for the task planner service.
Values come from TODO_* environment variables with local-development defaults.
"""

import os
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Configuration for the API process."""

    # Network
    listen_address: str = "127.0.0.1"
    port: int = 8080

    # Storage
    db_file: str = "./tasks.db"

    # Static web client, served from "/" when the directory exists
    web_dir: str = "./web"

    # Runtime
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_file}"

    @classmethod
    def from_environment(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls(
            listen_address=os.environ.get("TODO_LISTEN_ADDRESS", "127.0.0.1"),
            port=int(os.environ.get("TODO_PORT", "8080")),
            db_file=os.environ.get("TODO_DBFILE_PATH", "./tasks.db"),
            web_dir=os.environ.get("TODO_WEB_DIR", "./web"),
            environment=os.environ.get("ENVIRONMENT", "development"),
            debug=os.environ.get("DEBUG", "false").lower() == "true",
            log_level=os.environ.get("TODO_LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> "AppConfig":
        """Create configuration from a dictionary, using defaults for missing keys."""
        defaults = cls()
        return cls(
            listen_address=config_dict.get("listen_address", defaults.listen_address),
            port=int(config_dict.get("port", defaults.port)),
            db_file=config_dict.get("db_file", defaults.db_file),
            web_dir=config_dict.get("web_dir", defaults.web_dir),
            environment=config_dict.get("environment", defaults.environment),
            debug=bool(config_dict.get("debug", defaults.debug)),
            log_level=config_dict.get("log_level", defaults.log_level),
        )
