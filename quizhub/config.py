"""Configuration loader for QuizHub."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import yaml
from dotenv import load_dotenv


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: str = "data/quizhub.db"


@dataclass
class QuizConfig:
    """Quiz session limits and defaults."""

    default_time_limit: int = 1800  # seconds
    min_time_limit: int = 60
    max_time_limit: int = 7200
    default_question_count: int = 10
    min_question_count: int = 1
    max_question_count: int = 50
    # Candidate pool size is question_count * candidate_pool_factor
    candidate_pool_factor: int = 2


@dataclass
class PaginationConfig:
    """Pagination defaults for list endpoints."""

    default_limit: int = 10
    max_limit: int = 100


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"


@dataclass
class Config:
    """Main configuration container."""

    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    quiz: QuizConfig = field(default_factory=QuizConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def is_development(self) -> bool:
        """Whether unexpected error messages may be shown to clients."""
        return self.server.environment == "development"


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from YAML file and environment variables."""
    # Load environment variables
    load_dotenv()

    # Read YAML config
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "r") as f:
        data = yaml.safe_load(f) or {}

    server_data = data.get("server", {})
    database_data = data.get("database", {})
    quiz_data = data.get("quiz", {})
    pagination_data = data.get("pagination", {})
    logging_data = data.get("logging", {})

    port_str = os.getenv("PORT", "")

    config = Config(
        server=ServerConfig(
            host=server_data.get("host", "0.0.0.0"),
            port=int(port_str) if port_str else server_data.get("port", 5000),
            environment=os.getenv(
                "QUIZHUB_ENV", server_data.get("environment", "development")
            ),
            cors_origins=server_data.get("cors_origins", ["*"]),
        ),
        database=DatabaseConfig(
            path=os.getenv("QUIZHUB_DB_PATH", database_data.get("path", "data/quizhub.db")),
        ),
        quiz=QuizConfig(
            default_time_limit=quiz_data.get("default_time_limit", 1800),
            min_time_limit=quiz_data.get("min_time_limit", 60),
            max_time_limit=quiz_data.get("max_time_limit", 7200),
            default_question_count=quiz_data.get("default_question_count", 10),
            min_question_count=quiz_data.get("min_question_count", 1),
            max_question_count=quiz_data.get("max_question_count", 50),
            candidate_pool_factor=quiz_data.get("candidate_pool_factor", 2),
        ),
        pagination=PaginationConfig(
            default_limit=pagination_data.get("default_limit", 10),
            max_limit=pagination_data.get("max_limit", 100),
        ),
        logging=LoggingConfig(
            level=os.getenv("LOG_LEVEL", logging_data.get("level", "INFO")),
        ),
    )

    return config
