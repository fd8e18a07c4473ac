"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class BusConfig(BaseSettings):
    """Message bus configuration."""

    model_config = {"env_prefix": "PREEVAL_BUS_"}

    backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    request_timeout: float = 10.0  # seconds to wait for a reply
    reply_ttl: int = 30  # seconds an unread reply is kept
    max_concurrency: int = 16  # inbound requests handled at once by a worker
    key_prefix: str = "preeval:"


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = {"env_prefix": "PREEVAL_LOG_"}

    level: str = "INFO"
    format: Literal["standard", "json"] = "standard"


class PreEvaluationConfig(BaseSettings):
    """Tunables for the pre-evaluation business rules."""

    model_config = {"env_prefix": "PREEVAL_RULES_"}

    recent_contribution_months: int = 3
    recent_contribution_limit: int = 3


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "PREEVAL_"}

    environment: Literal["dev", "uat", "prod"] = "dev"

    bus: BusConfig = BusConfig()
    log: LoggingConfig = LoggingConfig()
    rules: PreEvaluationConfig = PreEvaluationConfig()
