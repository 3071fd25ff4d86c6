"""Application configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Database configuration."""

    url: str = "sqlite+aiosqlite:///data/estimator.db"
    echo: bool = False


class EstimationSettings(BaseModel):
    """Constants used by the estimation engine.

    Passed explicitly into the estimate services; algorithm code never
    reads the environment itself.
    """

    # Hourly support rate used when no plan covers the organization
    default_rate_cents: int = 15000

    # Horizon for the ticket-creation schedule walk (days)
    max_lookahead_days: int = 45

    # Availability windows fed into the completion walk (days)
    availability_window_days: int = 14

    # Search range for the next free working day (days)
    next_slot_search_days: int = 30

    # Same-category resolved tickets needed before averaging history
    history_min_samples: int = 5

    # Used when neither history, category nor AI yields an estimate
    default_estimated_hours: float = 2.0

    default_queue_position: int = 1


class AISettings(BaseModel):
    """Generative-text fallback configuration.

    provider: "groq" for the hosted model, "none" for rules-only operation.
    """

    provider: str = "none"
    groq_api_key: str = ""
    groq_model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.2
    max_tokens: int = 512

    # Upper bound for a single fallback call before rules take over
    timeout_seconds: float = 10.0


class Settings(BaseSettings):
    """Application settings.

    Loaded from:
    1. Environment variables (ESTIMATOR_*)
    2. configs/{environment}.yaml
    3. configs/default.yaml
    """

    model_config = SettingsConfigDict(
        env_prefix="ESTIMATOR_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = "development"
    debug: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Subsystems
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    estimation: EstimationSettings = Field(default_factory=EstimationSettings)
    ai: AISettings = Field(default_factory=AISettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings object loaded from config files and environment.
    """
    import os
    from dynaconf import Dynaconf

    config_dir = Path("configs")
    env = os.getenv("ESTIMATOR_ENV", "development")

    settings_files = []
    if (config_dir / "default.yaml").exists():
        settings_files.append(str(config_dir / "default.yaml"))
    if (config_dir / f"{env}.yaml").exists():
        settings_files.append(str(config_dir / f"{env}.yaml"))

    dynaconf = Dynaconf(
        envvar_prefix="ESTIMATOR",
        settings_files=settings_files,
        load_dotenv=True,
    )

    config_dict: dict[str, Any] = {}
    for key in dynaconf.keys():
        if not key.startswith("_"):
            value = dynaconf[key]
            config_dict[key.lower()] = value

    config_dict["environment"] = env

    return Settings(**config_dict)
