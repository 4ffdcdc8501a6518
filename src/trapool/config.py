"""Configuration helpers: YAML run configs and environment settings."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

DEFAULTS: dict[str, Any] = {
    "db_path": ".trapool/history.db",
    "integration": {"function": "poly", "a": 2.0, "b": 20.0, "n": 10_000, "tasks": None},
    "pool": {"workers": None, "queue_size": None, "tasks_per_worker": 4},
    "convergence": {
        "start_n": 1,
        "increment": 50,
        "factor": None,
        "tolerance": 1e-9,
        "max_iterations": 2000,
        "max_n": None,
    },
    "benchmark": {"start_n": 10, "max_n": 1_000_000},
}


def _merge_dict(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge_dict(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str | None, overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    config = copy.deepcopy(DEFAULTS)
    if path:
        with Path(path).open("r", encoding="utf-8") as fh:
            file_cfg = yaml.safe_load(fh) or {}
        if not isinstance(file_cfg, dict):
            raise ConfigurationError(f"{path} must contain a mapping at the top level")
        config = _merge_dict(config, file_cfg)
    if overrides:
        config = _merge_dict(config, overrides)
    return config


class IntegrationConfig(BaseModel):
    """Validated ``integration`` section of a run config."""

    function: str = "poly"
    a: float = 2.0
    b: float = 20.0
    n: int = Field(default=10_000, ge=1)
    tasks: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_bounds(self) -> "IntegrationConfig":
        if self.a >= self.b:
            raise ValueError(f"a must be below b (a={self.a}, b={self.b})")
        return self

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "IntegrationConfig":
        try:
            return cls(**(config.get("integration") or {}))
        except ValidationError as exc:
            raise ConfigurationError(f"invalid integration config: {exc}") from exc


class TrapoolSettings(BaseSettings):
    """Environment driven defaults for pool sizing and storage."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, populate_by_name=True)

    workers: int = Field(default_factory=lambda: os.cpu_count() or 1, ge=1, alias="TRAPOOL_WORKERS")
    tasks_per_worker: int = Field(default=4, ge=1, alias="TRAPOOL_TASKS_PER_WORKER")
    queue_factor: int = Field(default=10, ge=1, alias="TRAPOOL_QUEUE_FACTOR")
    db_path: str = Field(default=".trapool/history.db", alias="TRAPOOL_DB_PATH")
    log_level: str = Field(default="INFO", alias="TRAPOOL_LOG_LEVEL")

    @property
    def queue_size(self) -> int:
        return self.workers * self.queue_factor


def load_settings() -> TrapoolSettings:
    """Return settings initialised from environment."""

    try:
        return TrapoolSettings()
    except ValidationError as exc:
        raise ConfigurationError(f"invalid environment settings: {exc}") from exc
