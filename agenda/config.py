from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class TriggersConfig(BaseModel):
    fold_accents: bool = True
    min_token_overlap: float = Field(default=1.0, gt=0.0, le=1.0)


class StorageConfig(BaseModel):
    db_path: Path = Path("./data/agenda.db")
    agents_dir: Path = Path("./agents")


class AgendaSettings(BaseSettings):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    triggers: TriggersConfig = Field(default_factory=TriggersConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    model_config = SettingsConfigDict(
        env_prefix="AGENDA_",
        env_nested_delimiter="__",
        extra="ignore",
    )


def _coerce_env_value(value: str) -> object:
    parsed = yaml.safe_load(value)
    return value if parsed is None else parsed


def _set_nested(mapping: dict[str, object], path: list[str], value: object) -> None:
    current = mapping
    for key in path[:-1]:
        existing = current.get(key)
        if not isinstance(existing, dict):
            existing = {}
            current[key] = existing
        current = existing
    current[path[-1]] = value


def _apply_env_overrides(data: dict[str, object]) -> dict[str, object]:
    merged = dict(data)
    prefix = "AGENDA_"
    for key, raw_value in os.environ.items():
        if not key.startswith(prefix):
            continue
        path = key[len(prefix) :].lower().split("__")
        _set_nested(merged, path, _coerce_env_value(raw_value))
    return merged


def load_config(path: str | Path = "config/agenda.yaml") -> AgendaSettings:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")

    loaded = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        raise ValueError("config file must contain a top-level mapping")

    raw = loaded.get("agenda", loaded)
    if not isinstance(raw, dict):
        raise ValueError("agenda config section must be a mapping")

    return AgendaSettings.model_validate(_apply_env_overrides(raw))


__all__ = [
    "AgendaSettings",
    "LoggingConfig",
    "StorageConfig",
    "TriggersConfig",
    "load_config",
]
