"""
NYC Shootings - Configuration Loader

Pydantic-based configuration management with:
- Environment-based configuration (dev/prod)
- YAML file loading with inheritance
- Environment variable overrides
- Type validation via Pydantic

Usage:
    from nyc_shootings.shared.config import get_config

    config = get_config()  # Uses NS_ENVIRONMENT env var
    config = get_config("dev")  # Explicit environment

    # Access config values
    output_dir = config.storage.output_dir
    timeout = config.source.timeout_seconds
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

# =============================================================================
# Configuration Models
# =============================================================================


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = "nyc-shootings"
    version: str = "0.1.0"
    description: str = "Cleaning and descriptive analysis of NYPD shooting incidents"


class StorageConfig(BaseModel):
    """Local storage configuration."""

    output_dir: str | None = "output"
    figures_subdir: str = "figures"
    tables_subdir: str = "tables"
    log_dir: str | None = None


class SourceConfig(BaseModel):
    """Raw data source configuration."""

    url: str = "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"
    timeout_seconds: int = 120
    csv_path: str | None = None


class AnalysisConfig(BaseModel):
    """Aggregation, regression and plotting configuration."""

    rate_per: int = 1000
    top_n_dates: int = 10
    plot_dpi: int = 150
    figure_format: Literal["png", "svg", "pdf"] = "png"
    render_plots: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """
    Main configuration class for NYC Shootings.

    Values come from the merged YAML files under configs/environments/,
    overridden by NS_* environment variables (NS_ANALYSIS__PLOT_DPI=300).
    The environment passed to get_config() is never overridden.
    """

    model_config = SettingsConfigDict(
        env_prefix="NS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "prod"] = "dev"

    # Configuration sections
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Earlier sources win: selected environment, then env vars, then YAML
        init_kwargs = getattr(init_settings, "init_kwargs", {})
        selected = InitSettingsSource(
            settings_cls,
            {k: v for k, v in init_kwargs.items() if k == "environment"},
        )
        return selected, env_settings, init_settings, dotenv_settings, file_secret_settings

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"dev", "prod"}
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _get_config_dir() -> Path:
    """Locate configs/: next to the package in a checkout, else under the cwd."""
    for candidate in (Path(__file__).resolve().parents[2] / "configs", Path.cwd() / "configs"):
        if candidate.is_dir():
            return candidate

    raise FileNotFoundError("No configs/ directory next to the package or in the cwd")


def _load_yaml_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    return yaml.safe_load(path.read_text()) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base; nested dicts merge, other values replace."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def _load_config_for_environment(environment: str) -> dict[str, Any]:
    """base.yaml overlaid with <environment>.yaml, tagged with the environment name."""
    env_dir = _get_config_dir() / "environments"

    overlay = _load_yaml_file(env_dir / f"{environment}.yaml")
    overlay.pop("_inherit", None)

    values = _deep_merge(_load_yaml_file(env_dir / "base.yaml"), overlay)
    values["environment"] = environment
    return values


@lru_cache(maxsize=4)
def get_config(environment: str | None = None) -> Settings:
    """
    Build the settings for an environment ("dev" or "prod").

    Without an argument the environment is read from NS_ENVIRONMENT and
    defaults to "dev". Results are cached per environment.
    """
    environment = environment or os.getenv("NS_ENVIRONMENT", "dev")
    return Settings(**_load_config_for_environment(environment))


def reload_config(environment: str | None = None) -> Settings:
    """Drop cached settings and build them again (env vars are re-read)."""
    get_config.cache_clear()
    return get_config(environment)


def get_dataset_config(dataset: str) -> dict[str, Any]:
    """Contents of configs/datasets/<dataset>.yaml, or {} when there is none."""
    return _load_yaml_file(_get_config_dir() / "datasets" / f"{dataset}.yaml")


def is_production() -> bool:
    return get_config().environment == "prod"
