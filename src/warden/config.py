"""
Settings - Process configuration from an optional YAML file and the environment.

Precedence (lowest to highest): defaults, YAML file, environment variables.

Example config.yaml:
    max_scans_per_second: 5
    capability_retries: 2
    log_level: debug
    api_keys:
      shodan: "..."
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .core.errors import ConfigurationError


# Environment variable -> dotted settings path
ENV_OVERRIDES = {
    "MAX_CONCURRENCY": "max_scans_per_second",
    "LOG_LEVEL": "log_level",
    "HOST": "host",
    "PORT": "port",
    "SHODAN_API_KEY": "api_keys.shodan",
    "CENSYS_API_KEY": "api_keys.censys",
    "SECURITY_TRAILS_API_KEY": "api_keys.security_trails",
    "WHOIS_API_KEY": "api_keys.whois",
}

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class ApiKeys(BaseModel):
    """Third-party API keys used by passive reconnaissance"""
    shodan: Optional[str] = None
    censys: Optional[str] = None
    security_trails: Optional[str] = None
    whois: Optional[str] = None


class Settings(BaseModel):
    """Runtime settings for the scanner, CLI and API server"""

    # Admission control
    max_scans_per_second: int = Field(default=10, ge=1)
    admission_retry_delay: float = Field(default=1.0, ge=0)
    max_admission_attempts: int = Field(default=30, ge=1)

    # Capability retries
    capability_retries: int = Field(default=3, ge=0)
    capability_retry_delay: float = Field(default=1.0, ge=0)

    # Logging
    log_level: str = "info"
    log_json: bool = False

    # API server
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)

    # Passive reconnaissance
    discovery_timeout: float = Field(default=30.0, gt=0)
    discovery_max_results: int = Field(default=1000, ge=1)
    api_keys: ApiKeys = Field(default_factory=ApiKeys)

    user_agent: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return value


def _apply_env(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    for env_name, path in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value in (None, ""):
            continue
        section = data
        *parents, leaf = path.split(".")
        for parent in parents:
            section = section.setdefault(parent, {})
        section[leaf] = value
    return data


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Load settings.

    Args:
        path: Optional YAML file
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigurationError: If the file cannot be read or a value is invalid
    """
    data: Dict[str, Any] = {}

    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e

        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigurationError(f"Settings file {path} must contain a mapping")
        data = loaded or {}

    data = _apply_env(data, os.environ if environ is None else environ)

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
