"""Configuration loading for rmcli.

The configuration is a YAML file with named connection profiles::

    current_profile: default
    profiles:
      default:
        url: https://redmine.example.com
        api_key: ${REDMINE_API_KEY}
    preferences:
      default_limit: 25
      log_level: WARNING
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from rmcli.errors import ConfigError

CONFIG_ENV_VAR = "RMCLI_CONFIG"
URL_ENV_VAR = "REDMINE_URL"
API_KEY_ENV_VAR = "REDMINE_API_KEY"
DEFAULT_CONFIG_PATH = Path("~/.config/rmcli/config.yml")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Profile(BaseModel):
    """Connection settings for one Redmine server."""

    url: str | None = None
    api_key: str | None = None
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.rstrip("/") or None


class Preferences(BaseModel):
    default_limit: int = Field(default=25, ge=1)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            msg = f"log_level must be one of {', '.join(LOG_LEVELS)}"
            raise ValueError(msg)
        return level


class Config(BaseModel):
    """Top-level configuration file schema."""

    current_profile: str = "default"
    profiles: dict[str, Profile] = Field(default_factory=dict)
    preferences: Preferences = Field(default_factory=Preferences)

    def active_profile(
        self,
        name: str | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> Profile:
        """Return the profile *name* (default: ``current_profile``).

        ``REDMINE_URL`` and ``REDMINE_API_KEY`` in *env* override the stored
        values, so a profile does not have to exist when both are set.

        Raises:
            ConfigError: If the profile is unknown or ends up without a URL.
        """
        env = os.environ if env is None else env
        profile_name = name or self.current_profile
        profile = self.profiles.get(profile_name)

        overrides: dict[str, Any] = {}
        if env.get(URL_ENV_VAR):
            overrides["url"] = env[URL_ENV_VAR]
        if env.get(API_KEY_ENV_VAR):
            overrides["api_key"] = env[API_KEY_ENV_VAR]

        if profile is None:
            if name is not None or "url" not in overrides:
                raise ConfigError(f"Profile '{profile_name}' is not configured")
            profile = Profile()

        if overrides:
            profile = Profile.model_validate({**profile.model_dump(), **overrides})
        if not profile.url:
            raise ConfigError(f"Profile '{profile_name}' has no Redmine URL")
        return profile


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    """``$RMCLI_CONFIG`` if set, else ``~/.config/rmcli/config.yml``."""
    env = os.environ if env is None else env
    override = env.get(CONFIG_ENV_VAR)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH.expanduser()


class ConfigLoader:
    """Load and validate the YAML configuration file into a :class:`Config`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_config_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Config:
        """Read YAML, interpolate env vars, and validate.

        A missing file yields an empty :class:`Config`. Environment variables
        in the form ``${VAR}`` or ``$VAR`` are expanded using
        :func:`os.path.expandvars` before YAML parsing.

        Raises:
            ConfigError: On read errors, YAML parse errors or schema
                validation failures.
        """
        if not self._path.exists():
            return Config()

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if data is None:
            return Config()
        if not isinstance(data, dict):
            raise ConfigError("Config YAML must be a mapping")

        try:
            return Config.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
