"""Settings model and YAML loader for runbox.

Example ``runbox.yaml``::

    scratch_dir: /var/tmp/runbox
    cpu_limit: 0.5
    strict_languages: true
    profiles:
      java:
        image: eclipse-temurin:17-jdk
        timeout: 20
    api:
      port: 8080
      cors_origins: ["http://localhost:5173"]
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from runbox.runtime.errors import ConfigValidationError
from runbox.runtime.sandbox.models import LanguageProfile, SandboxConfig
from runbox.runtime.sandbox.profiles import DEFAULT_PROFILES

CONFIG_ENV_VAR = "RUNBOX_CONFIG"


class ProfileOverride(BaseModel):
    """Per-language overrides applied on top of the built-in profile."""

    image: str | None = None
    memory_limit: str | None = None
    timeout: int | None = Field(default=None, gt=0)


class ApiSettings(BaseModel):
    """HTTP server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    prefix: str = "/api"
    cors_origins: list[str] = []


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None


class RunboxSettings(BaseModel):
    """Top-level runbox configuration."""

    scratch_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    docker_binary: str = "docker"
    cpu_limit: float = Field(default=0.5, gt=0)
    pids_limit: int = Field(default=64, gt=0)
    host_grace: float = Field(default=5.0, ge=0)
    max_output_chars: int = Field(default=50_000, gt=0)
    strict_languages: bool = False
    log_level: str = "INFO"
    profiles: dict[str, ProfileOverride] = Field(default_factory=dict)
    api: ApiSettings = Field(default_factory=ApiSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    def sandbox_config(self) -> SandboxConfig:
        return SandboxConfig(
            docker_binary=self.docker_binary,
            cpu_limit=self.cpu_limit,
            pids_limit=self.pids_limit,
            host_grace=self.host_grace,
            max_output_bytes=self.max_output_chars * 4,
        )

    def language_profiles(self) -> dict[str, LanguageProfile]:
        """Built-in profiles with configured overrides applied.

        Overrides for languages without a built-in profile are ignored.
        """
        result = dict(DEFAULT_PROFILES)
        for language, override in self.profiles.items():
            base = result.get(language)
            if base is None:
                continue
            result[language] = base.model_copy(update=override.model_dump(exclude_none=True))
        return result


class SettingsLoader:
    """Load and validate a YAML settings file into :class:`RunboxSettings`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> RunboxSettings:
        """Read YAML, interpolate env vars, and validate.

        Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
        using :func:`os.path.expandvars` before YAML parsing.

        Raises:
            ConfigValidationError: On read errors, YAML parse errors or schema
                validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigValidationError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigValidationError("Settings YAML must be a mapping")

        try:
            return RunboxSettings.model_validate(data)
        except ValidationError as exc:
            raise ConfigValidationError(str(exc)) from exc


def load_settings(path: str | Path | None = None) -> RunboxSettings:
    """Load settings from *path*, ``$RUNBOX_CONFIG``, or defaults."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return RunboxSettings()
    return SettingsLoader(Path(path)).load()
