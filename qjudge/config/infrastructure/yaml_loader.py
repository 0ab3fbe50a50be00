"""YAML config loader — parses, interpolates env vars, validates, and emits observer events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from qjudge.config.domain.config import AppConfig
from qjudge.config.domain.observer import ConfigObserver
from qjudge.config.infrastructure.env_interpolation import EnvInterpolator
from qjudge.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns an AppConfig from a YAML file."""

    def __init__(
        self, observer: ConfigObserver, interpolator: EnvInterpolator | None = None
    ) -> None:
        self._observer = observer
        self._interpolator = interpolator or EnvInterpolator()

    def load(self, path: Path | None) -> AppConfig:
        """
        Load the config at path, or return defaults when path is None.

        Raises:
            ConfigLoadError: if the file is missing or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the data violates the AppConfig schema.
        """
        if path is None:
            self._observer.config_defaults_used()
            return AppConfig()

        raw = _parse_yaml(path=path)
        missing = self._interpolator.missing(raw)
        if missing:
            raise MissingEnvVarsError(path=path, missing_vars=missing)
        cfg = _build_config(path=path, resolved=self._interpolator.interpolate(raw))

        if cfg.evaluator.temperature > 0.0:
            self._observer.config_evaluator_temperature_warning(
                temperature=cfg.evaluator.temperature
            )
        self._observer.config_loaded(
            path=str(path), database_path=str(cfg.database.path)
        )
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason=f"invalid YAML ({exc})") from exc


def _build_config(path: Path, resolved: Any) -> AppConfig:
    if not isinstance(resolved, dict):
        raise ConfigValidationError(path=path, reason="top level must be a mapping")
    try:
        return AppConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(path=path, reason=str(exc)) from exc
