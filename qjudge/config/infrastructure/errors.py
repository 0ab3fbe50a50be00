"""Config loading errors. Each one names the file it came from."""

from pathlib import Path

from qjudge.core.errors import QJudgeError


class ConfigError(QJudgeError):
    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        super().__init__(f"Failed to load config {path}: {detail}")


class ConfigLoadError(ConfigError):
    """The file could not be opened or is not YAML."""

    def __init__(self, path: Path, reason: str = "file not found") -> None:
        super().__init__(path=path, detail=reason)


class MissingEnvVarsError(ConfigError):
    """One or more ${VAR} references have no value and no default."""

    def __init__(self, path: Path, missing_vars: list[str]) -> None:
        self.missing_vars = missing_vars
        super().__init__(
            path=path,
            detail=f"missing environment variables: {', '.join(sorted(missing_vars))}",
        )


class ConfigValidationError(ConfigError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(path=path, detail=f"invalid settings: {reason}")
