"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, path: str, database_path: str) -> None:
        self._log.info("config.loaded", path=path, database_path=database_path)

    def config_defaults_used(self) -> None:
        self._log.info("config.defaults_used")

    def config_evaluator_temperature_warning(self, temperature: float) -> None:
        self._log.warning(
            "config.evaluator_temperature_warning",
            temperature=temperature,
            message="Evaluator temperature > 0 makes verdicts non-deterministic.",
        )
