from pathlib import Path

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from graph_engine.config.logging import setup_logging
from graph_engine.config.optimization import OptimizationPolicy, OptimizationPreset, get_preset_policy

__all__ = ["EngineSettings", "load_settings"]

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class EngineSettings(BaseSettings):
    """
    Настройки движка из окружения и `.env` с префиксом `GRAPH_ENGINE_`.

    Переменные окружения имеют приоритет над файлом.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRAPH_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str | None = Field(default="INFO", description="Logging level")
    log_file: str | None = Field(default=None, description="Log file path")
    log_backtrace: bool = Field(default=False, description="Enable backtrace")
    log_rotation: str | None = Field(default=None, description="Log file rotation, e.g. '10 MB'")
    log_retention: str | None = Field(default=None, description="Log file retention, e.g. '7 days'")
    log_compression: str | None = Field(default=None, description="Rotated log compression, e.g. 'gz'")
    optimization_preset: OptimizationPreset = Field(
        default=OptimizationPreset.DEFAULT,
        description="Optimization preset: default, performance, balanced or memory",
    )
    csr_threshold: int | None = Field(
        default=None,
        ge=0,
        description="Override for the node count at which CSR is recommended",
    )

    @field_validator("*", mode="before")
    @classmethod
    def _handle_empty_strings(cls, value):
        # Пустая переменная окружения означает значение по умолчанию
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str | None) -> str:
        if value is None:
            return "INFO"
        normalized = value.upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"Unsupported log level '{value}'")
        return normalized

    @model_validator(mode="after")
    def _check_memory_preset(self) -> "EngineSettings":
        """Пресет `memory` не использует CSR, поэтому порог с ним не сочетается."""
        if self.optimization_preset is OptimizationPreset.MEMORY and self.csr_threshold is not None:
            raise ValueError("csr_threshold cannot be combined with the 'memory' preset")
        return self

    def optimization_policy(self) -> OptimizationPolicy:
        return get_preset_policy(self.optimization_preset, csr_threshold=self.csr_threshold)

    def configure_logging(self) -> None:
        """Вызвать `setup_logging` с параметрами `log_*` из настроек."""
        setup_logging(
            self.log_level,
            log_file=self.log_file,
            backtrace=self.log_backtrace,
            rotation=self.log_rotation,
            retention=self.log_retention,
            compression=self.log_compression,
        )


def load_settings(path: Path | str | None = None) -> EngineSettings:
    """
    Загрузить настройки, читая `.env` из `path` (по умолчанию `./.env`).

    Отсутствующий файл не считается ошибкой.

    Raises:
        RuntimeError: настройки не прошли валидацию.

    """
    overrides = {"_env_file": path} if path is not None else {}
    try:
        return EngineSettings(**overrides)
    except ValidationError as exc:
        detail = "; ".join(err.get("msg", "invalid configuration value") for err in exc.errors())
        raise RuntimeError(detail) from exc
