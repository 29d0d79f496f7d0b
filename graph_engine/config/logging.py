"""
Логирование движка через loguru.

Пока приложение не вызвало `setup_logging`, сообщения пакета `graph_engine`
отключены. Параметры, не переданные явно, читаются из переменных
окружения `GRAPH_ENGINE_LOG_*`.
"""

import os
import sys
from typing import Any

from loguru import logger as _logger

__all__ = ["logger", "setup_logging"]

logger = _logger

_DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

_ENV_PREFIX = "GRAPH_ENGINE_LOG_"
_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(f"{_ENV_PREFIX}{name}", default)


def _env_flag(name: str) -> bool:
    value = _env(name)
    return value is not None and value.strip().lower() in _TRUTHY


def setup_logging(
    level: str | None = None,
    *,
    log_file: str | None = None,
    backtrace: bool | None = None,
    format_string: str | None = None,
    rotation: str | None = None,
    retention: str | None = None,
    compression: str | None = None,
) -> None:
    """
    Направить логи движка в stderr и, если задан `log_file`, в файл.

    Прежние синки loguru снимаются. `rotation`, `retention` и
    `compression` относятся только к файлу (по умолчанию `10 MB`,
    `7 days` и без сжатия). Уровень по умолчанию `INFO`.
    """
    sink_options: dict[str, Any] = {
        "level": (level or _env("LEVEL") or "INFO").upper(),
        "format": format_string or _env("FORMAT", _DEFAULT_FORMAT),
        "backtrace": backtrace if backtrace is not None else _env_flag("BACKTRACE"),
        "diagnose": False,
        "enqueue": True,
    }

    logger.enable("graph_engine")
    logger.remove()
    logger.add(sys.stderr, **sink_options)

    destination = log_file or _env("FILE")
    if not destination:
        return
    logger.add(
        destination,
        rotation=rotation or _env("ROTATION", "10 MB"),
        retention=retention or _env("RETENTION", "7 days"),
        compression=compression or _env("COMPRESSION"),
        **sink_options,
    )
    logger.debug("Writing graph_engine logs to {}", destination)
