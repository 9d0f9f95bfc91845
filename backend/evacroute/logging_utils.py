from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

from .settings import settings

LOG_FILE_NAME = "api.log.jsonl"


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(out_dir: str) -> tuple[logging.Handler | None, str | None]:
    log_path = Path(out_dir) / "logs" / LOG_FILE_NAME
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path, encoding="utf-8"), None
    except OSError as exc:
        return None, f"{log_path}: {exc}"


def get_logger() -> logging.Logger:
    logger = logging.getLogger("evacroute")

    # Reloaders import the module twice; configure handlers once.
    if getattr(logger, "_configured", False):
        return logger

    logger.setLevel(_parse_level(settings.log_level))
    logger.propagate = False

    formatter = jsonlogger.JsonFormatter()
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    handler, error = _file_handler(settings.out_dir)
    if handler is not None:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger._configured = True  # type: ignore[attr-defined]

    if error is not None:
        # Stream output still works; only the JSONL file is missing.
        logger.warning("log_file_unavailable", extra={"event": "log_file_unavailable", "error": error})
    return logger


LOGGER: logging.Logger | None = None


def log_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one structured record; ``event`` is both the message and a JSON key."""
    global LOGGER
    if LOGGER is None:
        LOGGER = get_logger()
    LOGGER.log(level, event, extra={"event": event, **fields})
