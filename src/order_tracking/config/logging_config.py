# src/order_tracking/config/logging_config.py
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional, Union

LevelLike = Optional[Union[int, str]]

# Handlers we attach carry their target ("console" or an absolute file path)
# under this attribute, so a second call can tell what is already wired.
_TARGET_ATTR = "_order_tracking_target"

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# urllib3 logs full request URLs at DEBUG; USPS puts its USERID in the query.
QUIET_LOGGERS = ("urllib3", "sqlalchemy.engine")


def _coerce_level(level: LevelLike) -> int:
    """'debug' / 'WARN' / 10 / None -> int level. None reads LOG_LEVEL, then INFO."""
    if level is None:
        level = os.getenv("LOG_LEVEL") or logging.INFO
    if isinstance(level, int):
        return level
    name = str(level).strip().upper()
    if name == "WARN":
        name = "WARNING"
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def _targets(logger: logging.Logger) -> set:
    return {getattr(h, _TARGET_ATTR) for h in logger.handlers if hasattr(h, _TARGET_ATTR)}


def _attach(logger: logging.Logger, handler: logging.Handler, target: str, formatter: logging.Formatter) -> None:
    handler.setFormatter(formatter)
    handler.setLevel(logger.level)
    setattr(handler, _TARGET_ATTR, target)
    logger.addHandler(handler)


def quiet_libraries(names: Iterable[str] = QUIET_LOGGERS, level: int = logging.WARNING) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


def get_logger(
    name: Optional[str] = "order_tracking",
    *,
    level: LevelLike = None,
    log_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    propagate: bool = False,
    fmt: str = LOG_FORMAT,
    datefmt: str = LOG_DATEFMT,
    max_bytes: int = 5_000_000,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the package logger. Module loggers named `order_tracking.<area>`
    inherit its handlers.

    Repeated calls (CLI, then the app factory) add only targets that are
    missing: one console stream and one rotating file per path.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_coerce_level(level))
    logger.propagate = propagate

    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)
    present = _targets(logger)

    if console and "console" not in present:
        _attach(logger, logging.StreamHandler(stream=sys.stderr), "console", formatter)

    if log_file is not None:
        path = os.path.abspath(log_file)
        if path not in present:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                filename=path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
                delay=True,
            )
            _attach(logger, fh, path, formatter)

    quiet_libraries()
    return logger


__all__ = ["LOG_FORMAT", "QUIET_LOGGERS", "get_logger", "quiet_libraries"]
