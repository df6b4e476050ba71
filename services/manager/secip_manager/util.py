from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
from pythonjsonlogger import jsonlogger

_FMT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _json_handler(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(jsonlogger.JsonFormatter(_FMT, rename_fields={"asctime": "ts", "levelname": "level"}))
    return handler


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    structlog -> stdlib logging -> JSON-строки (python-json-logger).
    stderr всегда; log_file (если задан) дописывается теми же строками.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(_json_handler(logging.StreamHandler(sys.stderr)))
    if log_file:
        p = Path(log_file)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            root.addHandler(_json_handler(logging.FileHandler(p, encoding="utf-8")))
        except OSError as e:
            # лог-файл не критичен, пишем только в stderr
            root.warning("log file %s unavailable: %s", p, e)
    root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
