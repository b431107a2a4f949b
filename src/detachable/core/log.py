# src/detachable/core/log.py
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Optional, TextIO

from dotenv import load_dotenv

ROOT_NAME = "detachable"
TEXT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s | %(message)s"

_configured = False


def _parse_level(level: str) -> int:
    lvl = logging.getLevelName(level.upper())
    return lvl if isinstance(lvl, int) else logging.INFO


class JsonFormatter(logging.Formatter):
    """Render a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        obj = {
            "ts": record.created,
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
            "where": f"{record.filename}:{record.lineno}",
        }
        if record.exc_info:
            obj["exc"] = self.formatException(record.exc_info)
        return json.dumps(obj, ensure_ascii=False, default=str)


def make_handler(json_mode: bool, stream: Optional[TextIO] = None) -> logging.Handler:
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter() if json_mode else logging.Formatter(TEXT_FORMAT))
    return handler


def setup(level: Optional[str] = None, json_mode: Optional[bool] = None, *, force: bool = False) -> None:
    """Attach one stdout handler to the ``detachable`` logger tree.

    Arguments left as None fall back to LOG_LEVEL / LOG_JSON, which may come
    from a .env file. Repeated calls do nothing unless force=True.
    """
    global _configured
    if _configured and not force:
        return

    load_dotenv()
    if json_mode is None:
        json_mode = os.getenv("LOG_JSON", "0") == "1"

    tree = logging.getLogger(ROOT_NAME)
    for h in list(tree.handlers):
        tree.removeHandler(h)
    tree.setLevel(_parse_level(level or os.getenv("LOG_LEVEL", "INFO")))
    tree.addHandler(make_handler(json_mode))

    _configured = True


def get(name: str) -> logging.Logger:
    """Logger under the ``detachable`` namespace ("group" -> "detachable.group")."""
    if name == ROOT_NAME or name.startswith(ROOT_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_NAME}.{name}")


def set_level(level: str) -> None:
    logging.getLogger(ROOT_NAME).setLevel(_parse_level(level))
