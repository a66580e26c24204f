"""
Root-logger setup for the ``psychosocial-scoring`` CLI.

Only the CLI calls ``configure_logging``; library modules log through
``logging.getLogger(__name__)`` and leave handler setup to whoever embeds
them.

Log lines go to **stderr**, so the report printed on stdout can be piped
into a file untouched.  ``log_file`` adds a second handler; a relative path
is placed under the project root.

Scoring context
---------------
Modules attach respondent context through ``extra=``::

    logger.warning("...", extra={"response_id": "r-017", "item_number": 12})

The text format ignores it.  The JSON format (``json_format = true``) puts
every such field next to the standard ones, one object per line::

    {"time": "2026-03-02T15:00:00Z", "level": "WARNING",
     "logger": "psychosocial_scoring.scoring.normalizer",
     "message": "...", "response_id": "r-017", "item_number": 12}
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from psychosocial_scoring.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Attributes every LogRecord carries; anything else came in through extra=.
_STANDARD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, including any ``extra=`` context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(TIME_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, value)
            for name, value in vars(record).items()
            if name not in _STANDARD_FIELDS and not name.startswith("_")
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def _formatter(config: "LoggingConfig") -> logging.Formatter:
    if config.json_format:
        return JsonLineFormatter()
    formatter = logging.Formatter(TEXT_FORMAT, datefmt=TIME_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def _log_path(log_file: str) -> Path:
    from psychosocial_scoring.config import project_root

    path = Path(log_file)
    return path if path.is_absolute() else project_root() / path


def configure_logging(config: "LoggingConfig") -> None:
    """Install handlers on the root logger, replacing any existing ones."""
    level = getattr(logging, config.level)
    formatter = _formatter(config)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        path = _log_path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
