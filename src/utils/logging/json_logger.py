import json
import logging
import sys
from datetime import datetime, timezone

ROOT_LOGGER_NAME = "codereview"

# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}

_LEVEL_ALIASES = {"warn": "WARNING"}


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON line with its extra fields inlined."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["error"] = str(record.exc_info[1])
            entry["stack"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _resolve_level(level: str) -> int:
    return logging.getLevelName(_LEVEL_ALIASES.get(level.lower(), level.upper()))


def configure_logging(level: str = "info") -> logging.Logger:
    """Install the JSON handler on the service root logger (idempotent)."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(_resolve_level(level))

    if not any(getattr(h, "_codereview_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        handler._codereview_handler = True
        root.addHandler(handler)

    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
