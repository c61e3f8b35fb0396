__all__ = [
    "Logger",
    "configure_logging",
    "get_logger",
]

from src.utils.logging.default import Logger
from src.utils.logging.json_logger import configure_logging, get_logger
