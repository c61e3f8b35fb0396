import logging

from src.utils.logging.json_logger import get_logger


class Logger:
    """
    Logger that carries request context into every entry.

    Wraps a stdlib logger from the service hierarchy and merges a fixed
    request context (for example the request id) into the ``extra`` mapping
    of each call, so the JSON formatter emits it alongside the message.

    Args:
        name (str): The name of the logger instance
        request_context (dict, optional): Context merged into every log entry
    """

    def __init__(self, name: str, request_context: dict = None):
        self.base_logger: logging.Logger = get_logger(name)
        self.request_context = request_context

    def __add_request_context_to_extra(self, extra: dict) -> dict:
        """
        Merges the request context with additional extra information.

        Args:
            extra (dict): Additional context information to be added to the log

        Returns:
            dict: Merged dictionary of request context and extra information
        """
        if not extra:
            return self.request_context

        if not self.request_context:
            return extra

        extra = extra.copy()
        extra.update(self.request_context)
        return extra

    def debug(self, message, extra=None):
        self.base_logger.debug(
            message, extra=self.__add_request_context_to_extra(extra)
        )

    def info(self, message, extra=None):
        self.base_logger.info(message, extra=self.__add_request_context_to_extra(extra))

    def warning(self, message, extra=None):
        self.base_logger.warning(
            message, extra=self.__add_request_context_to_extra(extra)
        )

    def error(self, message, extra=None, exc_info=None):
        """
        Log a message with ERROR level.

        Args:
            message: The message to be logged
            extra (dict, optional): Additional context information for this log entry
            exc_info (optional): Exception to attach; its message and traceback are
                emitted as ``error`` and ``stack``
        """
        self.base_logger.error(
            message, extra=self.__add_request_context_to_extra(extra), exc_info=exc_info
        )
