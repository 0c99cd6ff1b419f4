import logging

from src.utils.logging.otel_logger import get_logger


class Logger:
    """
    Context-carrying logger built on the application's OTEL-aware logger.

    Every entry is merged with the bound context (request id, review id, ...)
    before it reaches the underlying ``logging.Logger``. Emitting never raises:
    a broken handler or a clashing ``extra`` key is reported on the fallback
    logger and the caller carries on.

    Args:
        name (str): The name of the logger instance
        request_context (dict, optional): Context added to every entry
    """

    def __init__(self, name: str, request_context: dict = None):
        self.base_logger: logging.Logger = get_logger(name)
        self.request_context = request_context

    def __add_request_context_to_extra(self, extra: dict) -> dict:
        if not extra:
            return self.request_context

        if not self.request_context:
            return extra

        extra = extra.copy()
        extra.update(self.request_context)
        return extra

    def __emit(self, level: int, message, extra=None, exc_info=False):
        merged = self.__add_request_context_to_extra(extra)
        try:
            self.base_logger.log(level, message, extra=merged, exc_info=exc_info)
        except Exception:
            # extra clashed with a LogRecord attribute; emit it as plain args instead
            logging.lastResort.handle(logging.makeLogRecord({
                "name": self.base_logger.name,
                "levelno": level,
                "levelname": logging.getLevelName(level),
                "msg": "%s %s",
                "args": (message, merged),
            }))

    def debug(self, message, extra=None):
        self.__emit(logging.DEBUG, message, extra)

    def info(self, message, extra=None):
        self.__emit(logging.INFO, message, extra)

    def warning(self, message, extra=None):
        self.__emit(logging.WARNING, message, extra)

    def error(self, message, extra=None, exc_info=False):
        self.__emit(logging.ERROR, message, extra, exc_info=exc_info)

    def exception(self, message, extra=None):
        """Log at ERROR level with the active exception's traceback."""
        self.__emit(logging.ERROR, message, extra, exc_info=True)

    def critical(self, message, extra=None):
        self.__emit(logging.CRITICAL, message, extra)
