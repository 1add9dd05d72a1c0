import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
PREVIEW_CHARS = 300


class Log:
    """Centralized logging for docchat.

    Records go to stderr by default so they never interleave with the
    conversation printed on stdout.
    """

    _logger: logging.Logger = logging.getLogger("docchat")

    @classmethod
    def configure(cls, log_level: str, stream: TextIO | None = None) -> None:
        """Set the level and install a single stream handler.

        Raises:
            ValueError: if ``log_level`` is not a known level name.
        """
        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {log_level}")
        cls._logger.setLevel(level)
        for handler in list(cls._logger.handlers):
            cls._logger.removeHandler(handler)
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        cls._logger.addHandler(handler)

    @staticmethod
    def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
        """Quoted head of ``text`` for a log line, with its full length when cut."""
        if len(text) <= limit:
            return repr(text)
        return f"{text[:limit]!r}... ({len(text)} chars)"

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def exception(cls, message: str, **kwargs: object) -> None:
        """Log at error level with the active exception's traceback."""
        cls._logger.exception(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        cls._logger.debug(message, extra=kwargs)
