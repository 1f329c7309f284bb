"""
Logging configuration and setup.

All package loggers live under `llmagency`. setup_logging() gives that tree
a console handler on stderr (stdout carries command output) and, when
configured, a file handler. Every handler masks the configured API keys and
tokens, so a secret that slips into a message never reaches a log.
"""

import logging
import sys
from pathlib import Path

from llmagency.config.settings import Settings

ROOT_LOGGER = "llmagency"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
MASK = "***"

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Colors the level name. Plain output when `use_color` is False."""

    def __init__(self, fmt: str, datefmt: str, use_color: bool = True):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname)
        if not (self.use_color and color):
            return super().format(record)
        # Other handlers format the same record
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{RESET}"
        return super().format(colored)


class SecretFilter(logging.Filter):
    """Replaces known secret values in log messages with a mask."""

    def __init__(self, secrets: list[str]):
        super().__init__()
        self.secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, MASK)
        if masked != message:
            record.msg, record.args = masked, None
        return True


def _configured_secrets(settings: Settings) -> list[str]:
    secrets = [settings.llm.api_key]
    for secret in (settings.agency.key, settings.memory.token):
        if secret is not None:
            secrets.append(secret.get_secret_value())
    return secrets


def _console_handler(level: int, secret_filter: SecretFilter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT, use_color=sys.stderr.isatty())
    )
    handler.addFilter(secret_filter)
    return handler


def _file_handler(path: Path, level: int, secret_filter: SecretFilter) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    handler.addFilter(secret_filter)
    return handler


def setup_logging(settings: Settings) -> None:
    """
    Configure the `llmagency` logger tree from settings.

    Replaces any handlers installed by a previous call.
    """
    level = getattr(logging, settings.log_level)
    secret_filter = SecretFilter(_configured_secrets(settings))

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(level, secret_filter))
    if settings.log_file:
        logger.addHandler(_file_handler(Path(settings.log_file), level, secret_filter))
    logger.propagate = False

    logger.debug(f"Logging initialized at {settings.log_level}, file: {settings.log_file or 'none'}")


def get_logger(name: str) -> logging.Logger:
    """Logger for `name`, nested under `llmagency` unless it already is."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
