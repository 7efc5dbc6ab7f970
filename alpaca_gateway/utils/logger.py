import logging
import sys
import os
from collections.abc import Iterable

REDACTED = '***'


class SecretRedactingFilter(logging.Filter):
    """Replaces registered secret values in every record's rendered message"""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self._secrets: set[str] = set()
        self.add_secrets(secrets)

    def add_secrets(self, secrets: Iterable[str]) -> None:
        self._secrets.update(s for s in secrets if s)

    def redact(self, text: str) -> str:
        # Longest first so a secret containing another is masked whole
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if self._secrets:
            message = record.getMessage()
            redacted = self.redact(message)
            if redacted != message:
                record.msg = redacted
                record.args = None
        return True


def get_redacting_filter(logger: logging.Logger) -> SecretRedactingFilter:
    """Return the logger's redacting filter, installing one if needed"""
    for existing in logger.filters:
        if isinstance(existing, SecretRedactingFilter):
            return existing
    redacting = SecretRedactingFilter()
    logger.addFilter(redacting)
    return redacting


def register_secrets(secrets: Iterable[str], logger_name: str = 'alpaca_gateway') -> None:
    """Mask the given values in everything logged under ``logger_name``"""
    logger = logging.getLogger(logger_name)
    get_redacting_filter(logger).add_secrets(secrets)
    # Logger filters do not apply to records propagated from child loggers,
    # so the handlers carry the same filter
    for handler in logger.handlers:
        if not any(isinstance(f, SecretRedactingFilter) for f in handler.filters):
            handler.addFilter(get_redacting_filter(logger))


def setup_logger(name: str = 'alpaca_gateway', level: str = 'INFO',
                 log_file: str = None, secrets: Iterable[str] = ()) -> logging.Logger:

    logger = logging.getLogger(name)

    # Clear existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    # Set level
    logger.setLevel(getattr(logging, level.upper()))

    redacting = get_redacting_filter(logger)
    redacting.add_secrets(secrets)

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(redacting)
    logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(redacting)
        logger.addHandler(file_handler)

    return logger
