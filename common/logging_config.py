import logging
import os
import re
import sys
from typing import Any, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_MASK = r'\1***MASKED***'
_SECRET_VALUE = r'["\']?\s*[:=]\s*["\']?)([^"\'}\s,&]+)'


class SensitiveDataFilter(logging.Filter):
    """
    Mask credentials in log records.

    Covers token, secret and Authorization values, both in the message
    and in its args.
    """

    PATTERNS = [
        re.compile(r'(token' + _SECRET_VALUE, re.IGNORECASE),
        re.compile(r'(secret' + _SECRET_VALUE, re.IGNORECASE),
        re.compile(r'(authorization["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE),
        re.compile(r'(bearer\s+)([^\s,}\'\"]+)', re.IGNORECASE),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.mask(record.msg)

        if isinstance(record.args, dict):
            record.args = {key: self.mask(value) for key, value in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self.mask(arg) for arg in record.args)

        return True

    @classmethod
    def mask(cls, value: Any) -> Any:
        """Return ``value`` with secrets masked; non-strings pass through."""
        if not isinstance(value, str):
            return value
        for pattern in cls.PATTERNS:
            value = pattern.sub(_MASK, value)
        return value


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    correlation_id: Optional[str] = None
) -> logging.Logger:
    """
    Attach a stdout handler to a component's root logger.

    Calling it again for the same component only updates the level.

    Args:
        component_name: Logger name of the component (e.g., 'storage_client', 'cli')
        log_level: DEBUG, INFO, WARNING or ERROR. Defaults to the LOG_LEVEL env var, then INFO
        correlation_id: Optional ID inserted into every line

    Returns:
        The component's logger
    """
    level_name = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    fmt = LOG_FORMAT
    if correlation_id:
        fmt = fmt.replace(' - %(message)s', f' - [{correlation_id}] - %(message)s')

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())

    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
