"""
Logging utilities.

Context-aware logger adapter and the request id context variable
shared by the middleware and the log formatters.
"""

import logging
from contextvars import ContextVar
from typing import Any, Dict, Optional

# Context variable for request tracking
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)


class LoggerAdapter:
    """Enhanced logger adapter with context management"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._context: Dict[str, Any] = {}

    def add_context(self, **kwargs):
        """Add context to all log messages"""
        self._context.update(kwargs)
        return self

    def _log(self, level: int, message: str, *args, **kwargs):
        """Internal log method with context"""
        extra = dict(kwargs.get('extra') or {})
        extra.update(self._context)
        kwargs['extra'] = extra

        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    """
    Get configured logger instance.

    Args:
        name: Logger name (defaults to the hostel_ledger root logger)

    Returns:
        Enhanced logger adapter
    """
    if name is None:
        name = 'hostel_ledger'
    elif not name.startswith('hostel_ledger'):
        name = f'hostel_ledger.{name}'

    return LoggerAdapter(logging.getLogger(name))


__all__ = [
    'get_logger',
    'LoggerAdapter',
    'request_id',
]
