"""
Interceptors for capturing standard library logs into a process logger.
"""

import logging

from .levels import SeverityLevel
from .logger import Logger


def severity_for(levelno: int) -> SeverityLevel:
    """Map a stdlib level number onto the process severity scale."""
    if levelno >= logging.ERROR:
        return SeverityLevel.ERROR
    if levelno >= logging.WARNING:
        return SeverityLevel.WARN
    if levelno >= logging.INFO:
        return SeverityLevel.INFO
    if levelno >= logging.DEBUG:
        return SeverityLevel.DEBUG
    return SeverityLevel.SILLY


class ProcessLogHandler(logging.Handler):
    """
    Redirect standard library logging events to a process Logger.

    Lets engine extensions that log through ``logging.getLogger(...)`` end up
    in the same sinks, tagged with the owning process instance. A ``data``
    attribute on the record (``extra={"data": ...}``) becomes the payload.
    """

    def __init__(self, process_logger: Logger, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.process_logger = process_logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            self.process_logger.log(severity_for(record.levelno), msg, getattr(record, "data", None))
        except Exception:
            self.handleError(record)
