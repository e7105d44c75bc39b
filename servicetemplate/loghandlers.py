"""A logging handler that fans each record out to several handlers."""

from __future__ import annotations

import copy
import logging


class MultiHandler(logging.Handler):
    """Passes every record to each child handler whose level allows it."""

    def __init__(self, *handlers: logging.Handler, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.handlers = list(handlers)

    def emit(self, record: logging.LogRecord) -> None:
        for handler in self.handlers:
            if record.levelno >= handler.level:
                handler.handle(copy.copy(record))

    def handle(self, record: logging.LogRecord):
        rv = self.filter(record)
        if isinstance(rv, logging.LogRecord):
            record = rv
        if rv:
            self.emit(record)
        return rv

    def setFormatter(self, fmt: logging.Formatter | None) -> None:
        super().setFormatter(fmt)
        for handler in self.handlers:
            handler.setFormatter(fmt)