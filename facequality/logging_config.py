"""Logging setup.

Configures the root logger with a single-line key=value formatter. Fields
passed through ``extra=`` are appended to the line, so route logs carry
their quality verdicts without a structured logging backend.
"""

import logging
import sys

# Attributes every LogRecord carries; anything else came in through ``extra=``
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

class KVFormatter(logging.Formatter):
    def format(self, record):
        base = {
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                base[key] = value
        line = " | ".join(f"{k}={v}" for k, v in base.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line

_handler = logging.StreamHandler(sys.stdout)
_handler.setFormatter(KVFormatter())

def setup_logging(level=logging.INFO):
    logging.root.handlers.clear()
    logging.root.setLevel(level)
    logging.root.addHandler(_handler)
    for noisy in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logging.getLogger(noisy).setLevel(logging.WARNING)
