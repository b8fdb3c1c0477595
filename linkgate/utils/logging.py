"""Structured logging for the linkgate lambdas

Each lambda package calls `initialize_logging()` from its `__init__.py`, before the
handler module logs anything. Records go to stdout as one JSON object per line,
which is what CloudWatch Logs Insights queries by field.

Resolution records carry the outcome fields passed as `extra`:
{
    "timestamp": "2025-12-26T12:00:00.000Z",
    "level": "INFO",
    "logger": "linkgate.resolution.resolver",
    "message": "Resolved short link.",
    "env": "prod",
    "token": "Kq7mZp2xRt",
    "access": "real",
    "signal": "blocked",
    "reason": "quota-exceeded"
}

Link passwords and their hashes never reach the log: such extras are masked.
"""

import os
import json
import logging
import logging.config
from datetime import datetime, UTC

from linkgate.constants import ENV


# Attributes every LogRecord has; anything else on a record came from `extra`
RECORD_ATTRS = frozenset(logging.LogRecord('', logging.NOTSET, '', 0, '', None, None).__dict__) | {'asctime', 'message'}

SECRET_FIELDS = frozenset({'password', 'password_hash'})
MASK = '***'


class JsonFormatter(logging.Formatter):
    """Render a record and its extras as one JSON line."""

    def __init__(self, env: str | None = None):
        super().__init__()
        self.env = env

    def format(self, record: logging.LogRecord) -> str:
        # fmt: off
        timestamp = datetime.fromtimestamp(record.created, tz=UTC) \
                            .isoformat(timespec="milliseconds") \
                            .replace("+00:00", "Z")
        # fmt: on

        log = {
            'timestamp': timestamp,
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if self.env:
            log['env'] = self.env

        for key, value in record.__dict__.items():
            if key in RECORD_ATTRS:
                continue
            log[key] = MASK if key in SECRET_FIELDS and value is not None else value

        if record.exc_info:
            log['exception'] = self.formatException(record.exc_info)

        # Enums and datetimes in extras are rendered by their string value
        return json.dumps(log, default=str)


def initialize_logging() -> None:
    log_level = os.getenv(ENV.App.LOG_LEVEL, 'INFO').upper()
    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'json': {
                    '()': JsonFormatter,
                    'env': os.getenv(ENV.App.APP_ENV),
                }
            },
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json',
                    'stream': 'ext://sys.stdout',
                }
            },
            'root': {
                'level': log_level,
                'handlers': ['stdout'],
            },
        }
    )
