"""Structured logger shared by the registry components."""
import json
import logging
import os
import sys
import time

LOG_LEVEL = os.getenv("INTEGRACHAIN_LOG_LEVEL", "INFO").upper()


def get_logger(name: str = "integrachain", level: str | int | None = None) -> logging.Logger:
    """Return a logger that writes one JSON object per line with UTC timestamps."""
    logger = logging.getLogger(name)
    logger.setLevel(level or LOG_LEVEL)

    root = logging.getLogger("integrachain")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt=json.dumps(
                {
                    "ts": "%(asctime)s",
                    "level": "%(levelname)s",
                    "name": "%(name)s",
                    "msg": "%(message)s",
                }
            ),
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        root.addHandler(handler)

    return logger
