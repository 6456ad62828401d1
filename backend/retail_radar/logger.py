"""
Logging setup shared by the API process and the seed script.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the root logger with a single stdout handler."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # replace handlers so repeated calls (reload, tests) don't duplicate output
    root.handlers.clear()
    root.addHandler(handler)
    return root
