"""Logging configuration for tcping."""

import logging
import os
import sys

DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVEL_ENV = "TCPING_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {name: getattr(logging, name) for name in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")}
_QUIET_LOGGERS = ("urllib3", "requests")


def configure_logging(default_level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure application-wide logging.

    Respects TCPING_LOG_LEVEL environment variable (default: WARNING, so
    diagnostics stay out of the probe output). Logs to stderr with
    timestamp, level, module name, and message.

    Environment Variables:
        TCPING_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
                          Default is WARNING.

    Examples:
        # Default WARNING level
        $ tcping example.com 443

        # Debug level for troubleshooting
        $ TCPING_LOG_LEVEL=DEBUG tcping example.com 443
    """
    fallback = _LEVELS[default_level.upper()]
    log_level = _LEVELS.get(os.environ.get(LOG_LEVEL_ENV, "").strip().upper(), fallback)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    # urllib3 logs every connection at DEBUG; keep it out of probe output
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logging.getLogger(__name__).debug("Logging configured: level=%s", logging.getLevelName(log_level))
