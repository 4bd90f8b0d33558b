"""structlog configuration for switchyard.

Stdlib loggers (the dispatch core) and structlog loggers (the traffic
logging interceptors) share one ProcessorFormatter on stderr, so both
render identically: colored console lines by default, JSON lines with
``--log-json``.

Levels:

* ``switchyard``: DEBUG with ``--verbose``, WARNING otherwise.  Routing,
  adapter selection and recovery are DEBUG, so they stay behind ``-v``.
* ``switchyard.services.interceptors``: INFO while traffic logging is on,
  so ``request.received`` / ``response.sent`` lines appear without
  ``-v``.  Inherits from ``switchyard`` when traffic logging is off.
"""

from __future__ import annotations

import logging
import sys

import structlog

TRAFFIC_LOGGER = "switchyard.services.interceptors"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _stderr_handler(log_json: bool) -> logging.Handler:
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    log_traffic: bool = True,
) -> None:
    """Route all switchyard logging through one structlog formatter.

    Safe to call repeatedly: the root handler is replaced, never stacked.

    Args:
        verbose: DEBUG output from every switchyard module.
        log_json: JSON renderer instead of the console renderer.
        log_traffic: Emit the INFO request/response lines of the logging
            interceptors even when not verbose.
    """
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(_stderr_handler(log_json))
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("switchyard").setLevel(logging.DEBUG if verbose else logging.WARNING)
    traffic_level = logging.INFO if log_traffic and not verbose else logging.NOTSET
    logging.getLogger(TRAFFIC_LOGGER).setLevel(traffic_level)
    logging.getLogger("pluggy").setLevel(logging.WARNING)
