from __future__ import annotations

import logging
import sys

import structlog

ACCESS_LOGGER = "uvicorn.access"


def _coerce_level(level: str | int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def _configure_access_log(level: int) -> None:
    # uvicorn access lines ("GET /list/catalogue/provider HTTP/1.1" 200) get a timestamp prefix
    formatter = logging.Formatter("%(asctime)s %(levelname)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    access_logger = logging.getLogger(ACCESS_LOGGER)
    if not access_logger.handlers:
        access_logger.addHandler(logging.StreamHandler(sys.stdout))
    for handler in access_logger.handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
    access_logger.setLevel(level)


def _stamp_service(service_name: str):
    def add_service(_logger, _method_name, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def setup_logging(level: str | int = "INFO", service_name: str | None = None) -> None:
    """Configure structlog JSON output and the uvicorn access log.

    When ``service_name`` is given every event carries it as ``service``, so
    lines from several catalogue processes can share one sink.
    """

    logging_level = _coerce_level(level)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=logging_level)
    _configure_access_log(logging_level)

    processors = [] if not service_name else [_stamp_service(service_name)]
    structlog.configure(
        processors=[
            *processors,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)


__all__ = ["get_logger", "setup_logging"]
