"""structlog setup: level filtering plus console or JSON rendering."""

import logging

import structlog


def _add_service(logger, method_name, event_dict):
    event_dict.setdefault("service", "arco-backend")
    return event_dict


def configure_logging(level: str = "info", json_output: bool = False) -> None:
    """Configure structlog once at startup.

    Args:
        level: Minimum level name ("debug", "info", "warning", "error").
        json_output: Emit one JSON object per line (production) instead of
            the colourised console renderer.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _add_service,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )
