"""structlog configuration shared by the CLI entry points."""

import structlog

_NAME_TO_LEVEL = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "warn": 30,
    "error": 40,
    "critical": 50,
}


def configure_logging(log_level: str = "info", log_format: str = "json") -> None:
    """Configure structlog for the process."""
    processors = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            _NAME_TO_LEVEL.get(log_level.lower(), 20)
        ),
    )
