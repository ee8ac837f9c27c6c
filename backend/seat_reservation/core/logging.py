"""
Structured logging configuration using structlog.
Outputs JSON in production, pretty-printed in development.
Request context (request ID, holder, idempotency key) is merged into every
event, and seat keys render in their canonical "row:column" form.
"""

import logging
import sys
import structlog
from seat_reservation.core.config import get_settings
from seat_reservation.domain.seat_key import SeatKey


def _render_seat(value):
    if isinstance(value, SeatKey):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        rendered = [_render_seat(v) for v in value]
        return sorted(rendered) if isinstance(value, (set, frozenset)) else rendered
    if isinstance(value, dict):
        return {_render_seat(k): _render_seat(v) for k, v in value.items()}
    return value


def render_seat_keys(logger, method_name, event_dict):
    """Render SeatKey values (bare or inside containers) as "row:column"."""
    return {key: _render_seat(value) for key, value in event_dict.items()}


def setup_logging() -> None:
    settings = get_settings()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        render_seat_keys,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.ENVIRONMENT == "production":
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ]
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Silence noisy third-party loggers
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
