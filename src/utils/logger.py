import logging
import sys
import traceback
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from src.constants.env import JSON_LOGS, LOG_LEVEL


def drop_color_message_key(_, __, event_dict: EventDict) -> EventDict:
    """Uvicorn duplicates the message in "color_message"; keep only one copy."""
    event_dict.pop("color_message", None)
    return event_dict


def setup_logging(json_logs: bool = JSON_LOGS, log_level: str = LOG_LEVEL) -> None:
    timestamper = structlog.processors.TimeStamper(fmt="iso")

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.stdlib.ExtraAdder(),
        drop_color_message_key,
        timestamper,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    log_renderer: Processor
    if json_logs:
        log_renderer = structlog.processors.JSONRenderer()
    else:
        log_renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            log_renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # Uvicorn access lines are replaced by the HTTP logging middleware
    for name in ["uvicorn", "uvicorn.error"]:
        logging.getLogger(name).handlers.clear()
        logging.getLogger(name).propagate = True
    logging.getLogger("uvicorn.access").handlers.clear()
    logging.getLogger("uvicorn.access").propagate = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


def log_error(
    log: structlog.stdlib.BoundLogger,
    message: str,
    error: BaseException,
    **context: Any,
) -> None:
    """Log an exception with its type and formatted traceback."""
    log.error(
        message,
        error=str(error),
        error_type=type(error).__name__,
        traceback="".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        ),
        **context,
    )


logger = get_logger("document_analyzer")
