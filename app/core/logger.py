"""structlog configuration: readable lines while developing, JSON with correlation ids otherwise."""

import logging
from dataclasses import dataclass, field
from enum import StrEnum

import orjson
import structlog
from asgi_correlation_id import correlation_id
from beartype import beartype

from app.core.settings import settings

MAX_EVENT_LENGTH = 80


class LoggerError(Exception):
    """Raised when a log call carries arguments the pipeline cannot handle."""


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogIcon(StrEnum):
    """Icons prefixed to events in debug output."""

    DEFAULT = "📋"
    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"
    START = "🚀"
    PROCESSING = "🔄"
    COMPLETE = "✨"
    ADAPTER = "🔌"
    FORBIDDEN = "🚫"
    NETWORK = "🌐"
    HEALTHCHECK = "❤️"
    IMAGE = "🖼️"
    FILE = "📄"
    UPLOAD = "📤"


@dataclass
class LoggerConfig:
    debug: bool = field(default_factory=lambda: settings.DEBUG)
    app_name: str = field(default_factory=lambda: settings.API_NAME)
    log_level: LogLevel = LogLevel.INFO


def add_correlation_id(logger, method_name: str, event_dict: dict) -> dict:
    """Attach the id of the request being handled, when there is one."""
    if request_id := correlation_id.get():
        event_dict["correlation_id"] = request_id
    return event_dict


class BusinessRulesProcessor:
    """
    Normalize events before rendering.

    - Events are upper-cased and cut to MAX_EVENT_LENGTH characters.
    - The optional `icon` kwarg must be a LogIcon; it is dropped from the fields.
    - In debug mode the icon is prepended to the event.
    """

    def __init__(self, debug: bool) -> None:
        self.debug = debug

    @beartype
    def __call__(self, logger, name: str, event_dict: dict) -> dict:
        try:
            icon = LogIcon(event_dict.pop("icon", LogIcon.DEFAULT))
        except ValueError as err:
            raise LoggerError("Wrong Icon chosen, please choose a valid LogIcon enum member") from err

        event = str(event_dict.get("event", ""))[:MAX_EVENT_LENGTH].upper()
        event_dict["event"] = f"{icon.value} {event}" if self.debug else event
        return event_dict


def dev_pipeline_renderer(logger, name: str, event_dict: dict) -> str:
    """timestamp | LEVEL | EVENT | key=value | ... | file:line"""
    fixed = ("timestamp", "level", "event", "filename", "lineno")
    timestamp, level, event, filename, lineno = (event_dict.get(key, "") for key in fixed)

    extras = " | ".join(f"{key}={value}" for key, value in event_dict.items() if key not in fixed)
    location = f"{filename}:{lineno}" if filename else ""

    return " | ".join(filter(None, [timestamp, str(level or LogLevel.INFO).upper(), event, extras, location]))


def build_processors(config: LoggerConfig) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
            additional_ignores=["logger"],
        ),
        BusinessRulesProcessor(debug=config.debug),
        add_correlation_id,
    ]
    if config.debug:
        return [*processors, dev_pipeline_renderer]
    return [
        *processors,
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(serializer=orjson.dumps),
    ]


def setup_logging(config: LoggerConfig) -> None:
    structlog.configure(
        processors=build_processors(config),
        # orjson renders bytes, so JSON output needs a bytes logger
        logger_factory=structlog.PrintLoggerFactory() if config.debug else structlog.BytesLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(config.log_level.value)),
        cache_logger_on_first_use=True,
    )


setup_logging(LoggerConfig())

logger = structlog.get_logger(LoggerConfig().app_name)
