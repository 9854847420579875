"""
Engine Audit Logger

Structured logging for the finance engine.

The audit logger:
- Logs every EngineEvent locally through structlog
- Optionally forwards events to a caller-supplied sink
- Never lets a failing sink break a computation
"""

import logging
from typing import Callable, Optional

import structlog

from finance_engine.config import EngineSettings, get_settings
from finance_engine.models.audit import EngineEvent, EngineEventBuilder


LOGGER_NAME = "finance_engine"

EventSink = Callable[[EngineEvent], None]


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    """
    Configure structlog for the engine.

    Called once at import with the cached settings; call again after
    changing FINANCE_ENGINE_LOG_* variables.
    """
    settings = settings or get_settings()

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.getLogger(LOGGER_NAME).setLevel(
        logging.DEBUG if settings.debug_mode else settings.log_level
    )


configure_logging()


class EngineAuditLogger:
    """
    Central event logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional sink (e.g., the caller's persistence layer)
    """

    def __init__(
        self,
        sink: Optional[EventSink] = None,
    ):
        """
        Initialize audit logger.

        Args:
            sink: Callable receiving every event.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger(LOGGER_NAME)

    def log(self, event: EngineEvent) -> bool:
        """
        Log an engine event.

        Always logs locally. Forwards to the sink if one is configured.

        Returns True if the sink accepted the event (or no sink is configured).
        """
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity == "error":
            self._logger.error("engine_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("engine_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("engine_event", **log_dict)
        else:
            self._logger.info("engine_event", **log_dict)

        if self._sink:
            try:
                self._sink(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "engine_event_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_invalid_input(self, function: str, message: str) -> None:
        """Log a rejected call before the caller sees the exception."""
        self.log(EngineEventBuilder.invalid_input(function, message))


_default_logger: Optional[EngineAuditLogger] = None


def get_audit_logger() -> EngineAuditLogger:
    """Shared sink-less logger used when a component is built without one."""
    global _default_logger
    if _default_logger is None:
        _default_logger = EngineAuditLogger()
    return _default_logger
