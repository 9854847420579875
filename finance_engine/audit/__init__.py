"""Engine event logging package."""

from finance_engine.audit.logger import (
    EngineAuditLogger,
    EventSink,
    configure_logging,
    get_audit_logger,
)

__all__ = ["EngineAuditLogger", "EventSink", "configure_logging", "get_audit_logger"]
