"""
Engine Event Models

The engine is pure, but a few outcomes are worth recording: a safety cap
being hit, a debt payment that never amortizes, a plan that fails
validation. Each of those is described by an EngineEvent and handed to the
EngineAuditLogger.

Events are append-only values; nothing in the engine reads them back.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class EngineEventType(str, Enum):
    """Types of events the engine reports."""
    # Recurrence
    OCCURRENCES_EXPANDED = "occurrences_expanded"
    OCCURRENCE_CAP_REACHED = "occurrence_cap_reached"
    INVALID_RECURRENCE_INTERVAL = "invalid_recurrence_interval"
    INSTANCES_GENERATED = "instances_generated"

    # Financial math
    AMORTIZATION_COMPLETED = "amortization_completed"
    AMORTIZATION_INSUFFICIENT_PAYMENT = "amortization_insufficient_payment"
    AMORTIZATION_CAP_REACHED = "amortization_cap_reached"
    INVALID_INPUT_REJECTED = "invalid_input_rejected"

    # Planning
    PLAN_PROJECTED = "plan_projected"

    # Validation (plans, rules, allocations); entity_type names the subject
    VALIDATION_PASSED = "validation_passed"
    VALIDATION_FAILED = "validation_failed"


class EngineSeverity(str, Enum):
    """Severity level for engine events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class EngineEvent(BaseModel):
    """A single engine event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: EngineEventType
    severity: EngineSeverity = EngineSeverity.INFO

    # What the event is about: 'rule', 'template', 'plan', 'loan'
    entity_type: Optional[str] = None
    entity_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_log_dict(), default=str)


class EngineEventBuilder:
    """
    Helper class to build engine events with common patterns.

    Usage:
        event = EngineEventBuilder.occurrence_cap_reached("monthly", 1000)
        event = EngineEventBuilder.instances_generated(template_id, 12)
    """

    @staticmethod
    def occurrences_expanded(kind: str, count: int) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.OCCURRENCES_EXPANDED,
            severity=EngineSeverity.DEBUG,
            entity_type="rule",
            description=f"Expanded {kind} rule into {count} occurrences",
            details={"kind": kind, "count": count},
        )

    @staticmethod
    def occurrence_cap_reached(kind: str, cap: int) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.OCCURRENCE_CAP_REACHED,
            severity=EngineSeverity.WARNING,
            entity_type="rule",
            description=f"Expansion of {kind} rule stopped at the {cap} occurrence cap",
            details={"kind": kind, "cap": cap},
        )

    @staticmethod
    def invalid_recurrence_interval(interval: Optional[int]) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.INVALID_RECURRENCE_INTERVAL,
            severity=EngineSeverity.WARNING,
            entity_type="rule",
            description="Custom rule without a positive interval expands to nothing",
            details={"custom_interval_days": interval},
        )

    @staticmethod
    def instances_generated(template_id: UUID, count: int, capped: bool) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.INSTANCES_GENERATED,
            entity_type="template",
            entity_id=template_id,
            description=f"Generated {count} instances",
            details={"count": count, "capped": capped},
        )

    @staticmethod
    def amortization_finished(
        outcome: str,
        months: int,
        total_interest: float,
    ) -> EngineEvent:
        event_type, severity = {
            "paid_off": (EngineEventType.AMORTIZATION_COMPLETED, EngineSeverity.DEBUG),
            "insufficient_payment": (
                EngineEventType.AMORTIZATION_INSUFFICIENT_PAYMENT,
                EngineSeverity.WARNING,
            ),
            "cap_reached": (EngineEventType.AMORTIZATION_CAP_REACHED, EngineSeverity.WARNING),
        }[outcome]
        return EngineEvent(
            event_type=event_type,
            severity=severity,
            entity_type="loan",
            description=f"Amortization ended ({outcome}) after {months} months",
            details={
                "outcome": outcome,
                "months": months,
                "total_interest": round(total_interest, 2),
            },
        )

    @staticmethod
    def invalid_input(function: str, message: str) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.INVALID_INPUT_REJECTED,
            severity=EngineSeverity.ERROR,
            description=f"Invalid input to {function}",
            details={"function": function, "message": message},
        )

    @staticmethod
    def plan_projected(plan_id: UUID, months: int, cumulative_net: float) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.PLAN_PROJECTED,
            severity=EngineSeverity.DEBUG,
            entity_type="plan",
            entity_id=plan_id,
            description=f"Projected plan over {months} months",
            details={"months": months, "cumulative_net": round(cumulative_net, 2)},
        )

    @staticmethod
    def validation_finished(
        subject: str,
        is_valid: bool,
        issues: list[dict],
        entity_id: Optional[UUID] = None,
    ) -> EngineEvent:
        label = subject.replace("_", " ").capitalize()
        if is_valid:
            return EngineEvent(
                event_type=EngineEventType.VALIDATION_PASSED,
                severity=EngineSeverity.DEBUG,
                entity_type=subject,
                entity_id=entity_id,
                description=f"{label} validation passed",
                details={"issues": issues},
            )
        return EngineEvent(
            event_type=EngineEventType.VALIDATION_FAILED,
            severity=EngineSeverity.WARNING,
            entity_type=subject,
            entity_id=entity_id,
            description=f"{label} validation failed with {len(issues)} issues",
            details={"issues": issues},
        )
