"""Tests for engine events, the audit logger and settings."""

import json
import pytest
from uuid import uuid4

from pydantic import ValidationError

from finance_engine.audit import EngineAuditLogger
from finance_engine.config import (
    AMORTIZATION_EPSILON,
    DEFAULT_MAX_INSTANCES,
    MAX_AMORTIZATION_MONTHS,
    MAX_OCCURRENCES,
    EngineSettings,
)
from finance_engine.models import (
    EngineEvent,
    EngineEventBuilder,
    EngineEventType,
    EngineSeverity,
)


class TestEngineEvents:
    """Tests for EngineEvent and EngineEventBuilder."""

    def test_to_log_dict(self):
        event = EngineEventBuilder.occurrence_cap_reached("daily", 1000)
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "occurrence_cap_reached"
        assert log_dict["severity"] == "warning"
        assert log_dict["entity_type"] == "rule"
        assert log_dict["entity_id"] is None
        assert log_dict["details"] == {"kind": "daily", "cap": 1000}

    def test_to_json_round_trips_through_json(self):
        template_id = uuid4()
        event = EngineEventBuilder.instances_generated(template_id, 12, False)

        payload = json.loads(event.to_json())
        assert payload["entity_id"] == str(template_id)
        assert payload["details"]["count"] == 12

    @pytest.mark.parametrize("outcome,event_type,severity", [
        ("paid_off", EngineEventType.AMORTIZATION_COMPLETED, EngineSeverity.DEBUG),
        ("insufficient_payment", EngineEventType.AMORTIZATION_INSUFFICIENT_PAYMENT,
         EngineSeverity.WARNING),
        ("cap_reached", EngineEventType.AMORTIZATION_CAP_REACHED, EngineSeverity.WARNING),
    ])
    def test_amortization_events(self, outcome, event_type, severity):
        event = EngineEventBuilder.amortization_finished(outcome, 12, 65.4321)

        assert event.event_type == event_type
        assert event.severity == severity
        assert event.details["total_interest"] == 65.43

    def test_validation_failed_event(self):
        event = EngineEventBuilder.validation_finished(
            "plan",
            False,
            [{"field": "name"}, {"field": "total_income"}],
        )
        assert event.event_type == EngineEventType.VALIDATION_FAILED
        assert "2 issues" in event.description

    def test_description_length_limited(self):
        with pytest.raises(ValidationError):
            EngineEvent(
                event_type=EngineEventType.PLAN_PROJECTED,
                description="x" * 501,
            )


class TestEngineAuditLogger:
    """Tests for EngineAuditLogger."""

    def test_without_sink(self):
        logger = EngineAuditLogger()
        assert logger.log(EngineEventBuilder.occurrences_expanded("weekly", 4))

    def test_sink_receives_event(self):
        received = []
        logger = EngineAuditLogger(sink=received.append)
        event = EngineEventBuilder.occurrences_expanded("weekly", 4)

        assert logger.log(event)
        assert received == [event]

    def test_failing_sink_does_not_raise(self):
        def broken_sink(event):
            raise RuntimeError("store unavailable")

        logger = EngineAuditLogger(sink=broken_sink)
        assert logger.log(EngineEventBuilder.occurrences_expanded("weekly", 4)) is False

    def test_log_invalid_input(self):
        received = []
        EngineAuditLogger(sink=received.append).log_invalid_input(
            "required_payment", "periods must be >= 0, got -1"
        )

        assert received[0].event_type == EngineEventType.INVALID_INPUT_REJECTED
        assert received[0].severity == EngineSeverity.ERROR
        assert received[0].details["function"] == "required_payment"


class TestSettings:
    """Tests for EngineSettings and the safety caps."""

    def test_safety_caps(self):
        assert MAX_OCCURRENCES == 1000
        assert MAX_AMORTIZATION_MONTHS == 1000
        assert DEFAULT_MAX_INSTANCES == 50
        assert AMORTIZATION_EPSILON == 0.01

    def test_defaults(self):
        settings = EngineSettings(_env_file=None)
        assert settings.timezone == "UTC"
        assert settings.recurring_marker == "(recurring)"
        assert settings.on_track_ratio == 0.9

    def test_log_level_normalized(self):
        assert EngineSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            EngineSettings(log_level="loud")

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("FINANCE_ENGINE_TIMEZONE", "Europe/Berlin")
        monkeypatch.setenv("FINANCE_ENGINE_ON_TRACK_RATIO", "0.75")

        settings = EngineSettings()
        assert settings.timezone == "Europe/Berlin"
        assert settings.on_track_ratio == 0.75
