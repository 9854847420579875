"""Tests for InstanceGenerator and exclude_existing."""

import pytest
from datetime import date

from finance_engine.config import DEFAULT_MAX_INSTANCES
from finance_engine.models.expense import DESCRIPTION_MAX_LENGTH
from finance_engine.models import (
    EngineEventType,
    ExpenseStatus,
    ExpenseTemplate,
    RecurrenceKind,
    RecurrenceRule,
)
from finance_engine.recurrence import InstanceGenerator, RecurrenceExpander, exclude_existing


@pytest.fixture
def generator(calendar, audit_logger):
    expander = RecurrenceExpander(calendar=calendar, audit_logger=audit_logger)
    return InstanceGenerator(
        expander=expander,
        audit_logger=audit_logger,
        recurring_marker="(recurring)",
    )


def make_template(kind=RecurrenceKind.MONTHLY, **overrides):
    data = dict(
        amount=1200.0,
        currency="EUR",
        category_id="housing",
        subcategory_id="rent",
        description="Rent",
        tags=("home",),
        origin_date=date(2024, 1, 15),
        recurrence_rule=RecurrenceRule(kind=kind),
        status=ExpenseStatus.CONFIRMED,
    )
    data.update(overrides)
    return ExpenseTemplate(**data)


class TestGenerate:
    """Tests for InstanceGenerator.generate."""

    def test_origin_is_excluded(self, generator):
        """Test that only occurrences after the template itself are generated."""
        instances = generator.generate(make_template(), window_end=date(2024, 6, 30))

        assert [i.date for i in instances] == [
            date(2024, 2, 15),
            date(2024, 3, 15),
            date(2024, 4, 15),
            date(2024, 5, 15),
            date(2024, 6, 15),
        ]

    def test_instances_copy_template_fields(self, generator):
        template = make_template()
        instance = generator.generate(template, window_end=date(2024, 2, 28))[0]

        assert instance.origin_id == template.id
        assert instance.amount == 1200.0
        assert instance.currency == "EUR"
        assert instance.category_id == "housing"
        assert instance.subcategory_id == "rent"
        assert instance.tags == ("home",)
        assert instance.recurrence_rule == template.recurrence_rule

    def test_instances_are_pending(self, generator):
        """Test that generated instances start pending even from a confirmed template."""
        instances = generator.generate(make_template(), window_end=date(2024, 6, 30))
        assert all(i.status == ExpenseStatus.PENDING for i in instances)

    def test_instances_get_fresh_ids(self, generator):
        template = make_template()
        instances = generator.generate(template, window_end=date(2024, 6, 30))
        ids = {i.id for i in instances}

        assert len(ids) == len(instances)
        assert template.id not in ids

    def test_description_marked(self, generator):
        instance = generator.generate(make_template(), window_end=date(2024, 2, 28))[0]
        assert instance.description == "Rent (recurring)"

    def test_empty_description_gets_marker_only(self, generator):
        template = make_template(description="")
        instance = generator.generate(template, window_end=date(2024, 2, 28))[0]
        assert instance.description == "(recurring)"

    def test_longest_description_still_fits(self, generator):
        """Test that a maximum-length description is shortened to make room for the marker."""
        template = make_template(description="x" * DESCRIPTION_MAX_LENGTH)
        instances = generator.generate(template, window_end=date(2024, 4, 1))

        assert len(instances) == 2
        for instance in instances:
            assert len(instance.description) == DESCRIPTION_MAX_LENGTH
            assert instance.description.endswith("x (recurring)")

    def test_longest_marker_and_description(self, calendar, audit_logger):
        marker = "m" * 40
        generator = InstanceGenerator(
            expander=RecurrenceExpander(calendar=calendar, audit_logger=audit_logger),
            audit_logger=audit_logger,
            recurring_marker=marker,
        )
        template = make_template(description="word " * 100)
        instance = generator.generate(template, window_end=date(2024, 2, 28))[0]

        assert len(instance.description) <= DESCRIPTION_MAX_LENGTH
        assert instance.description.startswith("word word")
        assert instance.description.endswith(f"word {marker}")

    def test_custom_marker(self, calendar, audit_logger):
        generator = InstanceGenerator(
            expander=RecurrenceExpander(calendar=calendar, audit_logger=audit_logger),
            audit_logger=audit_logger,
            recurring_marker="[auto]",
        )
        instance = generator.generate(make_template(), window_end=date(2024, 2, 28))[0]
        assert instance.description == "Rent [auto]"

    def test_template_not_modified(self, generator):
        template = make_template()
        generator.generate(template, window_end=date(2024, 6, 30))
        assert template.description == "Rent"
        assert template.status == ExpenseStatus.CONFIRMED

    def test_one_time_template_generates_nothing(self, generator):
        template = make_template(kind=RecurrenceKind.NONE)
        assert generator.generate(template, window_end=date(2025, 1, 1)) == []

    def test_window_before_first_repeat(self, generator):
        assert generator.generate(make_template(), window_end=date(2024, 2, 1)) == []

    def test_deterministic_apart_from_ids(self, generator):
        """Test that two calls agree on every field but the id."""
        template = make_template()
        first = generator.generate(template, window_end=date(2024, 6, 30))
        second = generator.generate(template, window_end=date(2024, 6, 30))

        assert [i.model_dump(exclude={"id"}) for i in first] == [
            i.model_dump(exclude={"id"}) for i in second
        ]
        assert {i.id for i in first}.isdisjoint({i.id for i in second})

    def test_weekend_origin_on_weekdays_rule(self, generator):
        """Test that a weekdays rule starting on Saturday keeps Monday's occurrence."""
        template = make_template(
            kind=RecurrenceKind.WEEKDAYS,
            origin_date=date(2024, 1, 6),  # Saturday
        )
        instances = generator.generate(template, window_end=date(2024, 1, 10))
        assert [i.date for i in instances] == [
            date(2024, 1, 8),
            date(2024, 1, 9),
            date(2024, 1, 10),
        ]


class TestGenerateCap:
    """Tests for max_occurrences."""

    def test_default_cap(self, generator, events):
        template = make_template(kind=RecurrenceKind.DAILY, origin_date=date(2024, 1, 1))
        instances = generator.generate(template, window_end=date(2024, 12, 31))

        assert len(instances) == DEFAULT_MAX_INSTANCES
        assert instances[0].date == date(2024, 1, 2)

        generated = [e for e in events if e.event_type == EngineEventType.INSTANCES_GENERATED]
        assert generated[-1].details == {"count": DEFAULT_MAX_INSTANCES, "capped": True}

    def test_explicit_cap(self, generator):
        template = make_template(kind=RecurrenceKind.DAILY, origin_date=date(2024, 1, 1))
        instances = generator.generate(template, window_end=date(2024, 12, 31), max_occurrences=3)

        assert [i.date for i in instances] == [
            date(2024, 1, 2),
            date(2024, 1, 3),
            date(2024, 1, 4),
        ]

    def test_zero_cap(self, generator):
        template = make_template(kind=RecurrenceKind.DAILY)
        assert generator.generate(template, window_end=date(2024, 12, 31), max_occurrences=0) == []

    def test_negative_cap_rejected(self, generator):
        with pytest.raises(ValueError):
            generator.generate(make_template(), window_end=date(2024, 12, 31), max_occurrences=-1)


class TestExcludeExisting:
    """Tests for exclude_existing."""

    def test_drops_materialized_dates(self, generator):
        template = make_template()
        instances = generator.generate(template, window_end=date(2024, 6, 30))

        fresh = exclude_existing(
            instances,
            [(template.id, date(2024, 2, 15)), (template.id, date(2024, 4, 15))],
        )
        assert [i.date for i in fresh] == [
            date(2024, 3, 15),
            date(2024, 5, 15),
            date(2024, 6, 15),
        ]

    def test_keys_from_other_templates_ignored(self, generator):
        template = make_template()
        other = make_template()
        instances = generator.generate(template, window_end=date(2024, 3, 31))

        assert exclude_existing(instances, [(other.id, date(2024, 2, 15))]) == instances
