"""Tests for the pure window generator."""

import pytest
from datetime import date, datetime, time, timedelta

from studydash.models.constants import MAX_GENERATION_ITERATIONS
from studydash.models.items import ItemKind
from studydash.models.recurrence import RecurrencePattern
from studydash.recurrence.adapters import get_adapter
from studydash.recurrence.generator import extend


@pytest.fixture
def task_adapter():
    return get_adapter(ItemKind.TASK)


def _pattern(base, **overrides):
    return RecurrencePattern(**{**base, **overrides})


class TestWindowExtension:
    def test_weekly_monday_three_week_window(self, sample_pattern, task_adapter, now):
        """Start Thursday 2026-01-01, Mondays, 21-day window: three Mondays."""
        window_end = now.date() + timedelta(days=21)
        items = extend(sample_pattern, set(), window_end, task_adapter, now=now)

        assert [i.instance_date for i in items] == [date(2026, 1, 5), date(2026, 1, 12), date(2026, 1, 19)]

    def test_repeat_call_with_existing_dates_adds_nothing(self, sample_pattern, task_adapter, now):
        window_end = now.date() + timedelta(days=21)
        first = extend(sample_pattern, set(), window_end, task_adapter, now=now)
        existing = {i.instance_date for i in first}
        pattern = sample_pattern.model_copy(update={"instance_count": len(first)})

        assert extend(pattern, existing, window_end, task_adapter, now=now) == []

    def test_larger_window_continues_after_latest_instance(self, sample_pattern, task_adapter, now):
        existing = {date(2026, 1, 5), date(2026, 1, 12), date(2026, 1, 19)}
        pattern = sample_pattern.model_copy(update={"instance_count": 3})
        items = extend(pattern, existing, date(2026, 2, 2), task_adapter, now=now)

        assert [i.instance_date for i in items] == [date(2026, 1, 26), date(2026, 2, 2)]

    def test_window_end_is_inclusive(self, sample_pattern, task_adapter, now):
        items = extend(sample_pattern, set(), date(2026, 1, 5), task_adapter, now=now)
        assert [i.instance_date for i in items] == [date(2026, 1, 5)]

    def test_no_start_date_anchors_today(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, recurrence_type="daily", days_of_week=[], start_date=None)
        items = extend(pattern, set(), now.date() + timedelta(days=2), task_adapter, now=now)

        assert [i.instance_date for i in items] == [date(2026, 1, 1), date(2026, 1, 2), date(2026, 1, 3)]

    def test_future_start_date(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, recurrence_type="daily", start_date=date(2026, 3, 1))
        assert extend(pattern, set(), date(2026, 2, 1), task_adapter, now=now) == []

    def test_dates_strictly_increasing_and_unique(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, recurrence_type="monthly", days_of_week=[], days_of_month=[1, 15, 31])
        items = extend(pattern, set(), date(2026, 12, 31), task_adapter, now=now)
        dates = [i.instance_date for i in items]

        assert len(dates) == 36
        assert all(a < b for a, b in zip(dates, dates[1:]))


class TestEndConditions:
    def test_occurrence_count_caps_total(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, occurrence_count=2)
        items = extend(pattern, set(), date(2026, 6, 1), task_adapter, now=now)
        assert len(items) == 2

    def test_occurrence_count_counts_previous_instances(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, occurrence_count=3, instance_count=2)
        items = extend(pattern, {date(2026, 1, 5), date(2026, 1, 12)}, date(2026, 6, 1), task_adapter, now=now)
        assert [i.instance_date for i in items] == [date(2026, 1, 19)]

    def test_exhausted_occurrence_count_yields_nothing(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, occurrence_count=2, instance_count=2)
        assert extend(pattern, set(), date(2026, 6, 1), task_adapter, now=now) == []

    def test_end_date_is_inclusive_hard_stop(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, end_date=date(2026, 1, 12))
        items = extend(pattern, set(), date(2026, 6, 1), task_adapter, now=now)
        assert [i.instance_date for i in items] == [date(2026, 1, 5), date(2026, 1, 12)]

    def test_end_date_before_first_candidate(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, end_date=date(2026, 1, 3))
        assert extend(pattern, set(), date(2026, 6, 1), task_adapter, now=now) == []

    def test_inactive_pattern_generates_nothing(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, is_active=False)
        assert extend(pattern, set(), date(2026, 6, 1), task_adapter, now=now) == []

    def test_iteration_ceiling_bounds_one_pass(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, recurrence_type="daily", days_of_week=[])
        items = extend(pattern, set(), date(2040, 1, 1), task_adapter, now=now)
        assert len(items) == MAX_GENERATION_ITERATIONS


class TestDuplicateSuppression:
    def test_existing_dates_are_skipped_not_counted(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, occurrence_count=3, instance_count=1)
        items = extend(
            pattern,
            {date(2026, 1, 12)},
            date(2026, 6, 1),
            task_adapter,
            last_instance_date=date(2026, 1, 5),
            now=now,
        )
        assert [i.instance_date for i in items] == [date(2026, 1, 19), date(2026, 1, 26)]


class TestMaterializedInstances:
    def test_linkage_fields(self, sample_pattern, task_adapter, now):
        items = extend(sample_pattern, set(), date(2026, 1, 19), task_adapter, now=now)

        assert len({i.id for i in items}) == len(items)
        for item in items:
            assert item.user_id == sample_pattern.user_id
            assert item.recurring_pattern_id == sample_pattern.id
            assert item.is_recurring is True
            assert item.title == "Weekly review"
            assert item.status == "open"
            assert item.created_at == now

    def test_due_time_defaults_to_end_of_day(self, sample_pattern, task_adapter, now):
        items = extend(sample_pattern, set(), date(2026, 1, 5), task_adapter, now=now)
        assert items[0].due_at == datetime(2026, 1, 5, 23, 59)

    def test_explicit_due_time_is_merged(self, sample_pattern_base, task_adapter, now):
        pattern = _pattern(sample_pattern_base, template={"title": "Gym", "due_time": "08:30"})
        items = extend(pattern, set(), date(2026, 1, 5), task_adapter, now=now)
        assert items[0].due_at == datetime.combine(date(2026, 1, 5), time(8, 30))
