"""Tests for the recurrence stepping functions."""

import pytest
from datetime import date

from studydash.models.recurrence import RecurrenceRule, RecurrenceType
from studydash.recurrence.stepping import first_occurrence, next_occurrence, weekday_number


def _rule(recurrence_type, **kwargs):
    return RecurrenceRule(recurrence_type=recurrence_type, **kwargs)


class TestWeekdayNumber:
    def test_sunday_is_zero(self):
        assert weekday_number(date(2026, 1, 4)) == 0  # Sunday

    def test_thursday(self):
        assert weekday_number(date(2026, 1, 1)) == 4


class TestNextOccurrence:
    """next_occurrence is strictly after the anchor for every rule family."""

    def test_daily(self):
        assert next_occurrence(date(2026, 1, 1), _rule("daily")) == date(2026, 1, 2)

    def test_daily_across_year_end(self):
        assert next_occurrence(date(2026, 12, 31), _rule("daily")) == date(2027, 1, 1)

    def test_weekly_without_days_steps_seven(self):
        assert next_occurrence(date(2026, 1, 1), _rule("weekly")) == date(2026, 1, 8)

    def test_weekly_with_days_picks_next_matching_weekday(self):
        # Thursday -> next Monday
        assert next_occurrence(date(2026, 1, 1), _rule("weekly", days_of_week=[1])) == date(2026, 1, 5)

    def test_weekly_with_several_days(self):
        # Monday -> Wednesday of the same week
        assert next_occurrence(date(2026, 1, 5), _rule("weekly", days_of_week=[1, 3])) == date(2026, 1, 7)

    def test_weekly_same_weekday_as_anchor_goes_a_week_ahead(self):
        assert next_occurrence(date(2026, 1, 1), _rule("weekly", days_of_week=[4])) == date(2026, 1, 8)

    def test_biweekly_without_days_steps_fourteen(self):
        assert next_occurrence(date(2026, 1, 1), _rule("biweekly")) == date(2026, 1, 15)

    def test_biweekly_with_anchor_weekday(self):
        # Monday -> Monday two weeks later
        assert next_occurrence(date(2026, 1, 5), _rule("biweekly", days_of_week=[1])) == date(2026, 1, 19)

    def test_biweekly_other_weekday_falls_back_to_fourteen_days(self):
        # Only anchor+14 can satisfy the two-week gap within the probe range.
        assert next_occurrence(date(2026, 1, 5), _rule("biweekly", days_of_week=[3])) == date(2026, 1, 19)

    def test_monthly_without_days_steps_thirty(self):
        assert next_occurrence(date(2026, 1, 1), _rule("monthly")) == date(2026, 1, 31)

    def test_monthly_later_day_in_same_month(self):
        assert next_occurrence(date(2026, 1, 1), _rule("monthly", days_of_month=[15])) == date(2026, 1, 15)

    def test_monthly_rolls_into_next_month(self):
        assert next_occurrence(date(2026, 1, 15), _rule("monthly", days_of_month=[15])) == date(2026, 2, 15)

    def test_monthly_smallest_day_next_month(self):
        assert next_occurrence(date(2026, 1, 20), _rule("monthly", days_of_month=[1, 15])) == date(2026, 2, 1)

    def test_monthly_rolls_into_next_year(self):
        assert next_occurrence(date(2026, 12, 10), _rule("monthly", days_of_month=[5])) == date(2027, 1, 5)

    def test_monthly_31_clamps_to_30_day_month(self):
        assert next_occurrence(date(2026, 4, 10), _rule("monthly", days_of_month=[31])) == date(2026, 4, 30)

    def test_monthly_31_after_clamped_day_goes_to_next_month(self):
        assert next_occurrence(date(2026, 4, 30), _rule("monthly", days_of_month=[31])) == date(2026, 5, 31)

    def test_monthly_31_clamps_to_february(self):
        assert next_occurrence(date(2026, 1, 31), _rule("monthly", days_of_month=[31])) == date(2026, 2, 28)

    def test_monthly_clamped_day_in_leap_february(self):
        assert next_occurrence(date(2028, 2, 1), _rule("monthly", days_of_month=[30])) == date(2028, 2, 29)

    def test_monthly_at_clamped_end_of_february_moves_on(self):
        assert next_occurrence(date(2026, 2, 28), _rule("monthly", days_of_month=[31])) == date(2026, 3, 31)

    def test_custom_interval(self):
        assert next_occurrence(date(2026, 1, 1), _rule("custom", interval_days=3)) == date(2026, 1, 4)

    @pytest.mark.parametrize("interval", [None, 0, -2])
    def test_custom_without_positive_interval_uses_seven(self, interval):
        assert next_occurrence(date(2026, 1, 1), _rule("custom", interval_days=interval)) == date(2026, 1, 8)


class TestMalformedRules:
    """Out-of-range values are ignored; an emptied set behaves like the family fallback."""

    def test_weekly_out_of_range_days_use_fallback(self):
        assert next_occurrence(date(2026, 1, 1), _rule("weekly", days_of_week=[9, -1])) == date(2026, 1, 8)

    def test_weekly_mixed_days_keep_valid_ones(self):
        assert next_occurrence(date(2026, 1, 1), _rule("weekly", days_of_week=[9, 1])) == date(2026, 1, 5)

    def test_biweekly_out_of_range_days_use_fallback(self):
        assert next_occurrence(date(2026, 1, 1), _rule("biweekly", days_of_week=[7])) == date(2026, 1, 15)

    def test_monthly_out_of_range_days_use_fallback(self):
        assert next_occurrence(date(2026, 1, 1), _rule("monthly", days_of_month=[0, 40])) == date(2026, 1, 31)

    def test_none_day_lists_are_empty(self):
        rule = _rule("weekly", days_of_week=None)
        assert rule.days_of_week == []
        assert next_occurrence(date(2026, 1, 1), rule) == date(2026, 1, 8)


class TestAlwaysAdvances:
    @pytest.mark.parametrize(
        "rule",
        [
            _rule("daily"),
            _rule("weekly"),
            _rule("weekly", days_of_week=[0, 2, 4, 6]),
            _rule("biweekly"),
            _rule("biweekly", days_of_week=[5]),
            _rule("monthly"),
            _rule("monthly", days_of_month=[1, 29, 30, 31]),
            _rule("custom", interval_days=1),
            _rule("custom"),
        ],
    )
    def test_strictly_after_anchor_for_a_year_of_anchors(self, rule):
        anchor = date(2026, 1, 1)
        for _ in range(400):
            nxt = next_occurrence(anchor, rule)
            assert nxt > anchor
            anchor = nxt if nxt.year < 2030 else date(2026, 1, 1)


class TestFirstOccurrence:
    """First date of a pattern with no instances yet."""

    def test_weekly_start_on_selected_weekday_counts(self):
        assert first_occurrence(date(2026, 1, 1), _rule("weekly", days_of_week=[4])) == date(2026, 1, 1)

    def test_weekly_start_on_other_weekday_moves_forward(self):
        assert first_occurrence(date(2026, 1, 1), _rule("weekly", days_of_week=[1])) == date(2026, 1, 5)

    def test_biweekly_first_hit_is_within_first_week(self):
        assert first_occurrence(date(2026, 1, 1), _rule("biweekly", days_of_week=[1])) == date(2026, 1, 5)

    def test_monthly_start_on_selected_day_counts(self):
        assert first_occurrence(date(2026, 1, 1), _rule("monthly", days_of_month=[1])) == date(2026, 1, 1)

    def test_monthly_start_before_selected_day(self):
        assert first_occurrence(date(2026, 1, 1), _rule("monthly", days_of_month=[15])) == date(2026, 1, 15)

    @pytest.mark.parametrize(
        "rule",
        [
            _rule("daily"),
            _rule("weekly"),
            _rule("biweekly"),
            _rule("monthly"),
            _rule("custom", interval_days=10),
        ],
    )
    def test_interval_rules_start_on_start_date(self, rule):
        assert first_occurrence(date(2026, 1, 1), rule) == date(2026, 1, 1)

    def test_recurrence_type_accepts_enum(self):
        rule = RecurrenceRule(recurrence_type=RecurrenceType.DAILY)
        assert first_occurrence(date(2026, 3, 3), rule) == date(2026, 3, 3)
