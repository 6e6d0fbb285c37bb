"""Tests for deadline urgency classification."""

from datetime import date, datetime, timedelta

import pytest

from masthead.core.urgency import (
    DeadlineItem,
    UrgencyCounts,
    UrgencyLevel,
    aggregate,
    classify,
    classify_reminder,
    days_left,
    rank_deadlines,
)


@pytest.fixture
def today():
    return date(2025, 1, 15)


class TestClassify:
    @pytest.mark.parametrize(
        "offset, expected",
        [
            (-3, UrgencyLevel.CRITICAL),
            (0, UrgencyLevel.CRITICAL),
            (1, UrgencyLevel.URGENT),
            (2, UrgencyLevel.URGENT),
            (3, UrgencyLevel.WARNING),
            (7, UrgencyLevel.WARNING),
            (8, UrgencyLevel.WAITING),
            (30, UrgencyLevel.WAITING),
        ],
    )
    def test_boundaries(self, today, offset, expected):
        assert classify(today + timedelta(days=offset), today) is expected

    def test_no_deadline_is_waiting(self, today):
        assert classify(None, today) is UrgencyLevel.WAITING

    def test_deadline_today_is_critical(self, today):
        assert classify(today, today) is UrgencyLevel.CRITICAL

    def test_time_of_day_is_ignored(self):
        deadline = datetime(2025, 1, 17, 0, 5)
        now = datetime(2025, 1, 15, 23, 55)
        assert days_left(deadline, now) == 2
        assert classify(deadline, now) is UrgencyLevel.URGENT

    def test_rejects_non_dates(self, today):
        with pytest.raises(TypeError):
            classify("2025-01-15", today)
        with pytest.raises(TypeError):
            classify(today, "2025-01-15")

    def test_rejects_bad_today_even_without_deadline(self):
        with pytest.raises(TypeError):
            classify(None, 20250115)


class TestAggregate:
    def test_folds_warning_and_waiting_into_normal(self, today):
        deadlines = [
            today,  # critical
            today - timedelta(days=1),  # critical
            today + timedelta(days=2),  # urgent
            today + timedelta(days=5),  # warning
            today + timedelta(days=20),  # waiting
            None,  # waiting
        ]
        counts = aggregate(deadlines, today)
        assert counts == UrgencyCounts(critical=2, urgent=1, normal=3)

    def test_total_matches_input(self, today):
        deadlines = [today + timedelta(days=n) for n in range(-5, 15)] + [None]
        counts = aggregate(deadlines, today)
        assert counts.total == len(deadlines)

    def test_order_independent(self, today):
        deadlines = [today, None, today + timedelta(days=4), today + timedelta(days=1)]
        assert aggregate(deadlines, today) == aggregate(list(reversed(deadlines)), today)

    def test_empty(self, today):
        assert aggregate([], today).to_dict() == {"critical": 0, "urgent": 0, "normal": 0}

    def test_accepts_generator(self, today):
        counts = aggregate((today for _ in range(3)), today)
        assert counts.critical == 3


class TestClassifyReminder:
    def test_due_or_past_is_critical(self, today):
        assert classify_reminder(today, today) is UrgencyLevel.CRITICAL
        assert classify_reminder(today - timedelta(days=4), today) is UrgencyLevel.CRITICAL

    def test_future_is_urgent(self, today):
        assert classify_reminder(today + timedelta(days=1), today) is UrgencyLevel.URGENT
        assert classify_reminder(today + timedelta(days=30), today) is UrgencyLevel.URGENT


class TestRankDeadlines:
    def test_sorted_soonest_first_with_missing_last(self, today):
        items = [
            DeadlineItem(id="a", title="No date", deadline=None),
            DeadlineItem(id="b", title="Next week", deadline=today + timedelta(days=7)),
            DeadlineItem(id="c", title="Overdue", deadline=today - timedelta(days=1)),
            DeadlineItem(id="d", title="Tomorrow", deadline=today + timedelta(days=1)),
        ]
        ranked = rank_deadlines(items, today)
        assert [r.item.id for r in ranked] == ["c", "d", "b", "a"]
        assert [r.level for r in ranked] == [
            UrgencyLevel.CRITICAL,
            UrgencyLevel.URGENT,
            UrgencyLevel.WARNING,
            UrgencyLevel.WAITING,
        ]

    def test_format_deadline(self, today):
        ranked = rank_deadlines(
            [
                DeadlineItem(id="a", title="x", deadline=date(2025, 1, 20)),
                DeadlineItem(id="b", title="y", deadline=None),
            ],
            today,
        )
        assert ranked[0].format_deadline() == "20/01/2025"
        assert ranked[1].format_deadline() == "no date"
