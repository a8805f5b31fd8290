"""
Unit tests for services.usage module.
Tests the calendar-month rollover rule behind the monthly token counter.
"""
import datetime as dt

from arena.services.usage import month_changed


def utc(*args) -> dt.datetime:
    return dt.datetime(*args, tzinfo=dt.timezone.utc)


class TestMonthChanged:
    """Tests for month_changed."""

    def test_same_month(self):
        """Any two instants in the same calendar month do not trigger a reset."""
        assert month_changed(utc(2026, 3, 1), utc(2026, 3, 31, 23, 59)) is False

    def test_next_month(self):
        """Crossing into the next month triggers a reset."""
        assert month_changed(utc(2026, 3, 31, 23, 59), utc(2026, 4, 1)) is True

    def test_same_month_different_year(self):
        """Same month number in another year still counts as a new month."""
        assert month_changed(utc(2025, 4, 10), utc(2026, 4, 10)) is True

    def test_year_rollover(self):
        """December to January triggers a reset."""
        assert month_changed(utc(2025, 12, 31), utc(2026, 1, 1)) is True

    def test_never_reset(self):
        """A missing reset date always triggers a reset."""
        assert month_changed(None, utc(2026, 1, 1)) is True
