"""통계 기간 계산 테스트."""

from datetime import date, datetime, timezone

from app.utils.period import as_utc, percentage, period_start, trend_dates, trend_start

# 2026-10-14는 수요일 (a Wednesday)
NOW = datetime(2026, 10, 14, 15, 30, tzinfo=timezone.utc)


class TestPeriodStart:

    def test_today(self):
        assert period_start("today", NOW) == datetime(2026, 10, 14, tzinfo=timezone.utc)

    def test_week_starts_on_sunday(self):
        assert period_start("week", NOW) == datetime(2026, 10, 11, tzinfo=timezone.utc)

    def test_week_on_sunday_is_same_day(self):
        sunday = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
        assert period_start("week", sunday) == datetime(2026, 10, 18, tzinfo=timezone.utc)

    def test_month(self):
        assert period_start("month", NOW) == datetime(2026, 10, 1, tzinfo=timezone.utc)

    def test_year(self):
        assert period_start("year", NOW) == datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestTrendWindow:

    def test_dates_end_today(self):
        assert trend_dates(3, NOW) == [date(2026, 10, 12), date(2026, 10, 13), date(2026, 10, 14)]

    def test_start_is_midnight_of_first_day(self):
        assert trend_start(3, NOW) == datetime(2026, 10, 12, tzinfo=timezone.utc)

    def test_naive_values_are_utc(self):
        assert as_utc(datetime(2026, 10, 14, 1, 0)).tzinfo is timezone.utc

    def test_percentage(self):
        assert percentage(1, 3) == 33.33
        assert percentage(0, 0) == 0
