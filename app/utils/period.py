"""통계 기간 유틸리티.

Statistics period helpers — Period start boundaries and daily trend buckets,
all computed in UTC.
"""

from datetime import date, datetime, timedelta, timezone

PERIODS: tuple[str, ...] = ("today", "week", "month", "year")
PERIOD_PATTERN: str = "^(today|week|month|year)$"


def as_utc(value: datetime) -> datetime:
    # SQLite는 tz 정보 없이 반환 — stored values are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def period_start(period: str, now: datetime) -> datetime:
    """기간 시작 시각 — 주는 일요일부터 (weeks start on Sunday)."""
    today = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
    if period == "today":
        return today
    if period == "week":
        return today - timedelta(days=(today.weekday() + 1) % 7)
    if period == "year":
        return today.replace(month=1, day=1)
    return today.replace(day=1)


def trend_dates(days: int, now: datetime) -> list[date]:
    """오늘을 포함한 최근 ``days``일 날짜 목록 (oldest first)."""
    today: date = now.astimezone(timezone.utc).date()
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def trend_start(days: int, now: datetime) -> datetime:
    first: date = trend_dates(days, now)[0]
    return datetime(first.year, first.month, first.day, tzinfo=timezone.utc)


def percentage(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total > 0 else 0
