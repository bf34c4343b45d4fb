"""Relative date keywords (``today``, ``last_month``, ``last_x_days``) as ranges."""

from __future__ import annotations

import calendar
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from .exceptions import UnsupportedOperatorError

if TYPE_CHECKING:
    from collections.abc import Callable

    from .config import DateSettings


def system_clock(tz: ZoneInfo) -> datetime:
    return datetime.now(tz)


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def _end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max, tzinfo=moment.tzinfo)


def _start_of_week(moment: datetime, week_start: str) -> datetime:
    first = 0 if week_start == "monday" else 6
    delta = (moment.weekday() - first) % 7
    return _start_of_day(moment - timedelta(days=delta))


def _month_bounds(year: int, month: int, tz: Any) -> tuple[datetime, datetime]:
    last_day = calendar.monthrange(year, month)[1]
    return (
        datetime(year, month, 1, tzinfo=tz),
        datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=tz),
    )


def _year_bounds(year: int, tz: Any) -> tuple[datetime, datetime]:
    return (
        datetime(year, 1, 1, tzinfo=tz),
        datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=tz),
    )


def relative_range(
    keyword: str,
    now: datetime,
    *,
    days: int | None = None,
    week_start: str = "monday",
) -> tuple[datetime, datetime]:
    """
    Inclusive ``[start, end]`` range for *keyword* relative to *now*.

    ``last_x_days`` spans ``[now - days, now]`` and ``next_x_days``
    ``[now, now + days]``; calendar keywords span whole days/weeks/months/years.
    """
    tz = now.tzinfo
    if keyword == "today":
        return _start_of_day(now), _end_of_day(now)
    if keyword == "yesterday":
        day = now - timedelta(days=1)
        return _start_of_day(day), _end_of_day(day)
    if keyword in ("this_week", "last_week"):
        start = _start_of_week(now, week_start)
        if keyword == "last_week":
            start -= timedelta(days=7)
        return start, _end_of_day(start + timedelta(days=6))
    if keyword == "this_month":
        return _month_bounds(now.year, now.month, tz)
    if keyword == "last_month":
        if now.month == 1:
            year, month = now.year - 1, 12
        else:
            year, month = now.year, now.month - 1
        return _month_bounds(year, month, tz)
    if keyword == "this_year":
        return _year_bounds(now.year, tz)
    if keyword == "last_year":
        return _year_bounds(now.year - 1, tz)
    if keyword == "last_x_days":
        return now - timedelta(days=days or 0), now
    if keyword == "next_x_days":
        return now, now + timedelta(days=days or 0)
    raise UnsupportedOperatorError(
        keyword,
        [
            "today", "yesterday", "this_week", "last_week", "this_month",
            "last_month", "this_year", "last_year", "last_x_days", "next_x_days",
        ],
    )  # fmt: skip


class RelativeDateResolver:
    """Resolves keywords against the configured timezone and output format."""

    def __init__(
        self,
        settings: DateSettings,
        clock: Callable[[ZoneInfo], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._tz = ZoneInfo(settings.timezone)
        self._clock = clock or system_clock

    def resolve(self, keyword: str, days: int | None = None) -> tuple[Any, Any]:
        start, end = relative_range(
            keyword,
            self._clock(self._tz),
            days=days,
            week_start=self._settings.week_start,
        )
        fmt = self._settings.format
        if fmt is None:
            return start, end
        return start.strftime(fmt), end.strftime(fmt)
