"""Pure functions for bucketing dates into competition intervals.

Every key is computed in a single reference time zone so that all
participants share the same buckets regardless of where they are.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from src.competitions.schemas import Interval


def to_reference(moment: datetime, tz: tzinfo) -> datetime:
    """Express a datetime in the reference zone.

    Naive datetimes are taken to already be reference-zone wall time.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def to_utc(moment: Optional[datetime], tz: tzinfo) -> Optional[datetime]:
    """Aware UTC form of a datetime for storage.

    Naive datetimes are read as reference-zone wall time, as everywhere else.
    """
    if moment is None:
        return None
    return to_reference(moment, tz).astimezone(timezone.utc)


def _as_date(moment: date | datetime, tz: tzinfo | None) -> date:
    if isinstance(moment, datetime):
        if tz is not None:
            moment = to_reference(moment, tz)
        return moment.date()
    return moment


def _week_ending(day: date) -> date:
    # weekday(): Monday=0 .. Sunday=6
    return day + timedelta(days=6 - day.weekday())


def interval_key(
    moment: date | datetime, interval: Interval, tz: tzinfo | None = None
) -> str:
    """Map a date to the key of the interval containing it.

    Parameters
    ----------
    moment : date | datetime
        Calendar date, or an instant converted to the reference zone first
    interval : Interval
        Bucket granularity
    tz : tzinfo | None
        Reference zone, used only when ``moment`` is a datetime

    Returns
    -------
    str
        - day: ``YYYY-MM-DD``
        - week: ``YYYY-MM-DD`` of the Sunday ending the week
        - month: ``YYYY-MM``
    """
    day = _as_date(moment, tz)

    if interval == Interval.DAY:
        return day.strftime("%Y-%m-%d")
    elif interval == Interval.WEEK:
        return _week_ending(day).strftime("%Y-%m-%d")
    elif interval == Interval.MONTH:
        return day.strftime("%Y-%m")
    else:
        raise ValueError(f"Invalid interval: {interval}")


def interval_range(first_day: date, last_day: date, interval: Interval) -> list[str]:
    """Ordered interval keys from the bucket of first_day to that of last_day.

    Parameters
    ----------
    first_day : date
        First day covered (inclusive)
    last_day : date
        Last day covered (inclusive)
    interval : Interval
        Bucket granularity

    Returns
    -------
    list[str]
        Chronological keys, empty when last_day is before first_day
    """
    if last_day < first_day:
        return []

    keys: list[str] = []

    if interval == Interval.DAY:
        cursor = first_day
        while cursor <= last_day:
            keys.append(interval_key(cursor, interval))
            cursor += timedelta(days=1)

    elif interval == Interval.WEEK:
        cursor = _week_ending(first_day)
        end = _week_ending(last_day)
        while cursor <= end:
            keys.append(interval_key(cursor, interval))
            cursor += timedelta(days=7)

    elif interval == Interval.MONTH:
        year, month = first_day.year, first_day.month
        while (year, month) <= (last_day.year, last_day.month):
            keys.append(f"{year:04d}-{month:02d}")
            if month == 12:
                year, month = year + 1, 1
            else:
                month += 1

    else:
        raise ValueError(f"Invalid interval: {interval}")

    return keys


def competition_window(
    start_date: datetime, end_date: datetime | None, now: datetime, tz: tzinfo
) -> tuple[date, date]:
    """First and last reference-zone days a competition has covered so far.

    Parameters
    ----------
    start_date : datetime
        Competition start
    end_date : datetime | None
        Competition end (exclusive). None for open-ended competitions.
    now : datetime
        Reference time

    Returns
    -------
    tuple[date, date]
        (first_day, last_day), both inclusive. last_day is the day of
        ``now`` while the competition is running, otherwise the last day
        before ``end_date``.
    """
    first_day = to_reference(start_date, tz).date()
    last_moment = to_reference(now, tz)
    if end_date is not None:
        end_moment = to_reference(end_date, tz) - datetime.resolution
        last_moment = min(last_moment, end_moment)
    return first_day, last_moment.date()
