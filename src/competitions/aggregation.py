"""Group raw daily activity samples into per-interval totals."""

from collections.abc import Iterable
from datetime import date

from src.competitions.intervals import interval_key
from src.competitions.schemas import DailyActivitySample, Interval


def aggregate_intervals(
    samples: Iterable[DailyActivitySample],
    interval_keys: list[str],
    interval: Interval,
    activities: Iterable[str] | None = None,
    window: tuple[date, date] | None = None,
) -> dict[str, float]:
    """Sum one user's daily samples per interval.

    Parameters
    ----------
    samples : Iterable[DailyActivitySample]
        Daily totals for a single user, in any order
    interval_keys : list[str]
        Every elapsed interval key, ending with the current interval
    interval : Interval
        Bucket granularity
    activities : Iterable[str] | None
        Qualifying activity kinds. Samples tagged with another kind are
        ignored; untagged samples are assumed to be pre-filtered.
    window : tuple[date, date] | None
        First and last day (inclusive) that may contribute

    Returns
    -------
    dict[str, float]
        Total per key for every key in ``interval_keys``, zero when the
        user had no activity. Keys outside the range are never present.
    """
    allowed = {str(getattr(kind, "value", kind)) for kind in activities or ()}
    totals = {key: 0.0 for key in interval_keys}

    for sample in samples:
        if allowed and sample.activity is not None and sample.activity not in allowed:
            continue
        if window is not None and not (window[0] <= sample.local_date <= window[1]):
            continue

        key = interval_key(sample.local_date, interval)
        if key in totals:
            totals[key] += sample.distance

    return totals
