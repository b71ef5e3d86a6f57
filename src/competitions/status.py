"""Competition lifecycle status, derived from dates on every read."""

from datetime import datetime, tzinfo

from src.competitions.intervals import to_reference
from src.competitions.schemas import CompetitionStatus


def resolve_status(
    start_date: datetime | None,
    end_date: datetime | None,
    now: datetime,
    tz: tzinfo,
) -> CompetitionStatus:
    """Get the status of a competition at ``now``.

    Parameters
    ----------
    start_date : datetime | None
        Competition start. None until the owner starts it.
    end_date : datetime | None
        Competition end. None for open-ended competitions.
    now : datetime
        Reference time
    tz : tzinfo
        Zone used to interpret naive datetimes

    Returns
    -------
    CompetitionStatus
        lobby, scheduled, active or finished
    """
    if start_date is None:
        return CompetitionStatus.LOBBY

    now = to_reference(now, tz)

    if to_reference(start_date, tz) > now:
        return CompetitionStatus.SCHEDULED

    if end_date is not None and to_reference(end_date, tz) <= now:
        return CompetitionStatus.FINISHED

    return CompetitionStatus.ACTIVE


def has_started(start_date: datetime | None, now: datetime, tz: tzinfo) -> bool:
    return start_date is not None and to_reference(start_date, tz) <= to_reference(
        now, tz
    )
