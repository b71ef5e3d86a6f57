"""Required-option checks per competition type."""

from datetime import datetime
from typing import Optional

from src.competitions.exceptions import ConfigurationError
from src.competitions.schemas import CompetitionOptions, CompetitionType

REQUIRED_OPTIONS: dict[CompetitionType, tuple[str, ...]] = {
    CompetitionType.STREAKS: ("goal", "unit", "interval"),
    CompetitionType.APEX: ("unit",),
    CompetitionType.CLASH: ("unit", "interval"),
    CompetitionType.TARGETS: ("goal", "unit", "interval"),
    CompetitionType.RACE: ("goal", "unit"),
}

# Types that need at least one of these fields to be able to end
ENDING_OPTIONS: dict[CompetitionType, tuple[str, ...]] = {
    CompetitionType.APEX: ("end_date", "duration_hours"),
    CompetitionType.CLASH: ("first_to", "end_date", "duration_hours"),
    CompetitionType.TARGETS: ("first_to", "end_date", "duration_hours"),
}


def find_missing_keys(
    competition_type: CompetitionType,
    options: CompetitionOptions,
    end_date: Optional[datetime],
    workouts: list,
    owner: Optional[str],
) -> list[str]:
    """List every required key absent from a competition configuration."""
    missing: list[str] = []

    if not workouts:
        missing.append("workouts")

    if not owner:
        missing.append("owner")

    for key in REQUIRED_OPTIONS[competition_type]:
        if getattr(options, key) is None:
            missing.append(key)

    ending = ENDING_OPTIONS.get(competition_type)
    if ending:
        values = {"end_date": end_date, **options.model_dump()}
        if all(values[key] is None for key in ending):
            missing.append(f"({' or '.join(ending)})")

    return missing


def find_invalid_keys(
    options: CompetitionOptions,
    start_date: Optional[datetime],
    end_date: Optional[datetime],
) -> list[str]:
    """List every present key whose value cannot be used."""
    invalid: list[str] = []

    if options.goal is not None and options.goal <= 0:
        invalid.append("goal")
    if options.first_to is not None and options.first_to < 1:
        invalid.append("first_to")
    if options.duration_hours is not None and options.duration_hours < 1:
        invalid.append("duration_hours")
    if options.lives is not None and options.lives < 1:
        invalid.append("lives")

    if start_date is not None and end_date is not None and end_date <= start_date:
        invalid.append("end_date")

    return invalid


def validate_competition(
    competition_type: CompetitionType,
    options: CompetitionOptions,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    workouts: list,
    owner: Optional[str],
) -> None:
    """Check a proposed competition configuration.

    Raises
    ------
    ConfigurationError
        Listing every missing and invalid key at once
    """
    missing = find_missing_keys(competition_type, options, end_date, workouts, owner)
    invalid = find_invalid_keys(options, start_date, end_date)

    if missing or invalid:
        raise ConfigurationError(missing, invalid)
