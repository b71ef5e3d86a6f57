"""Pure functions for scoring calculations.

No database access - each competition type has one scoring function that
takes every accepted participant's interval totals and returns their scores.

All scorers share the signature::

    scorer(totals, interval_keys, current_key, options) -> {user_id: ScoreResult}

where ``totals`` maps user_id to a gap-free ``{interval_key: distance}``
dict covering ``interval_keys``, and ``current_key`` is the in-progress
interval (None once the competition has finished).
"""

from typing import Callable, Optional

from src.competitions.schemas import CompetitionOptions, CompetitionType, ScoreResult

Totals = dict[str, dict[str, float]]
Scorer = Callable[
    [Totals, list[str], Optional[str], CompetitionOptions], dict[str, ScoreResult]
]


def closed_intervals(interval_keys: list[str], current_key: Optional[str]) -> list[str]:
    """Interval keys that have fully elapsed."""
    return [key for key in interval_keys if key != current_key]


def score_streaks(
    totals: Totals,
    interval_keys: list[str],
    current_key: Optional[str],
    options: CompetitionOptions,
) -> dict[str, ScoreResult]:
    """Survival scoring with lives.

    Each closed interval meeting the goal adds a point. A miss costs a life;
    losing the last life wipes the streak and restores every life. The
    in-progress interval is never penalized.
    """
    lives = options.lives or 1
    goal = options.goal or 0
    closed = closed_intervals(interval_keys, current_key)

    results: dict[str, ScoreResult] = {}
    for user_id, intervals in totals.items():
        score = 0
        remaining_lives = lives

        for key in closed:
            if intervals.get(key, 0.0) >= goal:
                score += 1
                continue

            remaining_lives -= 1
            if remaining_lives <= 0:
                score = 0
                remaining_lives = lives

        results[user_id] = ScoreResult(
            intervals=dict(intervals), score=score, remaining_lives=remaining_lives
        )

    return results


def score_cumulative(
    totals: Totals,
    interval_keys: list[str],
    current_key: Optional[str],
    options: CompetitionOptions,
) -> dict[str, ScoreResult]:
    """Total distance over every elapsed interval, the current one included.

    Used by both apex and race; "first to the goal" for race is decided
    from the score by the caller.
    """
    return {
        user_id: ScoreResult(
            intervals=dict(intervals),
            score=sum(intervals.get(key, 0.0) for key in interval_keys),
        )
        for user_id, intervals in totals.items()
    }


def score_clash(
    totals: Totals,
    interval_keys: list[str],
    current_key: Optional[str],
    options: CompetitionOptions,
) -> dict[str, ScoreResult]:
    """Interval majority: the furthest user(s) of each closed interval score.

    Ties at the maximum all score. An interval where nobody moved awards
    nothing.
    """
    scores = {user_id: 0 for user_id in totals}

    for key in closed_intervals(interval_keys, current_key):
        maximum = max(
            (intervals.get(key, 0.0) for intervals in totals.values()), default=0.0
        )
        if maximum <= 0:
            continue

        for user_id, intervals in totals.items():
            if intervals.get(key, 0.0) == maximum:
                scores[user_id] += 1

    return {
        user_id: ScoreResult(intervals=dict(intervals), score=scores[user_id])
        for user_id, intervals in totals.items()
    }


def score_targets(
    totals: Totals,
    interval_keys: list[str],
    current_key: Optional[str],
    options: CompetitionOptions,
) -> dict[str, ScoreResult]:
    """Interval threshold: a point for every interval at or above the goal.

    The in-progress interval counts as soon as the goal is reached.
    """
    goal = options.goal or 0
    return {
        user_id: ScoreResult(
            intervals=dict(intervals),
            score=sum(1 for key in interval_keys if intervals.get(key, 0.0) >= goal),
        )
        for user_id, intervals in totals.items()
    }


SCORERS: dict[CompetitionType, Scorer] = {
    CompetitionType.STREAKS: score_streaks,
    CompetitionType.APEX: score_cumulative,
    CompetitionType.CLASH: score_clash,
    CompetitionType.TARGETS: score_targets,
    CompetitionType.RACE: score_cumulative,
}


def calculate_scores(
    competition_type: CompetitionType,
    totals: Totals,
    interval_keys: list[str],
    current_key: Optional[str],
    options: CompetitionOptions,
) -> dict[str, ScoreResult]:
    """Score every participant with the scorer for ``competition_type``."""
    scorer = SCORERS[competition_type]
    return scorer(totals, interval_keys, current_key, options)


def calculate_winners(
    competition_type: CompetitionType,
    scores: dict[str, ScoreResult],
    options: CompetitionOptions,
) -> list[str]:
    """Users that reached the competition's target.

    Parameters
    ----------
    competition_type : CompetitionType
        Competition type
    scores : dict[str, ScoreResult]
        Scores from ``calculate_scores``
    options : CompetitionOptions
        Competition options

    Returns
    -------
    list[str]
        For race, users whose total reached ``goal``. For clash and targets,
        users with at least ``first_to`` points. Empty for other types or
        when no target is configured.
    """
    if competition_type == CompetitionType.RACE:
        target = options.goal
    elif competition_type in (CompetitionType.CLASH, CompetitionType.TARGETS):
        target = options.first_to
    else:
        target = None

    if target is None:
        return []

    return [user_id for user_id, result in scores.items() if result.score >= target]
