from datetime import datetime, timedelta, timezone

from src.competitions.schemas import CompetitionStatus
from src.competitions.status import has_started, resolve_status

from conftest import NOW, TZ


def test_lobby_without_start_date():
    assert resolve_status(None, None, NOW, TZ) == CompetitionStatus.LOBBY


def test_scheduled_before_start():
    start = NOW + timedelta(hours=1)
    assert resolve_status(start, None, NOW, TZ) == CompetitionStatus.SCHEDULED


def test_active_at_exact_start():
    assert resolve_status(NOW, None, NOW, TZ) == CompetitionStatus.ACTIVE


def test_active_open_ended():
    start = NOW - timedelta(days=30)
    assert resolve_status(start, None, NOW, TZ) == CompetitionStatus.ACTIVE


def test_finished_at_exact_end():
    start = NOW - timedelta(days=7)
    assert resolve_status(start, NOW, NOW, TZ) == CompetitionStatus.FINISHED


def test_active_before_end():
    start = NOW - timedelta(days=7)
    end = NOW + timedelta(seconds=1)
    assert resolve_status(start, end, NOW, TZ) == CompetitionStatus.ACTIVE


def test_mixed_naive_and_aware():
    # Naive dates are reference-zone wall time
    start = datetime(2026, 10, 19, 16, 0)
    assert resolve_status(start, None, NOW, TZ) == CompetitionStatus.SCHEDULED
    assert resolve_status(start, None, NOW.astimezone(timezone.utc), TZ) == (
        CompetitionStatus.SCHEDULED
    )


def test_has_started():
    assert not has_started(None, NOW, TZ)
    assert has_started(NOW, NOW, TZ)
    assert not has_started(NOW + timedelta(minutes=1), NOW, TZ)
