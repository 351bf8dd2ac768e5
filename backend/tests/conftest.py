"""
공용 픽스처: 인메모리 스토어, SQLite 인메모리 DB.
"""
from datetime import date, datetime

import pytest

from app.infrastructure.consistency.entities import (
    ChallengeParticipation,
    CompletionEvent,
    RecurringAction,
)
from app.infrastructure.consistency.ledger import InMemoryConsistencyStore

AS_OF = date(2024, 1, 10)


def make_action(
    action_id: int,
    owner_id: int = 1,
    created_on: date = date(2024, 1, 1),
    frequency: str | None = "daily",
    goal_id: int | None = None,
    scheduled_days: tuple[str, ...] = (),
    title: str | None = None,
) -> RecurringAction:
    return RecurringAction(
        id=action_id,
        title=title or f"action {action_id}",
        owner_id=owner_id,
        created_on=created_on,
        frequency=frequency,
        goal_id=goal_id,
        scheduled_days=scheduled_days,
    )


def make_events(action: RecurringAction, days: list[date], start_id: int = 1) -> list[CompletionEvent]:
    return [
        CompletionEvent(
            id=start_id + i,
            action_id=action.id,
            owner_id=action.owner_id,
            occurred_at=datetime(d.year, d.month, d.day, 8, 30),
        )
        for i, d in enumerate(days)
    ]


def make_participation(
    participant_id: int = 1,
    challenge_id: int = 100,
    joined_on: date = date(2024, 1, 1),
    activities_per_day: int = 2,
    duration_days: int = 30,
    stored_completion_percentage: float = 50.0,
    status: str = "active",
) -> ChallengeParticipation:
    return ChallengeParticipation(
        participant_id=participant_id,
        challenge_id=challenge_id,
        joined_on=joined_on,
        activities_per_day=activities_per_day,
        duration_days=duration_days,
        stored_completion_percentage=stored_completion_percentage,
        status=status,
    )


def day_range(start: date, count: int) -> list[date]:
    return [date.fromordinal(start.toordinal() + i) for i in range(count)]


class FailingSource:
    """모든 조회에서 DataFetchFailure를 던지는 협력자."""

    def __init__(self, source: str = "actions"):
        self.source = source

    def _fail(self, *args, **kwargs):
        from app.infrastructure.consistency.exceptions import DataFetchFailure

        raise DataFetchFailure(self.source, "connection reset")

    list_actions = _fail
    count_completions = _fail
    completion_times = _fail
    list_participations = _fail


class CountingStore(InMemoryConsistencyStore):
    """조회 횟수를 세는 인메모리 스토어. 일괄 조회 횟수 검증용."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls: list[str] = []

    def list_actions(self, **kwargs):
        self.calls.append("list_actions")
        return super().list_actions(**kwargs)

    def count_completions(self, action_ids, date_range=None):
        self.calls.append("count_completions")
        return super().count_completions(action_ids, date_range)

    def list_participations(self, user_ids):
        self.calls.append("list_participations")
        return super().list_participations(user_ids)


@pytest.fixture
def scenario_store() -> InMemoryConsistencyStore:
    """
    사용자 1: 목표 10(daily 7/10 완료), 목표 20(weekends 2/2 완료), 목표 없는 행동(weekdays 0회).
    사용자 2: 목표 30(three_per_week 1회 완료).
    """
    daily = make_action(1, goal_id=10)
    weekends = make_action(2, goal_id=20, frequency="weekends")
    loose = make_action(3, frequency="weekdays")
    other = make_action(4, owner_id=2, goal_id=30, frequency="three_per_week")
    events = (
        make_events(daily, day_range(date(2024, 1, 1), 7), start_id=1)
        + make_events(weekends, [date(2024, 1, 6), date(2024, 1, 7)], start_id=100)
        + make_events(other, [date(2024, 1, 3)], start_id=200)
    )
    return InMemoryConsistencyStore(
        actions=[daily, weekends, loose, other],
        events=events,
        participations=[make_participation(participant_id=1)],
    )


@pytest.fixture
def sqlite_db():
    """테스트마다 새 SQLite 인메모리 DB."""
    from app.core.database import configure_database, create_all

    session_factory = configure_database("sqlite://")
    create_all()
    yield session_factory
    configure_database("sqlite://")
