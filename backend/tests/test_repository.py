"""
DB 리포지토리 테스트 (SQLite 인메모리).
"""
from datetime import date, datetime

import pytest

from app.core.database import get_engine
from app.domains.challenge.models import Challenge, ChallengeParticipant
from app.domains.goal.models import Action, Goal
from app.infrastructure.consistency.entities import DateRange
from app.infrastructure.consistency.exceptions import DataFetchFailure
from app.infrastructure.consistency.expected import ExpectedOccurrenceCounter
from app.infrastructure.consistency.models import ActionCompletion
from app.infrastructure.consistency.repository import ConsistencyRepository


@pytest.fixture
def seeded(sqlite_db):
    with sqlite_db() as session:
        session.add(Goal(id=10, user_id=1, title="마라톤 완주", created_at=datetime(2024, 1, 1)))
        session.add_all(
            [
                Action(
                    id=1, user_id=1, goal_id=10, title="달리기", frequency="daily",
                    created_at=datetime(2024, 1, 3, 9, 0),
                ),
                Action(
                    id=2, user_id=1, goal_id=None, title="스트레칭", frequency="custom",
                    scheduled_days=["monday", "friday"], linked_challenge_ids=[7],
                    created_at=datetime(2024, 1, 1, 9, 0),
                ),
                Action(id=3, user_id=2, goal_id=10, title="독서", created_at=datetime(2024, 1, 1)),
            ]
        )
        session.add_all(
            [
                # 생성일(1/3) 이전 기록은 세지 않는다
                ActionCompletion(action_id=1, user_id=1, completed_at=datetime(2024, 1, 2, 7, 0)),
                ActionCompletion(action_id=1, user_id=1, completed_at=datetime(2024, 1, 3, 7, 0)),
                ActionCompletion(action_id=1, user_id=1, completed_at=datetime(2024, 1, 4, 23, 59)),
                ActionCompletion(action_id=1, user_id=1, completed_at=datetime(2024, 1, 11, 6, 0)),
                ActionCompletion(action_id=2, user_id=1, completed_at=datetime(2024, 1, 5, 8, 0)),
            ]
        )
        session.add_all(
            [
                Challenge(id=100, title="30일 챌린지", duration_days=30, predetermined_activity_count=3),
                Challenge(id=101, title="7일 챌린지", duration_days=7, predetermined_activity_count=1),
            ]
        )
        session.add_all(
            [
                ChallengeParticipant(
                    challenge_id=100, user_id=1, joined_at=datetime(2024, 1, 1, 12, 0),
                    selected_activity_count=0, completion_percentage=40.0, status="active",
                ),
                ChallengeParticipant(
                    challenge_id=101, user_id=1, joined_at=datetime(2024, 1, 2),
                    selected_activity_count=2, completion_percentage=90.0, status="left",
                ),
            ]
        )
        session.commit()
    return sqlite_db


def test_list_actions_by_owner(seeded):
    actions = ConsistencyRepository.list_actions(owner_ids=[1])
    assert [a.id for a in actions] == [1, 2]
    stretch = actions[1]
    assert stretch.created_on == date(2024, 1, 1)
    assert stretch.scheduled_days == ("monday", "friday")
    assert stretch.challenge_ids == (7,)
    assert stretch.goal_id is None


def test_list_actions_by_goal_and_id(seeded):
    assert [a.id for a in ConsistencyRepository.list_actions(goal_ids=[10])] == [1, 3]
    assert [a.owner_id for a in ConsistencyRepository.list_actions(action_ids=[3])] == [2]
    assert ConsistencyRepository.list_actions(owner_ids=[]) == []


def test_list_actions_requires_criteria(seeded):
    with pytest.raises(ValueError):
        ConsistencyRepository.list_actions()


def test_count_completions_skips_events_before_creation(seeded):
    counts = ConsistencyRepository.count_completions([1, 2, 3])
    assert counts == {1: 3, 2: 1, 3: 0}


def test_count_completions_end_is_inclusive(seeded):
    counts = ConsistencyRepository.count_completions([1], DateRange(end=date(2024, 1, 4)))
    assert counts == {1: 2}
    counts = ConsistencyRepository.count_completions([1], DateRange(start=date(2024, 1, 4), end=date(2024, 1, 11)))
    assert counts == {1: 2}


def test_completion_times_sorted(seeded):
    times = ConsistencyRepository.completion_times([1], DateRange(start=date(2024, 1, 4), end=date(2024, 1, 4)))
    assert times == {1: [datetime(2024, 1, 4, 23, 59)]}
    assert ConsistencyRepository.completion_times([]) == {}


def test_list_participations_excludes_left(seeded):
    participations = ConsistencyRepository.list_participations([1])
    assert len(participations) == 1
    participation = participations[0]
    assert participation.challenge_id == 100
    assert participation.joined_on == date(2024, 1, 1)
    # 선택 활동이 없으면 챌린지 기본 활동 수
    assert participation.activities_per_day == 3
    assert participation.duration_days == 30
    assert participation.stored_completion_percentage == 40.0


def test_query_error_becomes_data_fetch_failure(seeded):
    ActionCompletion.__table__.drop(get_engine())
    with pytest.raises(DataFetchFailure) as exc_info:
        ConsistencyRepository.count_completions([1])
    assert exc_info.value.source == "action_completions"


def test_single_string_scheduled_days_kept_whole(sqlite_db):
    with sqlite_db() as session:
        session.add(
            Action(
                id=9, user_id=3, title="주간 회고", frequency="weekly",
                scheduled_days="wednesday", created_at=datetime(2024, 1, 1, 9, 0),
            )
        )
        session.commit()
    [action] = ConsistencyRepository.list_actions(action_ids=[9])
    assert action.scheduled_days == ("wednesday",)
    # 1/3, 1/10 수요일
    assert ExpectedOccurrenceCounter.count(action, date(2024, 1, 14)).expected == 2
