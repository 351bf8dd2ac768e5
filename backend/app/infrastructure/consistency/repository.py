"""
일관성 엔진의 외부 조회 계층: DAO/리포지토리 패턴.
행동 목록, 완료 집계, 챌린지 참가를 각각 단일 쿼리로 읽어 엔티티로 변환한다.
DB 오류는 DataFetchFailure로 바꿔 올리며, 0 결과로의 강등은 서비스 진입점이 맡는다.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Iterable, Iterator

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from app.core.database import get_session_factory
from app.domains.challenge.models import Challenge, ChallengeParticipant
from app.domains.goal.models import Action
from app.infrastructure.consistency.constants import PARTICIPATION_LEFT
from app.infrastructure.consistency.entities import (
    ChallengeParticipation,
    DateRange,
    RecurringAction,
)
from app.infrastructure.consistency.exceptions import DataFetchFailure
from app.infrastructure.consistency.models import ActionCompletion

logger = logging.getLogger(__name__)


@contextmanager
def _fetching(source: str) -> Iterator:
    """세션을 열고 SQLAlchemy 오류를 DataFetchFailure로 변환."""
    session_factory = get_session_factory()
    try:
        with session_factory() as session:
            yield session
    except SQLAlchemyError as e:
        logger.warning("[consistency] %s query failed: %s", source, e)
        raise DataFetchFailure(source, str(e), cause=e) from e


def _as_tuple(value) -> tuple:
    # JSON 컬럼에 배열 대신 단일 문자열이 저장된 행도 있다
    if isinstance(value, str):
        return (value,)
    return tuple(value or ())


def _to_recurring_action(row: Action) -> RecurringAction:
    return RecurringAction(
        id=row.id,
        title=row.title,
        owner_id=row.user_id,
        created_on=row.created_at.date(),
        frequency=row.frequency,
        goal_id=row.goal_id,
        scheduled_days=_as_tuple(row.scheduled_days),
        challenge_ids=_as_tuple(row.linked_challenge_ids),
    )


def _completion_filters(ids: list[int], date_range: DateRange | None) -> list:
    # 행동 생성일 이전 날짜로 기록된 완료는 귀속하지 않는다
    filters = [
        ActionCompletion.action_id.in_(ids),
        func.date(ActionCompletion.completed_at) >= func.date(Action.created_at),
    ]
    if date_range is not None and date_range.start is not None:
        filters.append(ActionCompletion.completed_at >= datetime.combine(date_range.start, time.min))
    if date_range is not None and date_range.end is not None:
        end_exclusive = datetime.combine(date_range.end + timedelta(days=1), time.min)
        filters.append(ActionCompletion.completed_at < end_exclusive)
    return filters


class ConsistencyRepository:
    """ActionSource · CompletionLedger · ParticipationSource 의 DB 구현."""

    @staticmethod
    def list_actions(
        *,
        owner_ids: Iterable[int] | None = None,
        goal_ids: Iterable[int] | None = None,
        action_ids: Iterable[int] | None = None,
    ) -> list[RecurringAction]:
        """조건을 최소 1개 요구한다. 빈 id 목록은 쿼리 없이 빈 결과."""
        criteria = [
            (Action.user_id, owner_ids),
            (Action.goal_id, goal_ids),
            (Action.id, action_ids),
        ]
        filters = []
        for column, values in criteria:
            if values is None:
                continue
            values = list(values)
            if not values:
                return []
            filters.append(column.in_(values))
        if not filters:
            raise ValueError("list_actions requires owner_ids, goal_ids or action_ids")
        with _fetching("actions") as session:
            rows = session.query(Action).filter(*filters).order_by(Action.id.asc()).all()
            return [_to_recurring_action(r) for r in rows]

    @staticmethod
    def count_completions(
        action_ids: Iterable[int], date_range: DateRange | None = None
    ) -> dict[int, int]:
        ids = list(action_ids)
        counts = {action_id: 0 for action_id in ids}
        if not ids:
            return counts
        with _fetching("action_completions") as session:
            rows = (
                session.query(ActionCompletion.action_id, func.count(ActionCompletion.id))
                .join(Action, Action.id == ActionCompletion.action_id)
                .filter(*_completion_filters(ids, date_range))
                .group_by(ActionCompletion.action_id)
                .all()
            )
        for action_id, count in rows:
            counts[action_id] = int(count)
        return counts

    @staticmethod
    def completion_times(
        action_ids: Iterable[int], date_range: DateRange | None = None
    ) -> dict[int, list[datetime]]:
        ids = list(action_ids)
        if not ids:
            return {}
        with _fetching("action_completions") as session:
            rows = (
                session.query(ActionCompletion.action_id, ActionCompletion.completed_at)
                .join(Action, Action.id == ActionCompletion.action_id)
                .filter(*_completion_filters(ids, date_range))
                .order_by(ActionCompletion.completed_at.asc())
                .all()
            )
        times: dict[int, list[datetime]] = {}
        for action_id, completed_at in rows:
            times.setdefault(action_id, []).append(completed_at)
        return times

    @staticmethod
    def list_participations(user_ids: Iterable[int]) -> list[ChallengeParticipation]:
        ids = list(user_ids)
        if not ids:
            return []
        with _fetching("challenge_participants") as session:
            rows = (
                session.query(ChallengeParticipant, Challenge)
                .join(Challenge, Challenge.id == ChallengeParticipant.challenge_id)
                .filter(
                    ChallengeParticipant.user_id.in_(ids),
                    ChallengeParticipant.status != PARTICIPATION_LEFT,
                )
                .order_by(ChallengeParticipant.id.asc())
                .all()
            )
            result = []
            for participant, challenge in rows:
                # 참가자가 고른 활동이 없으면 챌린지 기본 활동 수
                per_day = participant.selected_activity_count or challenge.predetermined_activity_count or 0
                result.append(
                    ChallengeParticipation(
                        participant_id=participant.user_id,
                        challenge_id=challenge.id,
                        joined_on=participant.joined_at.date(),
                        activities_per_day=per_day,
                        duration_days=challenge.duration_days or 0,
                        stored_completion_percentage=participant.completion_percentage or 0.0,
                        status=participant.status,
                    )
                )
            return result
