"""
일관성 서비스 구현체.
진입점마다 스냅샷을 한 번 조회해 순수 계산 계층(aggregator/challenge/bulk/weekly)에 넘기고,
DataFetchFailure는 여기서 잡아 0 결과로 강등한다.
"""
import logging
from datetime import date, timedelta
from typing import Iterable

from app.infrastructure.consistency.aggregator import ConsistencyAggregator, ConsistencyResult
from app.infrastructure.consistency.bulk import BulkConsistencyCalculator
from app.infrastructure.consistency.challenge import ChallengeWeightedAdjustor
from app.infrastructure.consistency.constants import DEFAULT_TREND_DAYS
from app.infrastructure.consistency.entities import ConsistencySnapshot, DateRange
from app.infrastructure.consistency.exceptions import DataFetchFailure
from app.infrastructure.consistency.expected import frequency_spec_for
from app.infrastructure.consistency.frequency import next_occurrence
from app.infrastructure.consistency.ledger import (
    ActionSource,
    CompletionLedger,
    ParticipationSource,
    completions_until,
    load_snapshot,
)
from app.infrastructure.consistency.repository import ConsistencyRepository
from app.infrastructure.consistency.service.interface import ActionConsistency
from app.infrastructure.consistency.status_config import StatusThresholds, get_status_thresholds
from app.infrastructure.consistency.streaks import (
    StreakMetrics,
    TrendPoint,
    completed_days,
    consistency_trend,
    streak_metrics,
)
from app.infrastructure.consistency.weekly import WeeklyProgress, week_range, week_start_for, weekly_progress

logger = logging.getLogger(__name__)


class ConsistencyServiceImpl:
    """행동·목표·사용자 일관성 서비스 구현."""

    def __init__(
        self,
        actions_source: ActionSource | None = None,
        ledger: CompletionLedger | None = None,
        participations_source: ParticipationSource | None = None,
        thresholds: StatusThresholds | None = None,
    ):
        repository = ConsistencyRepository()
        self.actions_source = actions_source or repository
        self.ledger = ledger or repository
        self.participations_source = participations_source or repository
        self.thresholds = thresholds or get_status_thresholds()
        self._bulk = BulkConsistencyCalculator(
            self.actions_source, self.ledger, self.participations_source, self.thresholds
        )

    def _aggregator(self, snapshot: ConsistencySnapshot) -> ConsistencyAggregator:
        return ConsistencyAggregator(snapshot, self.thresholds)

    def action_consistency(self, action_id: int, as_of: date) -> ActionConsistency | None:
        """존재하지 않는 행동이면 None. 조회 실패는 0 결과."""
        try:
            snapshot = load_snapshot(self.actions_source, self.ledger, as_of, action_ids=[action_id])
        except DataFetchFailure as e:
            logger.warning("[consistency] action_id=%s degraded to zero: %s", action_id, e)
            return ActionConsistency(action_id=action_id, result=ConsistencyResult.zero())
        if not snapshot.actions:
            return None
        action = snapshot.actions[0]
        return ActionConsistency(
            action_id=action.id,
            result=self._aggregator(snapshot).per_action(action),
            next_occurrence_on=next_occurrence(frequency_spec_for(action), as_of),
        )

    def goal_consistency(self, goal_id: int, as_of: date) -> ConsistencyResult:
        try:
            snapshot = load_snapshot(self.actions_source, self.ledger, as_of, goal_ids=[goal_id])
        except DataFetchFailure as e:
            logger.warning("[consistency] goal_id=%s degraded to zero: %s", goal_id, e)
            return ConsistencyResult.zero()
        result = self._aggregator(snapshot).per_goal(goal_id)
        logger.info(
            "[consistency] goal_id=%s %s/%s=%s%% as_of=%s",
            goal_id, result.completed, result.expected, result.percentage, as_of,
        )
        return result

    def user_consistency(
        self, user_id: int, as_of: date, include_challenges: bool = True
    ) -> ConsistencyResult:
        try:
            snapshot = load_snapshot(
                self.actions_source,
                self.ledger,
                as_of,
                owner_ids=[user_id],
                participations_source=self.participations_source if include_challenges else None,
            )
        except DataFetchFailure as e:
            logger.warning("[consistency] user_id=%s degraded to zero: %s", user_id, e)
            return ConsistencyResult.zero()
        aggregator = self._aggregator(snapshot)
        if include_challenges:
            result = ChallengeWeightedAdjustor(aggregator).per_user(user_id)
        else:
            result = aggregator.per_user(user_id)
        logger.info(
            "[consistency] user_id=%s %s/%s=%s%% challenges=%s as_of=%s",
            user_id, result.completed, result.expected, result.percentage,
            len(snapshot.participations), as_of,
        )
        return result

    def bulk_goal_consistency(
        self, goal_ids: Iterable[int], as_of: date
    ) -> dict[int, ConsistencyResult]:
        return self._bulk.per_goal(goal_ids, as_of)

    def bulk_user_consistency(
        self, user_ids: Iterable[int], as_of: date, include_challenges: bool = True
    ) -> dict[int, ConsistencyResult]:
        return self._bulk.per_user(user_ids, as_of, include_challenges)

    def weekly_progress(self, user_id: int, as_of: date) -> WeeklyProgress:
        try:
            actions = self.actions_source.list_actions(owner_ids=[user_id])
            counts = (
                self.ledger.count_completions([a.id for a in actions], week_range(as_of))
                if actions
                else {}
            )
        except DataFetchFailure as e:
            logger.warning("[consistency] weekly user_id=%s degraded to zero: %s", user_id, e)
            return WeeklyProgress(week_start=week_start_for(as_of), as_of=as_of, result=ConsistencyResult.zero())
        return weekly_progress(actions, counts, as_of, self.thresholds)

    def completed_on(self, user_id: int, day: date) -> list[int]:
        """완료 토글 화면의 '오늘 완료' 표시용. 조회 실패 시 빈 목록."""
        try:
            actions = self.actions_source.list_actions(owner_ids=[user_id])
            if not actions:
                return []
            times = self.ledger.completion_times([a.id for a in actions], DateRange(start=day, end=day))
        except DataFetchFailure as e:
            logger.warning("[consistency] completed_on user_id=%s degraded to empty: %s", user_id, e)
            return []
        return sorted(action_id for action_id, values in times.items() if values)

    def user_streaks(self, user_id: int, as_of: date) -> StreakMetrics:
        try:
            actions = self.actions_source.list_actions(owner_ids=[user_id])
            times = self.ledger.completion_times([a.id for a in actions], completions_until(as_of)) if actions else {}
        except DataFetchFailure as e:
            logger.warning("[consistency] streaks user_id=%s degraded to zero: %s", user_id, e)
            return StreakMetrics.zero()
        metrics = streak_metrics(actions, completed_days(times), as_of)
        logger.info(
            "[consistency] streaks user_id=%s current=%s best=%s as_of=%s",
            user_id, metrics.current_streak, metrics.best_streak, as_of,
        )
        return metrics

    def action_streaks(self, action_id: int, as_of: date) -> StreakMetrics | None:
        """존재하지 않는 행동이면 None. 조회 실패는 0 지표."""
        try:
            actions = self.actions_source.list_actions(action_ids=[action_id])
            if not actions:
                return None
            times = self.ledger.completion_times([action_id], completions_until(as_of))
        except DataFetchFailure as e:
            logger.warning("[consistency] streaks action_id=%s degraded to zero: %s", action_id, e)
            return StreakMetrics.zero()
        return streak_metrics(actions, completed_days(times), as_of)

    def consistency_trend(self, user_id: int, as_of: date, days: int = DEFAULT_TREND_DAYS) -> list[TrendPoint]:
        """조회 실패 시 빈 목록."""
        try:
            actions = self.actions_source.list_actions(owner_ids=[user_id])
            window = DateRange(start=as_of - timedelta(days=days - 1), end=as_of)
            times = self.ledger.completion_times([a.id for a in actions], window) if actions else {}
        except DataFetchFailure as e:
            logger.warning("[consistency] trend user_id=%s degraded to empty: %s", user_id, e)
            return []
        return consistency_trend(actions, completed_days(times), as_of, days)
