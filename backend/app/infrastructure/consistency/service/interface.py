"""
일관성 서비스 인터페이스.
모든 진입점은 예외를 던지지 않는다. 조회 실패 시 해당 범위는 0 결과로 강등된다.
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol

from app.infrastructure.consistency.aggregator import ConsistencyResult
from app.infrastructure.consistency.streaks import StreakMetrics, TrendPoint
from app.infrastructure.consistency.weekly import WeeklyProgress


@dataclass(frozen=True)
class ActionConsistency:
    """행동 1건 결과 + 다음 발생 예정일(조회 실패 시 None)."""

    action_id: int
    result: ConsistencyResult
    next_occurrence_on: date | None = None


class ConsistencyService(Protocol):
    """행동·목표·사용자 일관성 산출 서비스."""

    def action_consistency(self, action_id: int, as_of: date) -> ActionConsistency | None:
        """행동 1건의 생성일~기준일 일관성 + 다음 발생 예정일. 없는 행동이면 None."""
        ...

    def goal_consistency(self, goal_id: int, as_of: date) -> ConsistencyResult:
        """목표에 연결된 모든 행동의 합산 일관성."""
        ...

    def user_consistency(
        self, user_id: int, as_of: date, include_challenges: bool = True
    ) -> ConsistencyResult:
        """사용자의 모든 행동(+ 챌린지 참가 가중 합산) 일관성."""
        ...

    def bulk_goal_consistency(
        self, goal_ids: Iterable[int], as_of: date
    ) -> dict[int, ConsistencyResult]:
        """여러 목표를 일괄 조회로 계산. 단건 호출과 동일 결과."""
        ...

    def bulk_user_consistency(
        self, user_ids: Iterable[int], as_of: date, include_challenges: bool = True
    ) -> dict[int, ConsistencyResult]:
        """여러 사용자를 일괄 조회로 계산. 단건 호출과 동일 결과."""
        ...

    def weekly_progress(self, user_id: int, as_of: date) -> WeeklyProgress:
        """이번 주(월요일 시작) 진행률."""
        ...

    def completed_on(self, user_id: int, day: date) -> list[int]:
        """day에 완료 기록이 있는 행동 id 목록."""
        ...

    def user_streaks(self, user_id: int, as_of: date) -> StreakMetrics:
        """완벽한 날 기준 현재/최고 연속, 유예 연속, 모멘텀."""
        ...

    def action_streaks(self, action_id: int, as_of: date) -> StreakMetrics | None:
        """행동 1건의 발생일 기준 연속 지표. 없는 행동이면 None."""
        ...

    def consistency_trend(self, user_id: int, as_of: date, days: int) -> list[TrendPoint]:
        """기준일로 끝나는 days일 동안의 일별 백분율."""
        ...
