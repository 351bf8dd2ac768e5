"""
행동·목표·사용자 단위 일관성 집계.
세 진입점 모두 같은 산식: Σcompleted / Σexpected 를 반올림한 백분율 + 상태 등급.
스냅샷만 읽는 순수 계산이며 동일 스냅샷에 대해 항상 같은 결과를 낸다.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable

from app.infrastructure.consistency.entities import ConsistencySnapshot, RecurringAction
from app.infrastructure.consistency.expected import ExpectedOccurrenceCounter
from app.infrastructure.consistency.status_config import DEFAULT_THRESHOLDS, StatusThresholds


class ConsistencyStatus(str, Enum):
    ON_TRACK = "On Track"
    NEEDS_ATTENTION = "Needs Attention"
    CRITICAL = "Critical"


def round_half_up(numerator: int, denominator: int) -> int:
    """numerator / denominator 를 .5 올림으로 반올림 (정수 연산, 양수 전용)."""
    return (2 * numerator + denominator) // (2 * denominator)


def consistency_percentage(completed: int, expected: int) -> int:
    """round(100 * completed / expected), expected == 0 이면 0. 상한 100."""
    if expected <= 0:
        return 0
    return min(round_half_up(100 * completed, expected), 100)


def classify_status(percentage: int, thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> ConsistencyStatus:
    if percentage >= thresholds.on_track:
        return ConsistencyStatus.ON_TRACK
    if percentage >= thresholds.needs_attention:
        return ConsistencyStatus.NEEDS_ATTENTION
    return ConsistencyStatus.CRITICAL


@dataclass(frozen=True)
class ConsistencyResult:
    expected: int
    completed: int
    percentage: int
    status: ConsistencyStatus

    @classmethod
    def zero(cls) -> "ConsistencyResult":
        """조회 실패·대상 없음 시의 강등 결과."""
        return cls(expected=0, completed=0, percentage=0, status=ConsistencyStatus.CRITICAL)

    @classmethod
    def from_totals(
        cls, expected: int, completed: int, thresholds: StatusThresholds = DEFAULT_THRESHOLDS
    ) -> "ConsistencyResult":
        percentage = consistency_percentage(completed, expected)
        return cls(
            expected=expected,
            completed=completed,
            percentage=percentage,
            status=classify_status(percentage, thresholds),
        )


@dataclass
class Tally:
    """기대·완료 누적 합. 백분율은 합산이 끝난 뒤 한 번만 나눈다."""

    expected: int = 0
    completed: int = 0

    def add(self, expected: int, completed: int) -> None:
        self.expected += expected
        self.completed += completed

    def result(self, thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> ConsistencyResult:
        return ConsistencyResult.from_totals(self.expected, self.completed, thresholds)


def tally_actions(
    actions: Iterable[RecurringAction],
    completion_counts: dict[int, int],
    as_of: date,
) -> Tally:
    """행동 묶음의 기대·완료 합계. 단건·목표·사용자·대량 경로가 모두 이 함수를 쓴다."""
    tally = Tally()
    for action in actions:
        expected = ExpectedOccurrenceCounter.count(action, as_of).expected
        tally.add(expected, completion_counts.get(action.id, 0))
    return tally


class ConsistencyAggregator:
    """하나의 ConsistencySnapshot 위에서 행동·목표·사용자 결과를 만든다."""

    def __init__(self, snapshot: ConsistencySnapshot, thresholds: StatusThresholds = DEFAULT_THRESHOLDS):
        self.snapshot = snapshot
        self.thresholds = thresholds

    def _tally(self, actions: Iterable[RecurringAction]) -> Tally:
        return tally_actions(actions, self.snapshot.completion_counts, self.snapshot.as_of)

    def goal_tally(self, goal_id: int) -> Tally:
        return self._tally(a for a in self.snapshot.actions if a.goal_id == goal_id)

    def user_tally(self, user_id: int) -> Tally:
        # 목표 연결 여부와 무관하게 사용자의 모든 행동
        return self._tally(a for a in self.snapshot.actions if a.owner_id == user_id)

    def per_action(self, action: RecurringAction) -> ConsistencyResult:
        return self._tally([action]).result(self.thresholds)

    def per_goal(self, goal_id: int) -> ConsistencyResult:
        return self.goal_tally(goal_id).result(self.thresholds)

    def per_user(self, user_id: int) -> ConsistencyResult:
        return self.user_tally(user_id).result(self.thresholds)
