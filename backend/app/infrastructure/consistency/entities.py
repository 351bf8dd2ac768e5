"""
엔진 입력 엔티티: 외부 조회 계층이 채워 넘기는 불변 스냅샷 값.
"""
from dataclasses import dataclass, field
from datetime import date, datetime

from app.infrastructure.consistency.constants import PARTICIPATION_LEFT


@dataclass(frozen=True)
class RecurringAction:
    """반복 행동. created_on은 행동이 시작된 날짜."""

    id: int
    title: str
    owner_id: int
    created_on: date
    frequency: str | None = None
    goal_id: int | None = None
    scheduled_days: tuple[str, ...] = ()
    challenge_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class CompletionEvent:
    """완료 이벤트(append-only)."""

    id: int
    action_id: int
    owner_id: int
    occurred_at: datetime


@dataclass(frozen=True)
class ChallengeParticipation:
    """챌린지 참가. stored_completion_percentage는 외부에서 계산된 값."""

    participant_id: int
    challenge_id: int
    joined_on: date
    activities_per_day: int
    duration_days: int
    stored_completion_percentage: float = 0.0
    status: str = "active"

    @property
    def counts_toward_consistency(self) -> bool:
        return self.status != PARTICIPATION_LEFT


@dataclass(frozen=True)
class DateRange:
    """양끝 포함 날짜 구간. None은 해당 방향으로 무제한."""

    start: date | None = None
    end: date | None = None

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


@dataclass(frozen=True)
class ConsistencySnapshot:
    """
    한 번의 계산이 소비하는 조회 결과 묶음.
    계산 도중 재조회하지 않으며, 스냅샷 이후의 완료 기록은 결과에 포함되지 않는다.
    """

    as_of: date
    actions: tuple[RecurringAction, ...] = ()
    completion_counts: dict[int, int] = field(default_factory=dict)
    participations: tuple[ChallengeParticipation, ...] = ()
