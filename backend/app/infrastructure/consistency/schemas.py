"""
일관성 API 요청/응답 스키마.
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from app.infrastructure.consistency.aggregator import ConsistencyResult, ConsistencyStatus
from app.infrastructure.consistency.streaks import MomentumTrend, StreakMetrics, TrendPoint


# ── 요청 ────────────────────────────────────────────────────────

class BulkGoalConsistencyRequest(BaseModel):
    """여러 목표의 일관성 일괄 조회 요청."""

    goal_ids: list[int] = Field(..., min_length=1, max_length=500)
    as_of: Optional[date] = Field(None, description="기준일 (없으면 서버 오늘 날짜, UTC)")


class BulkUserConsistencyRequest(BaseModel):
    """여러 사용자(서클 멤버 등)의 일관성 일괄 조회 요청."""

    user_ids: list[int] = Field(..., min_length=1, max_length=500)
    as_of: Optional[date] = Field(None, description="기준일 (없으면 서버 오늘 날짜, UTC)")
    include_challenges: bool = Field(True, description="챌린지 참가 신호 합산 여부")


# ── 응답 ────────────────────────────────────────────────────────

class ConsistencyResultResponse(BaseModel):
    """기대·완료 횟수, 백분율(0~100), 상태 등급."""

    expected: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)
    status: ConsistencyStatus

    @classmethod
    def from_result(cls, result: ConsistencyResult) -> "ConsistencyResultResponse":
        return cls(
            expected=result.expected,
            completed=result.completed,
            percentage=result.percentage,
            status=result.status,
        )


class ActionConsistencyResponse(BaseModel):
    action_id: int
    as_of: date
    result: ConsistencyResultResponse
    next_occurrence_on: Optional[date] = Field(None, description="기준일 다음 발생 예정일")


class GoalConsistencyResponse(BaseModel):
    goal_id: int
    as_of: date
    result: ConsistencyResultResponse


class UserConsistencyResponse(BaseModel):
    user_id: int
    as_of: date
    include_challenges: bool
    result: ConsistencyResultResponse
    cached: bool = Field(False, description="결과 캐시 적중 여부")


class BulkConsistencyResponse(BaseModel):
    """id → 결과. 요청한 모든 id가 포함된다(중복 제거)."""

    as_of: date
    results: dict[int, ConsistencyResultResponse] = Field(default_factory=dict)


class WeeklyProgressResponse(BaseModel):
    user_id: int
    week_start: date
    as_of: date
    result: ConsistencyResultResponse


class CompletedTodayResponse(BaseModel):
    user_id: int
    as_of: date
    action_ids: list[int] = Field(default_factory=list, description="기준일에 완료 기록이 있는 행동")


class GraceStreakResponse(BaseModel):
    done: int
    window: int
    percentage: int = Field(..., ge=0, le=100)


class MomentumResponse(BaseModel):
    score: int = Field(..., ge=0, le=100)
    delta: int
    trend: MomentumTrend


class StreakResponse(BaseModel):
    """user_id 또는 action_id 중 하나만 채워진다."""

    user_id: Optional[int] = None
    action_id: Optional[int] = None
    as_of: date
    current_streak: int = Field(..., ge=0)
    best_streak: int = Field(..., ge=0)
    grace: GraceStreakResponse
    momentum: MomentumResponse

    @classmethod
    def from_metrics(cls, metrics: StreakMetrics, as_of: date, **owner) -> "StreakResponse":
        return cls(
            as_of=as_of,
            current_streak=metrics.current_streak,
            best_streak=metrics.best_streak,
            grace=GraceStreakResponse(
                done=metrics.grace.done,
                window=metrics.grace.window,
                percentage=metrics.grace.percentage,
            ),
            momentum=MomentumResponse(
                score=metrics.momentum.score,
                delta=metrics.momentum.delta,
                trend=metrics.momentum.trend,
            ),
            **owner,
        )


class TrendPointResponse(BaseModel):
    day: date
    scheduled: int
    completed: int
    percentage: int = Field(..., ge=0, le=100)

    @classmethod
    def from_point(cls, point: TrendPoint) -> "TrendPointResponse":
        return cls(day=point.day, scheduled=point.scheduled, completed=point.completed, percentage=point.percentage)


class TrendResponse(BaseModel):
    user_id: int
    as_of: date
    days: int
    points: list[TrendPointResponse] = Field(default_factory=list, description="오래된 날짜부터")
