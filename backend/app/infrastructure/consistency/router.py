"""
일관성 조회 API.
행동·목표·사용자 단건, 목표·사용자 일괄, 이번 주 진행률, 오늘 완료 목록, 연속 달성·추세, 사용자 결과 캐시 무효화.
기준일(as_of) 미지정 시 서버 오늘 날짜(UTC)를 쓰며, 시계 조회는 이 계층에서만 한다.
"""
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.config import get_settings
from app.infrastructure.consistency.constants import DEFAULT_TREND_DAYS, MAX_TREND_DAYS
from app.infrastructure.consistency.result_cache import ResultCache
from app.infrastructure.consistency.schemas import (
    ActionConsistencyResponse,
    BulkConsistencyResponse,
    BulkGoalConsistencyRequest,
    BulkUserConsistencyRequest,
    CompletedTodayResponse,
    ConsistencyResultResponse,
    GoalConsistencyResponse,
    StreakResponse,
    TrendPointResponse,
    TrendResponse,
    UserConsistencyResponse,
    WeeklyProgressResponse,
)
from app.infrastructure.consistency.service import ConsistencyService, ConsistencyServiceImpl

router = APIRouter()

_service: ConsistencyServiceImpl | None = None
_cache: ResultCache | None = None


def _get_service() -> ConsistencyServiceImpl:
    global _service
    if _service is None:
        _service = ConsistencyServiceImpl()
    return _service


def _get_cache() -> ResultCache:
    global _cache
    if _cache is None:
        _cache = ResultCache(ttl_seconds=get_settings().cache_ttl_seconds)
    return _cache


def _resolve_as_of(as_of: Optional[date]) -> date:
    return as_of or datetime.now(timezone.utc).date()


def _user_cache_prefix(user_id: int) -> str:
    return f"user:{user_id}:"


# ── 단건 조회 ────────────────────────────────────────────────────

@router.get(
    "/actions/{action_id}",
    response_model=ActionConsistencyResponse,
    summary="행동 1건 일관성 (생성일~기준일) + 다음 발생 예정일",
)
def get_action_consistency(
    action_id: int,
    as_of: Optional[date] = None,
    service: ConsistencyService = Depends(_get_service),
):
    day = _resolve_as_of(as_of)
    outcome = service.action_consistency(action_id, day)
    if outcome is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Action not found.",
        )
    return ActionConsistencyResponse(
        action_id=outcome.action_id,
        as_of=day,
        result=ConsistencyResultResponse.from_result(outcome.result),
        next_occurrence_on=outcome.next_occurrence_on,
    )


@router.get(
    "/goals/{goal_id}",
    response_model=GoalConsistencyResponse,
    summary="목표 일관성: 연결된 모든 행동의 기대·완료 합산",
)
def get_goal_consistency(
    goal_id: int,
    as_of: Optional[date] = None,
    service: ConsistencyService = Depends(_get_service),
):
    day = _resolve_as_of(as_of)
    result = service.goal_consistency(goal_id, day)
    return GoalConsistencyResponse(
        goal_id=goal_id,
        as_of=day,
        result=ConsistencyResultResponse.from_result(result),
    )


@router.get(
    "/users/{user_id}",
    response_model=UserConsistencyResponse,
    summary="사용자 전체 일관성 (챌린지 참가 가중 합산 포함)",
)
def get_user_consistency(
    user_id: int,
    as_of: Optional[date] = None,
    include_challenges: bool = True,
    service: ConsistencyService = Depends(_get_service),
    cache: ResultCache = Depends(_get_cache),
):
    """
    프로필 진행 링 등 반복 조회가 잦은 화면용으로 결과 캐시를 사용한다.
    완료 토글 후에는 POST /users/{user_id}/cache/invalidate 로 무효화한다.
    """
    day = _resolve_as_of(as_of)
    key = f"{_user_cache_prefix(user_id)}{day.isoformat()}:{int(include_challenges)}"
    cached = cache.get(key)
    if cached is not None:
        return UserConsistencyResponse(
            user_id=user_id,
            as_of=day,
            include_challenges=include_challenges,
            result=ConsistencyResultResponse.from_result(cached),
            cached=True,
        )
    result = service.user_consistency(user_id, day, include_challenges)
    # 0 결과는 조회 실패로 강등된 값일 수 있어 캐시하지 않는다
    if result.expected > 0:
        cache.set(key, result)
    return UserConsistencyResponse(
        user_id=user_id,
        as_of=day,
        include_challenges=include_challenges,
        result=ConsistencyResultResponse.from_result(result),
    )


# ── 일괄 조회 ────────────────────────────────────────────────────

@router.post(
    "/goals/bulk",
    response_model=BulkConsistencyResponse,
    summary="여러 목표 일관성 일괄 산출 (행동 1회 + 완료 1회 조회)",
)
def bulk_goal_consistency(
    body: BulkGoalConsistencyRequest,
    service: ConsistencyService = Depends(_get_service),
):
    day = _resolve_as_of(body.as_of)
    results = service.bulk_goal_consistency(body.goal_ids, day)
    return BulkConsistencyResponse(
        as_of=day,
        results={k: ConsistencyResultResponse.from_result(v) for k, v in results.items()},
    )


@router.post(
    "/users/bulk",
    response_model=BulkConsistencyResponse,
    summary="여러 사용자 일관성 일괄 산출 (서클 멤버 목록 등)",
)
def bulk_user_consistency(
    body: BulkUserConsistencyRequest,
    service: ConsistencyService = Depends(_get_service),
):
    day = _resolve_as_of(body.as_of)
    results = service.bulk_user_consistency(body.user_ids, day, body.include_challenges)
    return BulkConsistencyResponse(
        as_of=day,
        results={k: ConsistencyResultResponse.from_result(v) for k, v in results.items()},
    )


# ── 이번 주·오늘 ─────────────────────────────────────────────────

@router.get(
    "/users/{user_id}/weekly",
    response_model=WeeklyProgressResponse,
    summary="이번 주(월요일 시작) 진행률",
)
def get_weekly_progress(
    user_id: int,
    as_of: Optional[date] = None,
    service: ConsistencyService = Depends(_get_service),
):
    progress = service.weekly_progress(user_id, _resolve_as_of(as_of))
    return WeeklyProgressResponse(
        user_id=user_id,
        week_start=progress.week_start,
        as_of=progress.as_of,
        result=ConsistencyResultResponse.from_result(progress.result),
    )


@router.get(
    "/users/{user_id}/today",
    response_model=CompletedTodayResponse,
    summary="기준일에 완료한 행동 id 목록",
)
def get_completed_today(
    user_id: int,
    as_of: Optional[date] = None,
    service: ConsistencyService = Depends(_get_service),
):
    day = _resolve_as_of(as_of)
    return CompletedTodayResponse(user_id=user_id, as_of=day, action_ids=service.completed_on(user_id, day))


# ── 연속 달성·추세 ─────────────────────────────────────────────────

@router.get(
    "/users/{user_id}/streaks",
    response_model=StreakResponse,
    summary="완벽한 날 기준 현재/최고 연속, 유예 연속, 모멘텀",
)
def get_user_streaks(
    user_id: int,
    as_of: Optional[date] = None,
    service: ConsistencyService = Depends(_get_service),
):
    day = _resolve_as_of(as_of)
    return StreakResponse.from_metrics(service.user_streaks(user_id, day), day, user_id=user_id)


@router.get(
    "/actions/{action_id}/streaks",
    response_model=StreakResponse,
    summary="행동 1건의 발생일 기준 연속 지표",
)
def get_action_streaks(
    action_id: int,
    as_of: Optional[date] = None,
    service: ConsistencyService = Depends(_get_service),
):
    day = _resolve_as_of(as_of)
    metrics = service.action_streaks(action_id, day)
    if metrics is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Action not found.",
        )
    return StreakResponse.from_metrics(metrics, day, action_id=action_id)


@router.get(
    "/users/{user_id}/trend",
    response_model=TrendResponse,
    summary="기준일로 끝나는 N일간 일별 일관성 (차트용)",
)
def get_consistency_trend(
    user_id: int,
    as_of: Optional[date] = None,
    days: int = Query(DEFAULT_TREND_DAYS, ge=1, le=MAX_TREND_DAYS),
    service: ConsistencyService = Depends(_get_service),
):
    day = _resolve_as_of(as_of)
    points = service.consistency_trend(user_id, day, days)
    return TrendResponse(
        user_id=user_id,
        as_of=day,
        days=days,
        points=[TrendPointResponse.from_point(p) for p in points],
    )


@router.post(
    "/users/{user_id}/cache/invalidate",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="사용자 일관성 결과 캐시 무효화 (완료 토글 직후 호출)",
)
def invalidate_user_cache(
    user_id: int,
    cache: ResultCache = Depends(_get_cache),
):
    cache.invalidate_prefix(_user_cache_prefix(user_id))
