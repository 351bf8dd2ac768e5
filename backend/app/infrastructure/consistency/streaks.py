"""
연속 달성(streak)·추세 지표.
발생일마다 완료 여부를 펼친 뒤 현재/최고 연속, 유예 연속, 모멘텀, 일별 추세를 계산한다.
사용자 단위는 '완벽한 날'(그날 예정된 행동을 모두 완료) 기준이며, 예정이 없는 날은 연속을 끊지도 잇지도 않는다.
기준일 당일 발생분이 아직 미완료면 진행 중으로 보고 제외한다.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable

from app.infrastructure.consistency.aggregator import consistency_percentage
from app.infrastructure.consistency.constants import (
    DEFAULT_TREND_DAYS,
    GRACE_WINDOW_DAYS,
    MOMENTUM_DECAY,
    MOMENTUM_LOOKBACK_DAYS,
    MOMENTUM_TREND_DELTA,
)
from app.infrastructure.consistency.entities import RecurringAction
from app.infrastructure.consistency.expected import frequency_spec_for
from app.infrastructure.consistency.frequency import iter_occurrences, occurs_on


class MomentumTrend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class GraceStreak:
    done: int
    window: int
    percentage: int


@dataclass(frozen=True)
class Momentum:
    score: int
    delta: int
    trend: MomentumTrend


@dataclass(frozen=True)
class StreakMetrics:
    current_streak: int
    best_streak: int
    grace: GraceStreak
    momentum: Momentum

    @classmethod
    def zero(cls) -> "StreakMetrics":
        return cls(
            current_streak=0,
            best_streak=0,
            grace=GraceStreak(done=0, window=GRACE_WINDOW_DAYS, percentage=0),
            momentum=Momentum(score=0, delta=0, trend=MomentumTrend.STABLE),
        )


@dataclass(frozen=True)
class TrendPoint:
    day: date
    scheduled: int
    completed: int
    percentage: int


def completed_days(times: dict[int, list[datetime]]) -> dict[int, set[date]]:
    """completion_times 결과 → 행동별 완료 날짜 집합."""
    return {action_id: {t.date() for t in values} for action_id, values in times.items()}


def scheduled_day_hits(
    actions: Iterable[RecurringAction],
    done_days: dict[int, set[date]],
    as_of: date,
) -> list[tuple[date, bool]]:
    """예정된 행동이 1건 이상인 날마다 (날짜, 모두 완료 여부). 날짜 오름차순."""
    scheduled: dict[date, int] = defaultdict(int)
    completed: dict[date, int] = defaultdict(int)
    for action in actions:
        done = done_days.get(action.id, set())
        for day in iter_occurrences(frequency_spec_for(action), action.created_on, as_of):
            scheduled[day] += 1
            if day in done:
                completed[day] += 1
    return [(day, completed[day] == scheduled[day]) for day in sorted(scheduled)]


def _settled(hits: list[tuple[date, bool]], as_of: date) -> list[bool]:
    if hits and hits[-1][0] == as_of and not hits[-1][1]:
        hits = hits[:-1]
    return [done for _, done in hits]


def streak_lengths(flags: list[bool]) -> tuple[int, int]:
    """(현재 연속, 최고 연속)."""
    best = run = 0
    for flag in flags:
        run = run + 1 if flag else 0
        best = max(best, run)
    return run, best


def grace_streak(flags: list[bool], window: int = GRACE_WINDOW_DAYS) -> GraceStreak:
    done = sum(flags[-window:])
    return GraceStreak(done=done, window=window, percentage=consistency_percentage(done, window))


def momentum(flags: list[bool], lookback: int = MOMENTUM_LOOKBACK_DAYS) -> Momentum:
    recent = flags[-lookback:]
    older = flags[-2 * lookback:-lookback]
    decay = Decimal(MOMENTUM_DECAY)
    weight = Decimal(1)
    weighted = total = Decimal(0)
    for flag in reversed(recent):
        weighted += weight * int(flag)
        total += weight
        weight *= decay
    score = int((weighted * 100 / total).quantize(Decimal(1), rounding=ROUND_HALF_UP)) if total else 0
    previous = consistency_percentage(sum(older), len(older)) if older else score
    delta = score - previous
    if delta > MOMENTUM_TREND_DELTA:
        trend = MomentumTrend.UP
    elif delta < -MOMENTUM_TREND_DELTA:
        trend = MomentumTrend.DOWN
    else:
        trend = MomentumTrend.STABLE
    return Momentum(score=score, delta=delta, trend=trend)


def streak_metrics(
    actions: Iterable[RecurringAction],
    done_days: dict[int, set[date]],
    as_of: date,
) -> StreakMetrics:
    flags = _settled(scheduled_day_hits(actions, done_days, as_of), as_of)
    current, best = streak_lengths(flags)
    return StreakMetrics(
        current_streak=current,
        best_streak=best,
        grace=grace_streak(flags),
        momentum=momentum(flags),
    )


def consistency_trend(
    actions: Iterable[RecurringAction],
    done_days: dict[int, set[date]],
    as_of: date,
    days: int = DEFAULT_TREND_DAYS,
) -> list[TrendPoint]:
    """기준일로 끝나는 days일 동안의 일별 (예정, 완료, 백분율). 차트용."""
    specs = [(action, frequency_spec_for(action)) for action in actions]
    start = as_of - timedelta(days=days - 1)
    points = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        scheduled = completed = 0
        for action, spec in specs:
            if day < action.created_on or not occurs_on(day, spec):
                continue
            scheduled += 1
            if day in done_days.get(action.id, ()):
                completed += 1
        points.append(
            TrendPoint(
                day=day,
                scheduled=scheduled,
                completed=completed,
                percentage=consistency_percentage(completed, scheduled),
            )
        )
    return points
