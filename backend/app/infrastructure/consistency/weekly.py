"""
이번 주(월요일 시작) 진행률.
기대치는 [max(주 시작일, 생성일), 기준일] 구간, 완료는 같은 주 구간만 센다.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from app.infrastructure.consistency.aggregator import ConsistencyResult, Tally
from app.infrastructure.consistency.entities import DateRange, RecurringAction
from app.infrastructure.consistency.expected import ExpectedOccurrenceCounter
from app.infrastructure.consistency.status_config import DEFAULT_THRESHOLDS, StatusThresholds


@dataclass(frozen=True)
class WeeklyProgress:
    week_start: date
    as_of: date
    result: ConsistencyResult


def week_start_for(day: date) -> date:
    return day - timedelta(days=day.weekday())


def week_range(as_of: date) -> DateRange:
    return DateRange(start=week_start_for(as_of), end=as_of)


def weekly_progress(
    actions: Iterable[RecurringAction],
    week_completion_counts: dict[int, int],
    as_of: date,
    thresholds: StatusThresholds = DEFAULT_THRESHOLDS,
) -> WeeklyProgress:
    """week_completion_counts는 week_range(as_of) 구간으로 조회한 완료 수여야 한다."""
    start = week_start_for(as_of)
    tally = Tally()
    for action in actions:
        expected = ExpectedOccurrenceCounter.count_in_window(action, start, as_of)
        tally.add(expected, week_completion_counts.get(action.id, 0))
    return WeeklyProgress(week_start=start, as_of=as_of, result=tally.result(thresholds))
