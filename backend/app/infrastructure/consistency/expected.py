"""
행동 1건의 기대 발생 횟수 산출.
(빈도, 생성일, 기준일) → 생성일~기준일(양끝 포함) 구간의 발생 횟수.
"""
from dataclasses import dataclass
from datetime import date

from app.infrastructure.consistency.entities import RecurringAction
from app.infrastructure.consistency.frequency import FrequencySpec, count_occurrences


@dataclass(frozen=True)
class ExpectedCount:
    action_id: int
    days_elapsed: int
    expected: int


def days_elapsed(created_on: date, as_of: date) -> int:
    """생성일 포함 경과 일수. 최소 1."""
    return max((as_of - created_on).days + 1, 1)


def frequency_spec_for(action: RecurringAction) -> FrequencySpec:
    """알 수 없는 빈도는 daily로 해석한다(에러 아님)."""
    return FrequencySpec.resolve(action.frequency, action.scheduled_days, action.created_on)


class ExpectedOccurrenceCounter:
    """생성일 이전은 절대 세지 않는다. 기준일보다 늦게 생성된 행동의 기대치는 0."""

    @staticmethod
    def count(action: RecurringAction, as_of: date) -> ExpectedCount:
        spec = frequency_spec_for(action)
        return ExpectedCount(
            action_id=action.id,
            days_elapsed=days_elapsed(action.created_on, as_of),
            expected=count_occurrences(spec, action.created_on, as_of),
        )

    @staticmethod
    def count_in_window(action: RecurringAction, start: date, end: date) -> int:
        """임의 구간 [start, end]의 기대치. 하한은 생성일로 올려 잡는다."""
        spec = frequency_spec_for(action)
        return count_occurrences(spec, max(start, action.created_on), end)
