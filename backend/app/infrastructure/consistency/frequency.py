"""
빈도(Frequency) 규칙: 특정 날짜가 발생일인지, 구간 내 발생 횟수가 몇 번인지 판별한다.
순수 함수: 동일 (spec, 시작일, 종료일) → 항상 동일 결과. 시계 조회·난수 없음.

집계 전략: 모든 빈도를 실제 달력 기준으로 센다(요일별 폐형식 계산은 달력 순회와 동일 결과).
floor(days/7) 같은 근사식은 어느 경로에서도 사용하지 않는다.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Callable, Iterable, Iterator

from app.infrastructure.consistency.constants import (
    DEFAULT_THREE_PER_WEEK_DAYS,
    DEFAULT_WEEKLY_DAYS,
    WEEKDAY_NAMES,
    WEEKEND_DAYS,
    WORKING_DAYS,
)
from app.infrastructure.consistency.exceptions import InvalidFrequencySpec

logger = logging.getLogger(__name__)


class Frequency(str, Enum):
    """닫힌 빈도 종류. 새 종류는 _OCCURRENCE_RULES·_COUNTERS에 규칙을 추가해야 한다."""

    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"
    WEEKLY = "weekly"
    THREE_PER_WEEK = "three_per_week"
    EVERY_OTHER_DAY = "every_other_day"
    CUSTOM = "custom"
    MONTHLY = "monthly"


# 클라이언트 구버전이 저장한 camelCase 값
_ALIASES = {
    "threePerWeek": Frequency.THREE_PER_WEEK,
    "everyOtherDay": Frequency.EVERY_OTHER_DAY,
}

_DAY_SET_KINDS = (Frequency.WEEKLY, Frequency.THREE_PER_WEEK, Frequency.CUSTOM)


@dataclass(frozen=True)
class FrequencySpec:
    """
    빈도 태그 값.
    - days: 요일 인덱스 집합 (WEEKLY / THREE_PER_WEEK / CUSTOM 에서만 사용)
    - anchor: EVERY_OTHER_DAY 짝수일 기준일(행동 생성일)
    """

    kind: Frequency
    days: frozenset[int] = frozenset()
    anchor: date | None = None

    @classmethod
    def daily(cls) -> "FrequencySpec":
        return cls(Frequency.DAILY)

    @classmethod
    def parse(
        cls,
        frequency: str | None,
        scheduled_days: Iterable[str] | None = None,
        created_on: date | None = None,
    ) -> "FrequencySpec":
        """
        엄격한 파싱. 빈 값은 daily, 그 외 잘못된 조합은 InvalidFrequencySpec.
        - 알 수 없는 frequency 문자열
        - 알 수 없는 요일 이름
        - custom 인데 scheduled_days 없음
        - every_other_day 인데 기준일(created_on) 없음
        """
        if frequency is None or not str(frequency).strip():
            return cls.daily()
        kind = _parse_kind(frequency, scheduled_days)
        days = _parse_days(frequency, scheduled_days) if kind in _DAY_SET_KINDS else frozenset()

        if kind is Frequency.WEEKLY and not days:
            days = DEFAULT_WEEKLY_DAYS
        elif kind is Frequency.THREE_PER_WEEK and not days:
            days = DEFAULT_THREE_PER_WEEK_DAYS
        elif kind is Frequency.CUSTOM and not days:
            raise InvalidFrequencySpec(frequency, scheduled_days, "custom requires scheduled_days")

        anchor = None
        if kind is Frequency.EVERY_OTHER_DAY:
            if created_on is None:
                raise InvalidFrequencySpec(frequency, scheduled_days, "every_other_day requires an anchor date")
            anchor = created_on
        return cls(kind, days, anchor)

    @classmethod
    def resolve(
        cls,
        frequency: str | None,
        scheduled_days: Iterable[str] | None = None,
        created_on: date | None = None,
    ) -> "FrequencySpec":
        """관대한 파싱: 잘못된 조합은 daily로 대체한다(항상 점수를 낸다)."""
        try:
            return cls.parse(frequency, scheduled_days, created_on)
        except InvalidFrequencySpec as e:
            logger.debug("[consistency] falling back to daily: %s", e)
            return cls.daily()


def _parse_kind(frequency: Any, scheduled_days: Any) -> Frequency:
    raw = str(frequency).strip()
    if raw in _ALIASES:
        return _ALIASES[raw]
    try:
        return Frequency(raw.lower())
    except ValueError:
        raise InvalidFrequencySpec(frequency, scheduled_days, "unknown frequency") from None


def _parse_days(frequency: Any, scheduled_days: Iterable[str] | None) -> frozenset[int]:
    if not scheduled_days:
        return frozenset()
    if isinstance(scheduled_days, str):
        scheduled_days = [scheduled_days]
    days = set()
    for name in scheduled_days:
        key = str(name).strip().lower()
        if key not in WEEKDAY_NAMES:
            raise InvalidFrequencySpec(frequency, scheduled_days, f"unknown weekday {name!r}")
        days.add(WEEKDAY_NAMES.index(key))
    return frozenset(days)


# ── 발생일 판별 ───────────────────────────────────────────────────


def _in_days(days: frozenset[int]) -> Callable[[date, FrequencySpec], bool]:
    return lambda day, spec: day.weekday() in days


def _every_other_day(day: date, spec: FrequencySpec) -> bool:
    return (day - spec.anchor).days % 2 == 0


_OCCURRENCE_RULES: dict[Frequency, Callable[[date, FrequencySpec], bool]] = {
    Frequency.DAILY: lambda day, spec: True,
    Frequency.WEEKDAYS: _in_days(WORKING_DAYS),
    Frequency.WEEKENDS: _in_days(WEEKEND_DAYS),
    Frequency.WEEKLY: lambda day, spec: day.weekday() in spec.days,
    Frequency.THREE_PER_WEEK: lambda day, spec: day.weekday() in spec.days,
    Frequency.CUSTOM: lambda day, spec: day.weekday() in spec.days,
    Frequency.EVERY_OTHER_DAY: _every_other_day,
    Frequency.MONTHLY: lambda day, spec: day.day == 1,
}


def occurs_on(day: date, spec: FrequencySpec) -> bool:
    """day가 spec 기준 발생일이면 True."""
    return _OCCURRENCE_RULES[spec.kind](day, spec)


# ── 구간 발생 횟수 ────────────────────────────────────────────────


def _count_weekday(start: date, end: date, weekday: int) -> int:
    """[start, end] 구간에 특정 요일이 몇 번 있는지. 7일마다 정확히 1회."""
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    offset = (weekday - start.weekday()) % 7
    return full_weeks + (1 if offset < remainder else 0)


def _count_day_set(days: frozenset[int]) -> Callable[[FrequencySpec, date, date], int]:
    return lambda spec, start, end: sum(_count_weekday(start, end, d) for d in days)


def _count_spec_days(spec: FrequencySpec, start: date, end: date) -> int:
    return sum(_count_weekday(start, end, d) for d in spec.days)


def _count_every_other_day(spec: FrequencySpec, start: date, end: date) -> int:
    total_days = (end - start).days + 1
    # 기준일과 짝수 간격이 되는 첫 날까지의 거리(0 또는 1)
    first = (start - spec.anchor).days % 2
    if first >= total_days:
        return 0
    return (total_days - first + 1) // 2


def _count_monthly(spec: FrequencySpec, start: date, end: date) -> int:
    if start.day == 1:
        first = start
    elif start.month == 12:
        first = date(start.year + 1, 1, 1)
    else:
        first = date(start.year, start.month + 1, 1)
    if first > end:
        return 0
    return (end.year - first.year) * 12 + (end.month - first.month) + 1


_COUNTERS: dict[Frequency, Callable[[FrequencySpec, date, date], int]] = {
    Frequency.DAILY: lambda spec, start, end: (end - start).days + 1,
    Frequency.WEEKDAYS: _count_day_set(WORKING_DAYS),
    Frequency.WEEKENDS: _count_day_set(WEEKEND_DAYS),
    Frequency.WEEKLY: _count_spec_days,
    Frequency.THREE_PER_WEEK: _count_spec_days,
    Frequency.CUSTOM: _count_spec_days,
    Frequency.EVERY_OTHER_DAY: _count_every_other_day,
    Frequency.MONTHLY: _count_monthly,
}

# 빈도 종류가 추가되면 규칙 누락을 import 시점에 드러낸다
for _table in (_OCCURRENCE_RULES, _COUNTERS):
    _missing = set(Frequency) - set(_table)
    if _missing:
        raise RuntimeError(f"frequency rules missing for {sorted(m.value for m in _missing)}")


def count_occurrences(spec: FrequencySpec, start: date, end: date) -> int:
    """[start, end] (양끝 포함) 구간의 발생 횟수. start > end 이면 0."""
    if start > end:
        return 0
    return _COUNTERS[spec.kind](spec, start, end)


def iter_occurrences(spec: FrequencySpec, start: date, end: date) -> Iterator[date]:
    """[start, end] 구간의 발생일을 순서대로 돌려준다(달력 순회)."""
    day = start
    while day <= end:
        if occurs_on(day, spec):
            yield day
        day += timedelta(days=1)


def next_occurrence(spec: FrequencySpec, after: date) -> date:
    """after 다음 날부터 찾은 첫 발생일. 가장 드문 monthly도 31일 안에 나온다."""
    day = after + timedelta(days=1)
    for _ in range(31):
        if occurs_on(day, spec):
            return day
        day += timedelta(days=1)
    raise RuntimeError(f"no occurrence within 31 days for {spec!r}")
