"""
일관성 엔진 예외.
DataFetchFailure는 진입점에서 0 결과로 강등되고, InvalidFrequencySpec은 daily로 대체된다.
호출자에게 전파되는 예외는 없다.
"""
from typing import Any


class ConsistencyError(Exception):
    """일관성 엔진 예외 기반 클래스."""


class DataFetchFailure(ConsistencyError):
    """외부 조회(행동·완료 기록·챌린지 참가) 실패."""

    def __init__(self, source: str, detail: str = "", cause: BaseException | None = None):
        self.source = source
        self.detail = detail
        self.cause = cause
        message = f"{source} fetch failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidFrequencySpec(ConsistencyError):
    """알 수 없거나 잘못된 frequency / scheduled_days 조합."""

    def __init__(self, frequency: Any, scheduled_days: Any = None, reason: str = ""):
        self.frequency = frequency
        self.scheduled_days = scheduled_days
        self.reason = reason
        super().__init__(
            f"invalid frequency spec frequency={frequency!r} "
            f"scheduled_days={scheduled_days!r}: {reason}"
        )
