"""
챌린지 참가 신호를 사용자 단위 일관성에 합산.
챌린지별 기대량(하루 활동 수 × 집계 일수)과 저장된 완료율로 환산한 완료량을
일반 행동과 같은 누적 합에 더한 뒤 나눈다. 기대량 가중 평균이며 두 백분율의 단순 평균이 아니다.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from app.infrastructure.consistency.aggregator import ConsistencyAggregator, ConsistencyResult, Tally
from app.infrastructure.consistency.entities import ChallengeParticipation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChallengeContribution:
    challenge_id: int
    expected: int
    completed: int


def challenge_contribution(participation: ChallengeParticipation, as_of: date) -> ChallengeContribution:
    """
    days_since_join = 경과 일수(가입일 포함), days_to_count = min(days_since_join, duration_days).
    challenge_completed = round(challenge_expected × 저장 완료율 / 100).
    """
    days_since_join = (as_of - participation.joined_on).days + 1
    days_to_count = max(min(days_since_join, participation.duration_days), 0)
    expected = max(participation.activities_per_day, 0) * days_to_count
    stored = min(max(Decimal(str(participation.stored_completion_percentage or 0)), Decimal(0)), Decimal(100))
    completed = int((Decimal(expected) * stored / 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return ChallengeContribution(participation.challenge_id, expected, completed)


def add_challenge_contributions(
    tally: Tally, participations: Iterable[ChallengeParticipation], as_of: date
) -> Tally:
    """left 상태는 제외하고 누적 합에 더한다."""
    for participation in participations:
        if not participation.counts_toward_consistency:
            continue
        contribution = challenge_contribution(participation, as_of)
        tally.add(contribution.expected, contribution.completed)
        logger.debug(
            "[consistency] challenge=%s participant=%s contributes %s/%s",
            participation.challenge_id, participation.participant_id,
            contribution.completed, contribution.expected,
        )
    return tally


class ChallengeWeightedAdjustor:
    """ConsistencyAggregator.per_user 확장: 스냅샷의 챌린지 참가를 함께 합산."""

    def __init__(self, aggregator: ConsistencyAggregator):
        self.aggregator = aggregator

    def per_user(self, user_id: int) -> ConsistencyResult:
        snapshot = self.aggregator.snapshot
        tally = self.aggregator.user_tally(user_id)
        own = [p for p in snapshot.participations if p.participant_id == user_id]
        add_challenge_contributions(tally, own, snapshot.as_of)
        return tally.result(self.aggregator.thresholds)
