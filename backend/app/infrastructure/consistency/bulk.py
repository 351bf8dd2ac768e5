"""
대량 산출: N개 목표/사용자의 일관성을 고정된 횟수의 일괄 조회로 계산.
행동 1회 + 완료 집계 1회(+ 사용자 단위 챌린지 참가 1회) 조회 후 메모리에서 goal_id/owner_id별로 묶어 합산한다.
결과는 단건 진입점을 N번 호출한 것과 필드 단위로 동일해야 한다(실행 전략만 다름).
"""
import logging
from collections import defaultdict
from datetime import date
from typing import Iterable

from app.infrastructure.consistency.aggregator import ConsistencyResult, tally_actions
from app.infrastructure.consistency.challenge import add_challenge_contributions
from app.infrastructure.consistency.exceptions import DataFetchFailure
from app.infrastructure.consistency.ledger import (
    ActionSource,
    CompletionLedger,
    ParticipationSource,
    load_snapshot,
)
from app.infrastructure.consistency.status_config import StatusThresholds, get_status_thresholds

logger = logging.getLogger(__name__)


def _unique(ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(ids))


class BulkConsistencyCalculator:
    """
    스냅샷 1개로 전체를 계산한다. 동시에 기록되는 완료는 스냅샷 이후라면 결과에 없을 뿐,
    오류로 취급하지 않는다.
    """

    def __init__(
        self,
        actions_source: ActionSource,
        ledger: CompletionLedger,
        participations_source: ParticipationSource | None = None,
        thresholds: StatusThresholds | None = None,
    ):
        self.actions_source = actions_source
        self.ledger = ledger
        self.participations_source = participations_source
        self.thresholds = thresholds or get_status_thresholds()

    def per_goal(self, goal_ids: Iterable[int], as_of: date) -> dict[int, ConsistencyResult]:
        ids = _unique(goal_ids)
        if not ids:
            return {}
        try:
            snapshot = load_snapshot(self.actions_source, self.ledger, as_of, goal_ids=ids)
        except DataFetchFailure as e:
            logger.warning("[consistency] bulk goal fetch failed goals=%s: %s", len(ids), e)
            return {goal_id: ConsistencyResult.zero() for goal_id in ids}

        by_goal = defaultdict(list)
        for action in snapshot.actions:
            by_goal[action.goal_id].append(action)
        results = {
            goal_id: tally_actions(by_goal.get(goal_id, ()), snapshot.completion_counts, as_of).result(self.thresholds)
            for goal_id in ids
        }
        logger.info("[consistency] bulk goals=%s actions=%s as_of=%s", len(ids), len(snapshot.actions), as_of)
        return results

    def per_user(
        self, user_ids: Iterable[int], as_of: date, include_challenges: bool = True
    ) -> dict[int, ConsistencyResult]:
        ids = _unique(user_ids)
        if not ids:
            return {}
        participations_source = self.participations_source if include_challenges else None
        try:
            snapshot = load_snapshot(
                self.actions_source,
                self.ledger,
                as_of,
                owner_ids=ids,
                participations_source=participations_source,
            )
        except DataFetchFailure as e:
            logger.warning("[consistency] bulk user fetch failed users=%s: %s", len(ids), e)
            return {user_id: ConsistencyResult.zero() for user_id in ids}

        by_owner = defaultdict(list)
        for action in snapshot.actions:
            by_owner[action.owner_id].append(action)
        participations_by_owner = defaultdict(list)
        for participation in snapshot.participations:
            participations_by_owner[participation.participant_id].append(participation)

        results = {}
        for user_id in ids:
            tally = tally_actions(by_owner.get(user_id, ()), snapshot.completion_counts, as_of)
            add_challenge_contributions(tally, participations_by_owner.get(user_id, ()), as_of)
            results[user_id] = tally.result(self.thresholds)
        logger.info("[consistency] bulk users=%s actions=%s as_of=%s", len(ids), len(snapshot.actions), as_of)
        return results
