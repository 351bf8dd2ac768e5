"""
외부 협력자 계약: 행동 목록, 완료 기록(Ledger), 챌린지 참가 조회.
엔진은 읽기만 하며 기록·취소(undo)는 행동 추적 서브시스템의 책임이다.
조회 실패는 DataFetchFailure로 알린다.
"""
from collections import defaultdict
from datetime import date, datetime
from typing import Iterable, Protocol

from app.infrastructure.consistency.entities import (
    ChallengeParticipation,
    CompletionEvent,
    ConsistencySnapshot,
    DateRange,
    RecurringAction,
)


class ActionSource(Protocol):
    def list_actions(
        self,
        *,
        owner_ids: Iterable[int] | None = None,
        goal_ids: Iterable[int] | None = None,
        action_ids: Iterable[int] | None = None,
    ) -> list[RecurringAction]:
        """주어진 조건(하나 이상)에 해당하는 행동 목록."""
        ...


class CompletionLedger(Protocol):
    def count_completions(
        self, action_ids: Iterable[int], date_range: DateRange | None = None
    ) -> dict[int, int]:
        """
        행동별 완료 수. 요청한 모든 id를 키로 포함한다(없으면 0).
        행동 생성일 이전 날짜의 이벤트는 세지 않는다.
        """
        ...

    def completion_times(
        self, action_ids: Iterable[int], date_range: DateRange | None = None
    ) -> dict[int, list[datetime]]:
        """행동별 완료 시각 목록(오름차순). '오늘 완료' 표시용."""
        ...


class ParticipationSource(Protocol):
    def list_participations(self, user_ids: Iterable[int]) -> list[ChallengeParticipation]:
        """사용자들의 챌린지 참가 목록(status=left 제외)."""
        ...


class InMemoryConsistencyStore:
    """
    이미 메모리에 있는 행·이벤트를 세 계약 모두로 노출한다.
    호출자가 미리 조회한 데이터로 엔진을 돌릴 때와 테스트에서 사용.
    """

    def __init__(
        self,
        actions: Iterable[RecurringAction] = (),
        events: Iterable[CompletionEvent] = (),
        participations: Iterable[ChallengeParticipation] = (),
    ):
        self.actions = list(actions)
        self.events = list(events)
        self.participations = list(participations)

    def add_event(self, event: CompletionEvent) -> None:
        self.events.append(event)

    def list_actions(self, *, owner_ids=None, goal_ids=None, action_ids=None) -> list[RecurringAction]:
        owners = set(owner_ids) if owner_ids is not None else None
        goals = set(goal_ids) if goal_ids is not None else None
        ids = set(action_ids) if action_ids is not None else None
        result = []
        for action in self.actions:
            if owners is not None and action.owner_id not in owners:
                continue
            if goals is not None and action.goal_id not in goals:
                continue
            if ids is not None and action.id not in ids:
                continue
            result.append(action)
        return sorted(result, key=lambda a: a.id)

    def _matching_events(self, action_ids: Iterable[int], date_range: DateRange | None):
        ids = set(action_ids)
        created = {a.id: a.created_on for a in self.actions if a.id in ids}
        for event in self.events:
            if event.action_id not in ids:
                continue
            day = event.occurred_at.date()
            if event.action_id in created and day < created[event.action_id]:
                continue
            if date_range is not None and not date_range.contains(day):
                continue
            yield event

    def count_completions(self, action_ids, date_range=None) -> dict[int, int]:
        ids = list(action_ids)
        counts = {action_id: 0 for action_id in ids}
        for event in self._matching_events(ids, date_range):
            counts[event.action_id] += 1
        return counts

    def completion_times(self, action_ids, date_range=None) -> dict[int, list[datetime]]:
        times: dict[int, list[datetime]] = defaultdict(list)
        for event in self._matching_events(action_ids, date_range):
            times[event.action_id].append(event.occurred_at)
        return {action_id: sorted(values) for action_id, values in times.items()}

    def list_participations(self, user_ids) -> list[ChallengeParticipation]:
        users = set(user_ids)
        return [
            p
            for p in self.participations
            if p.participant_id in users and p.counts_toward_consistency
        ]


def completions_until(as_of: date) -> DateRange:
    """스냅샷 기준일까지의 완료만 센다. 기준일 이후 기록은 결과에 영향을 주지 않는다."""
    return DateRange(start=None, end=as_of)


def load_snapshot(
    actions_source: ActionSource,
    ledger: CompletionLedger,
    as_of: date,
    *,
    owner_ids: Iterable[int] | None = None,
    goal_ids: Iterable[int] | None = None,
    action_ids: Iterable[int] | None = None,
    participations_source: ParticipationSource | None = None,
) -> ConsistencySnapshot:
    """
    행동 1회 + 완료 집계 1회 (+ 챌린지 참가 1회) 조회로 스냅샷을 만든다.
    실패는 DataFetchFailure 그대로 전파. 강등은 진입점의 책임.
    """
    if owner_ids is not None:
        owner_ids = list(owner_ids)
    actions = actions_source.list_actions(owner_ids=owner_ids, goal_ids=goal_ids, action_ids=action_ids)
    counts = ledger.count_completions([a.id for a in actions], completions_until(as_of)) if actions else {}
    participations: list[ChallengeParticipation] = []
    if participations_source is not None and owner_ids is not None:
        participations = participations_source.list_participations(owner_ids)
    return ConsistencySnapshot(
        as_of=as_of,
        actions=tuple(actions),
        completion_counts=dict(counts),
        participations=tuple(participations),
    )
