"""
챌린지 참가 가중 합산 테스트.
"""
from datetime import date

from app.infrastructure.consistency.aggregator import (
    ConsistencyAggregator,
    ConsistencyResult,
    ConsistencyStatus,
    Tally,
)
from app.infrastructure.consistency.challenge import (
    ChallengeWeightedAdjustor,
    add_challenge_contributions,
    challenge_contribution,
)
from app.infrastructure.consistency.ledger import InMemoryConsistencyStore, load_snapshot
from conftest import AS_OF, day_range, make_action, make_events, make_participation


def test_contribution_uses_days_since_join():
    contribution = challenge_contribution(make_participation(duration_days=10), AS_OF)
    assert contribution.expected == 20
    assert contribution.completed == 10


def test_contribution_capped_at_duration():
    contribution = challenge_contribution(make_participation(duration_days=10), date(2024, 2, 1))
    assert contribution.expected == 20


def test_join_after_as_of_contributes_nothing():
    contribution = challenge_contribution(make_participation(joined_on=date(2024, 1, 15)), AS_OF)
    assert (contribution.expected, contribution.completed) == (0, 0)


def test_completed_rounds_half_up_and_clamps_percentage():
    half = make_participation(activities_per_day=3, joined_on=AS_OF, stored_completion_percentage=50.0)
    assert challenge_contribution(half, AS_OF).completed == 2  # 1.5 → 2
    over = make_participation(duration_days=10, stored_completion_percentage=130.0)
    assert challenge_contribution(over, AS_OF).completed == 20
    negative = make_participation(duration_days=10, stored_completion_percentage=-5.0)
    assert challenge_contribution(negative, AS_OF).completed == 0


def test_left_participation_is_skipped():
    tally = add_challenge_contributions(Tally(), [make_participation(status="left")], AS_OF)
    assert (tally.expected, tally.completed) == (0, 0)


def test_weighted_by_volume_not_averaged():
    # 행동 7/10(70%) + 챌린지 5/20(25%) → 12/30 = 40%, 단순 평균(47.5%)이 아님
    action = make_action(1)
    store = InMemoryConsistencyStore(
        [action],
        make_events(action, day_range(date(2024, 1, 1), 7)),
        [make_participation(duration_days=10, stored_completion_percentage=25.0)],
    )
    snapshot = load_snapshot(store, store, AS_OF, owner_ids=[1], participations_source=store)
    result = ChallengeWeightedAdjustor(ConsistencyAggregator(snapshot)).per_user(1)
    assert result == ConsistencyResult(30, 12, 40, ConsistencyStatus.NEEDS_ATTENTION)


def test_adjustor_ignores_other_users_participations(scenario_store):
    snapshot = load_snapshot(
        scenario_store, scenario_store, AS_OF, owner_ids=[1, 2], participations_source=scenario_store
    )
    adjustor = ChallengeWeightedAdjustor(ConsistencyAggregator(snapshot))
    assert adjustor.per_user(1) == ConsistencyResult(40, 19, 48, ConsistencyStatus.NEEDS_ATTENTION)
    assert adjustor.per_user(2) == ConsistencyAggregator(snapshot).per_user(2)


def test_user_with_only_challenges():
    store = InMemoryConsistencyStore(participations=[make_participation(participant_id=5, duration_days=10)])
    snapshot = load_snapshot(store, store, AS_OF, owner_ids=[5], participations_source=store)
    result = ChallengeWeightedAdjustor(ConsistencyAggregator(snapshot)).per_user(5)
    assert result == ConsistencyResult(20, 10, 50, ConsistencyStatus.NEEDS_ATTENTION)
