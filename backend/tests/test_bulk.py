"""
대량 산출 테스트: 단건 결과와 동일성, 조회 횟수, 실패 강등.
"""
from app.infrastructure.consistency.aggregator import ConsistencyAggregator, ConsistencyResult
from app.infrastructure.consistency.bulk import BulkConsistencyCalculator
from app.infrastructure.consistency.challenge import ChallengeWeightedAdjustor
from app.infrastructure.consistency.ledger import load_snapshot
from conftest import AS_OF, CountingStore, FailingSource, make_action, make_events, make_participation


def _counting_copy(store) -> CountingStore:
    return CountingStore(store.actions, store.events, store.participations)


def test_bulk_goals_match_single_goal_results(scenario_store):
    calculator = BulkConsistencyCalculator(scenario_store, scenario_store)
    results = calculator.per_goal([10, 20, 30], AS_OF)
    for goal_id in (10, 20, 30):
        snapshot = load_snapshot(scenario_store, scenario_store, AS_OF, goal_ids=[goal_id])
        assert results[goal_id] == ConsistencyAggregator(snapshot).per_goal(goal_id)


def test_bulk_users_match_single_user_results(scenario_store):
    calculator = BulkConsistencyCalculator(scenario_store, scenario_store, scenario_store)
    results = calculator.per_user([1, 2], AS_OF)
    for user_id in (1, 2):
        snapshot = load_snapshot(
            scenario_store, scenario_store, AS_OF, owner_ids=[user_id], participations_source=scenario_store
        )
        assert results[user_id] == ChallengeWeightedAdjustor(ConsistencyAggregator(snapshot)).per_user(user_id)


def test_bulk_users_without_challenges(scenario_store):
    calculator = BulkConsistencyCalculator(scenario_store, scenario_store, scenario_store)
    results = calculator.per_user([1], AS_OF, include_challenges=False)
    assert (results[1].expected, results[1].completed, results[1].percentage) == (20, 9, 45)


def test_every_requested_id_present(scenario_store):
    calculator = BulkConsistencyCalculator(scenario_store, scenario_store, scenario_store)
    goals = calculator.per_goal([10, 777, 10], AS_OF)
    assert list(goals) == [10, 777]
    assert goals[777] == ConsistencyResult.zero()
    users = calculator.per_user([42], AS_OF)
    assert users == {42: ConsistencyResult.zero()}


def test_empty_request_returns_empty(scenario_store):
    calculator = BulkConsistencyCalculator(scenario_store, scenario_store)
    assert calculator.per_goal([], AS_OF) == {}
    assert calculator.per_user([], AS_OF) == {}


def test_goal_fetch_count_is_constant(scenario_store):
    store = _counting_copy(scenario_store)
    BulkConsistencyCalculator(store, store).per_goal([10, 20, 30, 40, 50], AS_OF)
    assert store.calls == ["list_actions", "count_completions"]


def test_user_fetch_count_is_constant(scenario_store):
    store = _counting_copy(scenario_store)
    BulkConsistencyCalculator(store, store, store).per_user([1, 2, 3], AS_OF)
    assert store.calls == ["list_actions", "count_completions", "list_participations"]


def test_many_users_still_three_fetches():
    actions = [make_action(i, owner_id=i, goal_id=i) for i in range(1, 51)]
    events = []
    for action in actions:
        events += make_events(action, [AS_OF], start_id=action.id * 10)
    store = CountingStore(actions, events, [make_participation(participant_id=3)])
    results = BulkConsistencyCalculator(store, store, store).per_user(range(1, 51), AS_OF)
    assert len(results) == 50
    assert len(store.calls) == 3


def test_fetch_failure_degrades_every_id_to_zero():
    failing = FailingSource()
    calculator = BulkConsistencyCalculator(failing, failing, failing)
    assert calculator.per_goal([1, 2], AS_OF) == {1: ConsistencyResult.zero(), 2: ConsistencyResult.zero()}
    assert calculator.per_user([3], AS_OF) == {3: ConsistencyResult.zero()}


def test_participation_failure_degrades_users(scenario_store):
    calculator = BulkConsistencyCalculator(scenario_store, scenario_store, FailingSource("participations"))
    assert calculator.per_user([1], AS_OF) == {1: ConsistencyResult.zero()}
    # 챌린지 제외 시 참가 조회를 하지 않는다
    assert calculator.per_user([1], AS_OF, include_challenges=False)[1].expected == 20


def test_user_fetch_count_without_challenges_is_two(scenario_store):
    store = _counting_copy(scenario_store)
    BulkConsistencyCalculator(store, store, store).per_user([1, 2, 3], AS_OF, include_challenges=False)
    assert store.calls == ["list_actions", "count_completions"]
