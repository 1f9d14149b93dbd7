from decimal import Decimal

import pytest

from column_advisor.cost import SpanScanCostModel
from column_advisor.errors import ConfigurationError, DegenerateNeighborError
from column_advisor.search import AnnealConfig, SimulatedAnnealer, exhaustive_search
from column_advisor.types import MultiReplicas, Query, Replica, Table

FAST = AnnealConfig(local_iterations=20, stable_rounds=15)


def _four_column_problem():
    table = Table("t", ("a", "b", "c", "d"))
    queries = [
        Query("q0", frozenset({0, 3}), weight=1),
        Query("q1", frozenset({1, 2}), weight=1),
    ]
    return table, queries


def test_single_replica_beats_every_temperature_sample() -> None:
    table, queries = _four_column_problem()
    model = SpanScanCostModel()
    annealer = SimulatedAnnealer(table, queries, model, replica_count=1, seed=13)
    best = annealer.optimize()

    assert len(best) == 1
    assert len(annealer.sample_costs) == 20
    assert annealer.best_cost <= min(annealer.sample_costs)
    assert model.multi_cost(best, queries) == annealer.best_cost
    _, optimum = exhaustive_search(table, queries, model)
    assert optimum == Decimal(4)
    assert annealer.best_cost == optimum


def test_history_starts_at_initial_cost_and_is_read_only() -> None:
    table, queries = _four_column_problem()
    annealer = SimulatedAnnealer(table, queries, SpanScanCostModel(), config=FAST, seed=2)
    with pytest.raises(RuntimeError):
        _ = annealer.best_cost
    annealer.optimize()
    history = annealer.history
    assert isinstance(history, tuple)
    assert len(history) >= 1
    assert all(isinstance(c, Decimal) for c in history)
    assert min(history) <= annealer.best_cost


def test_returns_configured_replica_count() -> None:
    table = Table("t", tuple(f"c{i}" for i in range(6)))
    queries = [
        Query("q0", frozenset({0, 5}), weight=2),
        Query("q1", frozenset({1, 4}), weight=1),
        Query("q2", frozenset({2, 3, 5}), weight=3),
    ]
    for r in (1, 2, 3):
        best = SimulatedAnnealer(table, queries, SpanScanCostModel(), replica_count=r, config=FAST, seed=r).optimize()
        assert len(best) == r
        assert all(sorted(x.order) == list(range(6)) for x in best)


def test_same_seed_same_result() -> None:
    table, queries = _four_column_problem()
    one = SimulatedAnnealer(table, queries, SpanScanCostModel(), replica_count=2, config=FAST, seed=21)
    two = SimulatedAnnealer(table, queries, SpanScanCostModel(), replica_count=2, config=FAST, seed=21)
    assert one.optimize() == two.optimize()
    assert one.history == two.history


def test_candidate_moves_every_replica() -> None:
    table, queries = _four_column_problem()
    annealer = SimulatedAnnealer(table, queries, SpanScanCostModel(), replica_count=2, config=FAST, seed=4)
    base = MultiReplicas.of([Replica(table, (0, 1, 2, 3)), Replica(table, (0, 1, 2, 3))])
    for _ in range(50):
        cand = annealer.generate_candidate(base)
        assert len(cand) == 2
        assert cand != base
        assert all(r.order != (0, 1, 2, 3) for r in cand)


def test_candidate_rejection_is_bounded() -> None:
    # on two columns each replica can only flip, so {ab, ba} maps onto itself
    table = Table("t", ("a", "b"))
    queries = [Query("q", frozenset({0}), weight=1)]
    cfg = AnnealConfig(max_neighbor_retries=5)
    annealer = SimulatedAnnealer(table, queries, SpanScanCostModel(), replica_count=1, config=cfg, seed=0)
    both = MultiReplicas.of([Replica(table, (0, 1)), Replica(table, (1, 0))])
    with pytest.raises(DegenerateNeighborError):
        annealer.generate_candidate(both)


def test_two_columns_reject_several_replicas_before_searching() -> None:
    table = Table("t", ("a", "b"))
    queries = [Query("q0", frozenset({0}), weight=1), Query("q1", frozenset({1}), weight=2)]
    for seed in range(20):
        with pytest.raises(ConfigurationError):
            SimulatedAnnealer(table, queries, SpanScanCostModel(), replica_count=2, seed=seed)
    for seed in range(5):
        annealer = SimulatedAnnealer(table, queries, SpanScanCostModel(), replica_count=1, config=FAST, seed=seed)
        best = annealer.optimize()
        assert len(best) == 1
        assert annealer.best_cost <= min(annealer.sample_costs)


def test_configuration_is_validated_up_front() -> None:
    table, queries = _four_column_problem()
    model = SpanScanCostModel()
    with pytest.raises(ConfigurationError):
        SimulatedAnnealer(Table("one", ("a",)), [Query("q", frozenset({0}))], model)
    with pytest.raises(ConfigurationError):
        SimulatedAnnealer(table, [], model)
    with pytest.raises(ConfigurationError):
        SimulatedAnnealer(table, queries, model, replica_count=0)
    with pytest.raises(ConfigurationError):
        SimulatedAnnealer(table, [Query("q", frozenset({7}))], model)
    with pytest.raises(ConfigurationError):
        SimulatedAnnealer(table, [Query("q", frozenset({0}), weight=0)], model)
    with pytest.raises(ConfigurationError):
        SimulatedAnnealer(table, queries, model, config=AnnealConfig(decay=1.0))
    with pytest.raises(ConfigurationError):
        SimulatedAnnealer(table, queries, model, config=AnnealConfig(init_seed=1.0))
    with pytest.raises(ValueError):
        SimulatedAnnealer(table, queries, model, config=AnnealConfig(stable_rounds=0))


def test_exhaustive_refuses_large_spaces() -> None:
    table = Table("t", tuple(f"c{i}" for i in range(9)))
    with pytest.raises(ValueError):
        exhaustive_search(table, [Query("q", frozenset({0, 1}))], SpanScanCostModel(), enum_threshold=1000)
