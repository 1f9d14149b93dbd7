from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

import numpy as np

from column_advisor.cost import CostModel
from column_advisor.errors import ConfigurationError
from column_advisor.search.annealer import AnnealConfig, SimulatedAnnealer, validate_problem
from column_advisor.types import ZERO, Cost, MultiReplicas, Query, Replica, Table, split_weight, to_cost

logger = logging.getLogger(__name__)

Workload = List[Query]


@dataclass
class DivergentConfig:
    replica_count: int = 3
    load_balance_factor: int = 1
    max_iterations: int = 10
    epsilon: float = 1e-6
    max_workers: int = 1

    def validate(self) -> None:
        if self.replica_count < 1:
            raise ConfigurationError(f"replica count must be positive, got {self.replica_count}")
        if not 1 <= self.load_balance_factor <= self.replica_count:
            raise ConfigurationError(
                f"load balance factor must be in [1, {self.replica_count}], got {self.load_balance_factor}"
            )
        if self.max_iterations < 1:
            raise ConfigurationError("max_iterations must be positive")
        if self.epsilon < 0:
            raise ConfigurationError("epsilon must be non-negative")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be positive")


def least_cost_replicas(
    replicas: Sequence[Replica], query: Query, cost_model: CostModel, k: int
) -> List[int]:
    """Indices of the ``k`` replicas cheapest for ``query``; ties go to the lower index."""
    costs = [cost_model.query_cost(r, query) for r in replicas]
    return sorted(range(len(replicas)), key=lambda i: (costs[i], i))[:k]


class DivergentDesign:
    """Partitions a workload over several replicas and tunes each replica for its share.

    Alternates between annealing one layout per bucket and routing every query
    (split into ``load_balance_factor`` equal fragments) to the cheapest
    layouts, until the routed total cost settles or ``max_iterations`` rounds
    have run.
    """

    def __init__(
        self,
        table: Table,
        queries: Sequence[Query],
        cost_model: CostModel,
        config: DivergentConfig | None = None,
        anneal_config: AnnealConfig | None = None,
        seed: int = 7,
    ):
        self.config = config or DivergentConfig()
        self.config.validate()
        self.anneal_config = anneal_config or AnnealConfig()
        self.anneal_config.validate()
        validate_problem(table, queries, self.config.replica_count)
        self.table = table
        self.workload = list(queries)
        self.cost_model = cost_model
        self.seed = seed
        self.rng = np.random.default_rng(seed)

        self.assignments: List[Workload] = []
        self.replicas: List[Replica] = []
        self.cost_history: List[Cost] = []
        self.total_cost: Optional[Cost] = None
        self.iterations = 0

    def initial_assignment(self) -> List[Workload]:
        # fragments of one query may land in the same bucket
        buckets: List[Workload] = [[] for _ in range(self.config.replica_count)]
        for q in self.workload:
            for fragment in split_weight(q, self.config.load_balance_factor):
                buckets[int(self.rng.integers(0, self.config.replica_count))].append(fragment)
        return buckets

    def reassign(self, replicas: Sequence[Replica]) -> List[Workload]:
        buckets: List[Workload] = [[] for _ in range(self.config.replica_count)]
        f = self.config.load_balance_factor
        for q in self.workload:
            fragment = q.weight / Decimal(f)
            for idx in least_cost_replicas(replicas, q, self.cost_model, f):
                buckets[idx].append(q.with_weight(fragment))
        return buckets

    def routed_cost(self, replicas: Sequence[Replica]) -> Cost:
        f = Decimal(self.config.load_balance_factor)
        total = ZERO
        for q in self.workload:
            for idx in least_cost_replicas(replicas, q, self.cost_model, self.config.load_balance_factor):
                total += self.cost_model.query_cost(replicas[idx], q) * q.weight / f
        return total

    def _optimize_bucket(self, bucket: int, queries: Workload, iteration: int) -> Replica:
        seed = self.seed + 1000 * iteration + bucket
        if not queries:
            logger.debug("bucket %d is empty in round %d; using a random layout", bucket, iteration)
            return Replica.random(self.table, np.random.default_rng(seed))
        annealer = SimulatedAnnealer(
            self.table,
            queries,
            self.cost_model,
            replica_count=1,
            config=self.anneal_config,
            seed=seed,
        )
        return next(iter(annealer.optimize()))

    def optimize_replicas(self, assignments: Sequence[Workload], iteration: int) -> List[Replica]:
        if self.config.max_workers == 1:
            return [self._optimize_bucket(i, qs, iteration) for i, qs in enumerate(assignments)]
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            futures = [pool.submit(self._optimize_bucket, i, qs, iteration) for i, qs in enumerate(assignments)]
            return [f.result() for f in futures]

    def _converged(self, cur_cost: Cost, prev_cost: Optional[Cost]) -> bool:
        if prev_cost is None:
            return False
        return abs(cur_cost - prev_cost) < to_cost(self.config.epsilon)

    def optimize(self) -> MultiReplicas:
        self.assignments = self.initial_assignment()
        self.cost_history = []
        prev_cost: Optional[Cost] = None
        iteration = 1
        while True:
            replicas = self.optimize_replicas(self.assignments, iteration)
            cur_cost = self.routed_cost(replicas)
            self.cost_history.append(cur_cost)
            logger.info("divergent round %d: routed cost %s", iteration, cur_cost)
            if self._converged(cur_cost, prev_cost) or iteration >= self.config.max_iterations:
                break
            prev_cost = cur_cost
            self.assignments = self.reassign(replicas)
            iteration += 1

        self.replicas = list(replicas)
        self.total_cost = cur_cost
        self.iterations = iteration
        return MultiReplicas.of(replicas)
