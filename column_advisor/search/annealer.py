from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from column_advisor.cost import CostModel
from column_advisor.errors import ConfigurationError, DegenerateNeighborError
from column_advisor.search.neighbors import neighbor
from column_advisor.search.schedule import accept, cool, initial_temperature
from column_advisor.types import Cost, MultiReplicas, Query, Replica, Table

logger = logging.getLogger(__name__)


@dataclass
class AnnealConfig:
    init_samples: int = 20
    init_seed: float = 0.9
    decay: float = 0.7
    local_iterations: int = 50
    stable_rounds: int = 100
    max_neighbor_retries: int = 1000

    def validate(self) -> None:
        if self.init_samples < 1:
            raise ConfigurationError("init_samples must be positive")
        if not 0.0 < self.init_seed < 1.0:
            raise ConfigurationError(f"init_seed must be in (0, 1), got {self.init_seed}")
        if not 0.0 < self.decay < 1.0:
            raise ConfigurationError(f"decay must be in (0, 1), got {self.decay}")
        if self.local_iterations < 1:
            raise ConfigurationError("local_iterations must be positive")
        if self.stable_rounds < 1:
            raise ConfigurationError("stable_rounds must be positive")
        if self.max_neighbor_retries < 1:
            raise ConfigurationError("max_neighbor_retries must be positive")


@dataclass
class AnnealState:
    temperature: float
    best: MultiReplicas
    best_cost: Cost
    stable_count: int = 0
    rounds: int = 0
    history: List[Cost] = field(default_factory=list)


def validate_problem(table: Table, queries: Sequence[Query], replica_count: int) -> None:
    if replica_count < 1:
        raise ConfigurationError(f"replica count must be positive, got {replica_count}")
    if table.n_columns < 2:
        raise ConfigurationError(f"table '{table.name}' needs at least 2 columns, has {table.n_columns}")
    if not queries:
        raise ConfigurationError("workload is empty")
    for q in queries:
        if q.weight <= 0:
            raise ConfigurationError(f"query '{q.query_id}' has non-positive weight {q.weight}")
        bad = [c for c in q.columns if not 0 <= c < table.n_columns]
        if bad:
            raise ConfigurationError(f"query '{q.query_id}' references unknown columns {sorted(bad)}")


class SimulatedAnnealer:
    """Searches column orders for a fixed number of replicas of one table.

    All search state lives in ``self.state``; two annealers never share
    anything, so independent runs can execute side by side.

    The search starts from a fresh random layout unless the cheapest
    temperature sample is strictly cheaper, in which case it starts there.
    A two-column table admits a single replica only: with two or more, the
    layout {ab, ba} flips onto itself and has no distinct neighbour.
    """

    def __init__(
        self,
        table: Table,
        queries: Sequence[Query],
        cost_model: CostModel,
        replica_count: int = 1,
        config: AnnealConfig | None = None,
        seed: int = 7,
    ):
        self.config = config or AnnealConfig()
        self.config.validate()
        validate_problem(table, queries, replica_count)
        if table.n_columns == 2 and replica_count > 1:
            raise ConfigurationError(
                f"table '{table.name}' has 2 columns; annealing {replica_count} replicas can stall "
                "on {ab, ba}, use replica_count=1"
            )
        self.table = table
        self.queries = list(queries)
        self.cost_model = cost_model
        self.replica_count = replica_count
        self.rng = np.random.default_rng(seed)
        self.state: Optional[AnnealState] = None
        self.sample_costs: List[Cost] = []

    def random_solution(self) -> MultiReplicas:
        return MultiReplicas.of(Replica.random(self.table, self.rng) for _ in range(self.replica_count))

    def score(self, multi: MultiReplicas) -> Cost:
        return self.cost_model.multi_cost(multi, self.queries)

    def generate_candidate(self, multi: MultiReplicas) -> MultiReplicas:
        """Move every replica instance once; redraw the whole layout if nothing changed."""
        for _ in range(self.config.max_neighbor_retries):
            cand = MultiReplicas()
            for replica in multi:
                order = neighbor(replica.order, self.rng, self.config.max_neighbor_retries)
                cand.add(Replica(replica.table, order))
            if cand != multi:
                return cand
        raise DegenerateNeighborError(
            f"no distinct layout after {self.config.max_neighbor_retries} draws"
        )

    def _init_state(self) -> AnnealState:
        samples: List[Tuple[Cost, MultiReplicas]] = []
        for _ in range(self.config.init_samples):
            m = self.random_solution()
            samples.append((self.score(m), m))
        self.sample_costs = [c for c, _ in samples]
        temperature = initial_temperature(self.sample_costs, self.config.init_seed)

        start = self.random_solution()
        start_cost = self.score(start)
        sample_cost, sample = min(samples, key=lambda s: s[0])
        if sample_cost < start_cost:
            start, start_cost = sample, sample_cost

        logger.debug("initial temperature %.6g, initial cost %s", temperature, start_cost)
        return AnnealState(temperature=temperature, best=start, best_cost=start_cost, history=[start_cost])

    def _local_search(self, state: AnnealState) -> Tuple[MultiReplicas, Cost]:
        current = state.best.copy()
        cur_cost = state.best_cost
        iteration = 0
        while state.temperature != 0 and iteration < self.config.local_iterations:
            cand = self.generate_candidate(current)
            new_cost = self.score(cand)
            if accept(cur_cost, new_cost, state.temperature, self.rng):
                current, cur_cost = cand, new_cost
                state.history.append(cur_cost)
            iteration += 1
        return current, cur_cost

    def optimize(self) -> MultiReplicas:
        state = self._init_state()
        self.state = state
        while state.stable_count < self.config.stable_rounds:
            current, cur_cost = self._local_search(state)
            if cur_cost < state.best_cost:
                state.best = current.copy()
                state.best_cost = cur_cost
                state.stable_count = 0
            else:
                state.stable_count += 1
            state.temperature = cool(state.temperature, self.config.decay)
            state.rounds += 1
            logger.debug(
                "round %d: t=%.6g best=%s stable=%d",
                state.rounds, state.temperature, state.best_cost, state.stable_count,
            )
        logger.info(
            "annealing done after %d rounds: best cost %s (%d accepted moves)",
            state.rounds, state.best_cost, len(state.history) - 1,
        )
        return state.best.copy()

    def _require_state(self) -> AnnealState:
        if self.state is None:
            raise RuntimeError("optimize() has not been run")
        return self.state

    @property
    def best_cost(self) -> Cost:
        return self._require_state().best_cost

    @property
    def history(self) -> Tuple[Cost, ...]:
        return tuple(self._require_state().history)

    @property
    def temperature(self) -> float:
        return self._require_state().temperature
