from __future__ import annotations

import itertools
import math
from typing import Optional, Sequence, Tuple

from column_advisor.cost import CostModel
from column_advisor.search.annealer import validate_problem
from column_advisor.types import Cost, MultiReplicas, Query, Replica, Table


def search_space_size(n_columns: int, replica_count: int) -> int:
    # multisets of size replica_count drawn from n_columns! permutations
    perms = math.factorial(n_columns)
    return math.comb(perms + replica_count - 1, replica_count)


def exhaustive_search(
    table: Table,
    queries: Sequence[Query],
    cost_model: CostModel,
    replica_count: int = 1,
    enum_threshold: int = 50_000,
) -> Tuple[MultiReplicas, Cost]:
    """Score every layout of ``replica_count`` replicas and return the cheapest."""
    validate_problem(table, queries, replica_count)
    size = search_space_size(table.n_columns, replica_count)
    if size > enum_threshold:
        raise ValueError(f"search space of {size} layouts exceeds enum_threshold={enum_threshold}")

    replicas = [Replica(table, p) for p in itertools.permutations(range(table.n_columns))]
    best: Optional[MultiReplicas] = None
    best_cost: Optional[Cost] = None
    for combo in itertools.combinations_with_replacement(replicas, replica_count):
        m = MultiReplicas.of(combo)
        c = cost_model.multi_cost(m, queries)
        if best_cost is None or c < best_cost:
            best, best_cost = m, c
    return best, best_cost
