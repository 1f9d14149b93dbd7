from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from column_advisor.types import ZERO, Cost, MultiReplicas, Query, Replica, to_cost


class CostModel:
    """Scores layouts against a workload.

    Subclasses implement ``query_cost``. The aggregates default to a
    weight-scaled sum, where a multi-replica layout routes every query to its
    cheapest replica. Implementations must be deterministic and return
    non-negative ``Decimal`` values.
    """

    def query_cost(self, replica: Replica, query: Query) -> Cost:
        raise NotImplementedError

    def replica_cost(self, replica: Replica, queries: Sequence[Query]) -> Cost:
        total = ZERO
        for q in queries:
            total += self.query_cost(replica, q) * q.weight
        return total

    def multi_cost(self, multi: MultiReplicas, queries: Sequence[Query]) -> Cost:
        replicas = multi.distinct()
        if not replicas:
            raise ValueError("cannot score an empty layout")
        total = ZERO
        for q in queries:
            total += min(self.query_cost(r, q) for r in replicas) * q.weight
        return total


@dataclass
class SpanScanCostModel(CostModel):
    """Reference model for a column store laid out in replica order.

    A query reads the contiguous block of columns between the first and the
    last column it touches, so its cost is the byte width of that block times
    the row count, plus a fixed per-query seek.
    """

    seek_cost: float = 0.0

    def query_cost(self, replica: Replica, query: Query) -> Cost:
        if not query.columns:
            return to_cost(self.seek_cost)
        pos = replica.positions()
        touched = [pos[c] for c in query.columns]
        lo, hi = min(touched), max(touched)
        widths = replica.table.column_widths
        span = sum(to_cost(widths[replica.order[p]]) for p in range(lo, hi + 1))
        return span * Decimal(replica.table.row_count) + to_cost(self.seek_cost)
