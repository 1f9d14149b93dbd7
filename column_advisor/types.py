from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, Iterator, List, Sequence, Tuple

import numpy as np

from column_advisor.errors import ConfigurationError

Cost = Decimal

ZERO = Decimal(0)


def to_cost(value: object) -> Cost:
    if isinstance(value, Decimal):
        return value
    # str() keeps float literals exact ("0.1" rather than its binary expansion)
    return Decimal(str(value))


@dataclass(frozen=True)
class Table:
    name: str
    columns: Tuple[str, ...]
    column_widths: Tuple[float, ...] = ()
    row_count: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))
        widths = tuple(self.column_widths) or tuple(1.0 for _ in self.columns)
        if len(widths) != len(self.columns):
            raise ConfigurationError(
                f"table '{self.name}' has {len(self.columns)} columns but {len(widths)} widths"
            )
        if any(w <= 0 for w in widths):
            raise ConfigurationError(f"table '{self.name}' has non-positive column widths")
        object.__setattr__(self, "column_widths", widths)

    @property
    def n_columns(self) -> int:
        return len(self.columns)

    def column_index(self, name: str) -> int:
        try:
            return self.columns.index(name)
        except ValueError:
            raise ConfigurationError(f"unknown column '{name}' in table '{self.name}'") from None


@dataclass(frozen=True)
class Query:
    query_id: str
    columns: FrozenSet[int]
    weight: Decimal = Decimal(1)

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", frozenset(int(c) for c in self.columns))
        object.__setattr__(self, "weight", to_cost(self.weight))

    def with_weight(self, weight: object) -> "Query":
        return replace(self, weight=to_cost(weight))


@dataclass(frozen=True)
class Replica:
    table: Table
    order: Tuple[int, ...]

    def __post_init__(self) -> None:
        order = tuple(int(c) for c in self.order)
        if sorted(order) != list(range(self.table.n_columns)):
            raise ConfigurationError(
                f"order {order} is not a permutation of {self.table.n_columns} columns"
            )
        object.__setattr__(self, "order", order)

    @classmethod
    def random(cls, table: Table, rng: np.random.Generator) -> "Replica":
        return cls(table, tuple(int(c) for c in rng.permutation(table.n_columns)))

    def positions(self) -> Dict[int, int]:
        return {col: pos for pos, col in enumerate(self.order)}

    def column_names(self) -> List[str]:
        return [self.table.columns[c] for c in self.order]


@dataclass
class MultiReplicas:
    """Several coexisting layouts of one table, keyed by replica with a multiplicity."""

    counts: Dict[Replica, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        counts = dict(self.counts)
        self.counts = {}
        for replica, count in counts.items():
            self.add(replica, count)

    @classmethod
    def of(cls, replicas: Iterable[Replica]) -> "MultiReplicas":
        out = cls()
        for r in replicas:
            out.add(r)
        return out

    def add(self, replica: Replica, count: int = 1) -> None:
        if count <= 0:
            raise ConfigurationError(f"multiplicity must be positive, got {count}")
        self.counts[replica] = self.counts.get(replica, 0) + int(count)

    def copy(self) -> "MultiReplicas":
        return MultiReplicas(dict(self.counts))

    def items(self) -> List[Tuple[Replica, int]]:
        return list(self.counts.items())

    def distinct(self) -> List[Replica]:
        return list(self.counts)

    def __iter__(self) -> Iterator[Replica]:
        for replica, count in self.counts.items():
            for _ in range(count):
                yield replica

    def __len__(self) -> int:
        return sum(self.counts.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MultiReplicas):
            return NotImplemented
        return self.counts == other.counts

    def orders(self) -> List[Tuple[int, ...]]:
        return [r.order for r in self]


def split_weight(query: Query, parts: int) -> List[Query]:
    fragment = query.weight / Decimal(parts)
    return [query.with_weight(fragment) for _ in range(parts)]


def total_weight(queries: Sequence[Query]) -> Decimal:
    return sum((q.weight for q in queries), ZERO)
