from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import yaml

from column_advisor.cost import SpanScanCostModel
from column_advisor.divergent import DivergentConfig, DivergentDesign
from column_advisor.errors import ConfigurationError
from column_advisor.eval import plot_cost_history
from column_advisor.search import AnnealConfig, SimulatedAnnealer, exhaustive_search, search_space_size
from column_advisor.types import Cost, MultiReplicas, Query, Table

logger = logging.getLogger(__name__)

MODES = ("anneal", "divergent")


@dataclass
class PipelineArtifacts:
    mode: str
    table: Table
    workload: List[Query]
    layout: MultiReplicas
    best_cost: Cost
    history: List[Cost]
    oracle_cost: Optional[Cost]
    summary: Dict[str, object]


def load_config(path: str | Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_table(cfg: Mapping) -> Table:
    raw = cfg.get("table")
    if not raw or not raw.get("columns"):
        raise ConfigurationError("config needs a table with at least one column")
    return Table(
        name=str(raw.get("name", "table")),
        columns=tuple(str(c) for c in raw["columns"]),
        column_widths=tuple(float(w) for w in raw.get("widths", ())),
        row_count=int(raw.get("row_count", 1)),
    )


def _column_ref(table: Table, ref: object) -> int:
    if isinstance(ref, int) and not isinstance(ref, bool):
        if not 0 <= ref < table.n_columns:
            raise ConfigurationError(f"column index {ref} out of range for table '{table.name}'")
        return ref
    return table.column_index(str(ref))


def generate_synthetic_workload(table: Table, n_queries: int, max_columns: int, seed: int) -> List[Query]:
    rng = np.random.default_rng(seed)
    hi = max(1, min(max_columns, table.n_columns))
    out: List[Query] = []
    for i in range(n_queries):
        k = int(rng.integers(1, hi + 1))
        cols = rng.choice(np.arange(table.n_columns), size=k, replace=False)
        weight = int(rng.integers(1, 11))
        out.append(Query(query_id=f"q_{i:03d}", columns=frozenset(int(c) for c in cols), weight=weight))
    return out


def parse_workload(cfg: Mapping, table: Table, seed: int = 7) -> List[Query]:
    raw = cfg.get("workload") or {}
    synthetic = raw.get("synthetic")
    if synthetic:
        return generate_synthetic_workload(
            table,
            n_queries=int(synthetic.get("n_queries", 20)),
            max_columns=int(synthetic.get("max_columns", 3)),
            seed=seed,
        )
    queries = []
    for i, item in enumerate(raw.get("queries", [])):
        queries.append(
            Query(
                query_id=str(item.get("id", f"q_{i:03d}")),
                columns=frozenset(_column_ref(table, c) for c in item["columns"]),
                weight=item.get("weight", 1),
            )
        )
    return queries


def _dataclass_from(cls, raw: Mapping | None):
    names = {f.name for f in fields(cls)}
    raw = dict(raw or {})
    unknown = sorted(set(raw) - names)
    if unknown:
        raise ConfigurationError(f"unknown {cls.__name__} keys: {unknown}")
    return cls(**raw)


def write_history(history: Sequence[Cost], path: Path, label: str = "step") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow([label, "cost"])
        for i, c in enumerate(history):
            w.writerow([i, str(c)])


def _layout_rows(layout: MultiReplicas) -> List[dict]:
    return [{"order": r.column_names(), "multiplicity": n} for r, n in layout.items()]


def run_pipeline(cfg: Mapping, output_dir: Path) -> PipelineArtifacts:
    output_dir.mkdir(parents=True, exist_ok=True)
    seed = int(cfg.get("seed", 7))
    mode = str(cfg.get("mode", "anneal")).lower()
    if mode not in MODES:
        raise ConfigurationError(f"unknown mode '{mode}', expected one of {MODES}")

    table = parse_table(cfg)
    workload = parse_workload(cfg, table, seed=seed)
    cost_model = SpanScanCostModel(seek_cost=float((cfg.get("cost_model") or {}).get("seek_cost", 0.0)))

    anneal_raw = dict(cfg.get("anneal") or {})
    anneal_replicas = int(anneal_raw.pop("replica_count", 1))
    anneal_cfg = _dataclass_from(AnnealConfig, anneal_raw)

    if mode == "anneal":
        annealer = SimulatedAnnealer(table, workload, cost_model, replica_count=anneal_replicas, config=anneal_cfg, seed=seed)
        layout = annealer.optimize()
        best_cost = annealer.best_cost
        history = list(annealer.history)
        replica_count = anneal_replicas
        extra = {"temperature_samples": [str(c) for c in annealer.sample_costs]}
    else:
        div_cfg = _dataclass_from(DivergentConfig, cfg.get("divergent"))
        design = DivergentDesign(table, workload, cost_model, config=div_cfg, anneal_config=anneal_cfg, seed=seed)
        layout = design.optimize()
        best_cost = design.total_cost
        history = list(design.cost_history)
        replica_count = div_cfg.replica_count
        extra = {
            "iterations": design.iterations,
            "bucket_sizes": [len(b) for b in design.assignments],
        }

    oracle_cfg = cfg.get("oracle") or {}
    oracle_cost: Optional[Cost] = None
    if oracle_cfg.get("enabled", True):
        threshold = int(oracle_cfg.get("enum_threshold", 50_000))
        if search_space_size(table.n_columns, replica_count) <= threshold:
            _, oracle_cost = exhaustive_search(table, workload, cost_model, replica_count, enum_threshold=threshold)
        else:
            logger.info("skipping exhaustive oracle: search space above %d layouts", threshold)

    # divergent totals are routed over F replicas, so they are not comparable to the oracle
    summary: Dict[str, object] = {
        "seed": seed,
        "mode": mode,
        "table": table.name,
        "n_columns": table.n_columns,
        "n_queries": len(workload),
        "replica_count": replica_count,
        "best_cost": str(best_cost),
        "multi_cost": str(cost_model.multi_cost(layout, workload)),
        "oracle_cost": str(oracle_cost) if oracle_cost is not None else None,
        "layout": _layout_rows(layout),
        **extra,
    }
    with open(output_dir / "summary.json", "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)

    write_history(history, output_dir / "history.csv", label="step" if mode == "anneal" else "round")
    plot_cost_history(
        history,
        output_dir / "plots",
        xlabel="# Accepted moves" if mode == "anneal" else "# Rounds",
    )

    return PipelineArtifacts(
        mode=mode,
        table=table,
        workload=workload,
        layout=layout,
        best_cost=best_cost,
        history=history,
        oracle_cost=oracle_cost,
        summary=summary,
    )
