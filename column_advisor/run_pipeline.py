#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

os.environ.setdefault("MPLCONFIGDIR", "/tmp/mplconfig")

from column_advisor.pipeline import load_config, run_pipeline


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Column-order advisor: simulated annealing and divergent design")
    p.add_argument(
        "--config",
        type=str,
        default=str(Path(__file__).with_name("config.yaml")),
        help="Path to YAML config",
    )
    p.add_argument("--output-dir", type=str, default="artifacts", help="Where to write outputs")
    p.add_argument("--log", default=None, help="Optional path for a log file.")
    p.add_argument("--verbose", action="store_true", help="Log every annealing round")
    return p.parse_args()


def setup_logging(log_path: str | None, verbose: bool) -> None:
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    fmt = logging.Formatter(fmt="%(asctime)s %(levelname)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_path:
        os.makedirs(os.path.dirname(os.path.abspath(log_path)), exist_ok=True)
        fh = logging.FileHandler(log_path)
        fh.setFormatter(fmt)
        logger.addHandler(fh)


def main() -> None:
    args = parse_args()
    setup_logging(args.log, args.verbose)
    cfg = load_config(args.config)
    art = run_pipeline(cfg, Path(args.output_dir))

    print(f"Mode: {art.mode}")
    print(f"Queries: {len(art.workload)}")
    print(f"Best cost: {art.best_cost}")
    if art.oracle_cost is not None:
        print(f"Exhaustive optimum: {art.oracle_cost}")
    print("Layout:")
    for row in art.summary["layout"]:
        print(f"  x{row['multiplicity']} {row['order']}")


if __name__ == "__main__":
    main()
