from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt


def plot_cost_history(history: Sequence[float], out_dir: Path, name: str = "cost_history", xlabel: str = "# Accepted moves") -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{name}.png"
    plt.figure(figsize=(6, 4))
    plt.plot(range(len(history)), [float(c) for c in history], marker="o" if len(history) <= 50 else None)
    plt.xlabel(xlabel)
    plt.ylabel("Workload cost")
    plt.grid(alpha=0.3)
    plt.tight_layout()
    plt.savefig(path, dpi=160)
    plt.close()
    return path
