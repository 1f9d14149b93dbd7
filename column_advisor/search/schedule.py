from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Sequence

import numpy as np

from column_advisor.types import Cost

_TEMPERATURE_PLACES = Decimal("1e-10")


def initial_temperature(sample_costs: Sequence[Cost], init_seed: float) -> float:
    """Temperature at which the widest sampled cost gap is accepted with probability ``init_seed``.

    ``(min - max) / ln(init_seed)``: both terms are non-positive, so the
    result is a small non-negative temperature.
    """
    if not sample_costs:
        raise ValueError("need at least one sampled cost")
    with localcontext() as ctx:
        ctx.prec = 60
        spread = min(sample_costs) - max(sample_costs)
        t = spread / Decimal(repr(math.log(init_seed)))
        return float(t.quantize(_TEMPERATURE_PLACES, rounding=ROUND_HALF_UP))


def acceptance_probability(cur_cost: Cost, new_cost: Cost, temperature: float) -> float:
    if new_cost <= cur_cost:
        return 1.0
    if temperature <= 0:
        return 0.0
    return math.exp(float(cur_cost - new_cost) / temperature)


def accept(cur_cost: Cost, new_cost: Cost, temperature: float, rng: np.random.Generator) -> bool:
    """Metropolis rule for minimisation; only the random draw itself is floating point."""
    if new_cost < cur_cost:
        return True
    return bool(rng.random() <= acceptance_probability(cur_cost, new_cost, temperature))


def cool(temperature: float, decay: float) -> float:
    return temperature * decay
