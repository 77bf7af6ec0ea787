from __future__ import annotations
import math
from datetime import date
from typing import Callable, List, Optional

import pandas as pd

from config import (
    LCG_INCREMENT, LCG_MODULUS, LCG_MULTIPLIER,
    SAMPLE_BASE_FIXED_COST, SAMPLE_BASE_VARIABLE_COST,
    SAMPLE_END, SAMPLE_MONTHS, SAMPLE_SEED,
)
from .contracts import CostRecord


def seeded_random(seed: int) -> Callable[[], float]:
    """Linear congruential generator in [0, 1); same seed -> same sequence."""
    state = int(seed)

    def _next() -> float:
        nonlocal state
        state = (state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return state / LCG_MODULUS

    return _next


def _round_half_up(x: float, ndigits: int = 0) -> float:
    f = 10 ** ndigits
    return math.floor(x * f + 0.5) / f


def generate_historical_costs(
    seed: int = SAMPLE_SEED,
    months: int = SAMPLE_MONTHS,
    end: Optional[date] = None,
) -> List[CostRecord]:
    """
    Demo dataset: `months` monthly records ending at `end` (inclusive).
    - volume: seasonal (sin over the calendar month) x slow trend + noise
    - total cost = fixed (~50k) + volume x variable (~75/unit)
    """
    end = end or date(*SAMPLE_END)
    rnd = seeded_random(seed)
    last = pd.Timestamp(end).to_period("M")
    out: List[CostRecord] = []
    for i in range(months - 1, -1, -1):
        p = last - i
        month_idx = p.month - 1   # 0..11
        seasonal = 1 + 0.2 * math.sin((month_idx / 12) * 2 * math.pi)
        trend = 1 + i * 0.005
        volume = 1000 * seasonal * trend + rnd() * 100 - 50

        variable_per_unit = SAMPLE_BASE_VARIABLE_COST + (rnd() - 0.5) * 5
        fixed = SAMPLE_BASE_FIXED_COST + (rnd() - 0.5) * 2000
        total = fixed + volume * variable_per_unit

        out.append(CostRecord(
            date=p.to_timestamp().strftime("%Y-%m-%d"),
            total_cost=float(_round_half_up(total)),
            unit_cost=float(_round_half_up(total / volume, 2)),
            volume=int(_round_half_up(volume)),
        ))
    return out
