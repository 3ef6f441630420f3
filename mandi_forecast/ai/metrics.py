"""
Goodness-of-fit metrics for the price regression.
"""
from __future__ import annotations

import math
from typing import Iterable

import numpy as np


def _to_array(values: Iterable[float]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)


def r2_score(targets: Iterable[float], predictions: Iterable[float]) -> float:
    y = _to_array(targets)
    y_hat = _to_array(predictions)
    if y.size == 0:
        return 0.0
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    ss_res = float(np.sum((y - y_hat) ** 2))
    if math.isclose(ss_tot, 0.0):
        return 0.0
    return 1.0 - ss_res / ss_tot


def rmse(targets: Iterable[float], predictions: Iterable[float]) -> float:
    y = _to_array(targets)
    y_hat = _to_array(predictions)
    if y.size == 0:
        return 0.0
    return float(math.sqrt(float(np.mean((y - y_hat) ** 2))))
