"""
Moving averages. Inputs are oldest-first; outputs are aligned to the end of
the input and drop the warm-up values. Too-short input yields an empty array.
"""

from __future__ import annotations
from typing import Sequence, Union

import numpy as np
import pandas as pd

ArrayLike = Union[Sequence[float], np.ndarray, pd.Series]


def as_array(series: ArrayLike) -> np.ndarray:
    return np.asarray(series, dtype=float)


def check_period(period: int) -> None:
    if not isinstance(period, int) or isinstance(period, bool) or period < 1:
        raise ValueError(f"period must be a positive integer, got {period!r}")


def ema(series: ArrayLike, period: int) -> np.ndarray:
    """
    Exponential moving average seeded with the SMA of the first *period* values:
        ema[i] = (x[i] - ema[i-1]) * k + ema[i-1],  k = 2 / (period + 1)
    Output length is len(series) - period + 1.
    """
    check_period(period)
    values = as_array(series)
    if len(values) < period:
        return np.empty(0)
    k = 2.0 / (period + 1)
    out = np.empty(len(values) - period + 1)
    out[0] = values[:period].mean()
    for i, x in enumerate(values[period:], start=1):
        out[i] = (x - out[i - 1]) * k + out[i - 1]
    return out


def sma(series: ArrayLike, period: int) -> np.ndarray:
    """Simple rolling mean. Output length is len(series) - period + 1."""
    check_period(period)
    values = as_array(series)
    if len(values) < period:
        return np.empty(0)
    return pd.Series(values).rolling(period).mean().to_numpy()[period - 1:]
