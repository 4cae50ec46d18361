"""True range, ATR and rolling extremes."""

from __future__ import annotations
from typing import Tuple

import numpy as np
import pandas as pd

from signal_engine.indicators.moving_averages import ArrayLike, as_array, check_period


def _check_lengths(*arrays: np.ndarray) -> None:
    if len({len(a) for a in arrays}) > 1:
        raise ValueError("high, low and close must have the same length")


def true_range(high: ArrayLike, low: ArrayLike, close: ArrayLike) -> np.ndarray:
    """
    TR = max(high - low, |high - prev_close|, |low - prev_close|).
    The first bar has no previous close and uses its own high - low.
    """
    h, l, c = as_array(high), as_array(low), as_array(close)
    _check_lengths(h, l, c)
    if len(h) == 0:
        return np.empty(0)
    tr = h - l
    prev_close = c[:-1]
    tr[1:] = np.maximum.reduce([
        h[1:] - l[1:],
        np.abs(h[1:] - prev_close),
        np.abs(l[1:] - prev_close),
    ])
    return tr


def atr(high: ArrayLike, low: ArrayLike, close: ArrayLike, period: int = 14) -> np.ndarray:
    """
    Average True Range with Wilder smoothing.
    Seed = mean of the first *period* true ranges; then
        atr[i] = (atr[i-1] * (period - 1) + tr[i]) / period
    Output length is len(close) - period + 1.
    """
    check_period(period)
    tr = true_range(high, low, close)
    if len(tr) < period:
        return np.empty(0)
    out = np.empty(len(tr) - period + 1)
    out[0] = tr[:period].mean()
    for j, value in enumerate(tr[period:], start=1):
        out[j] = (out[j - 1] * (period - 1) + value) / period
    return out


def rolling_high_low(high: ArrayLike, low: ArrayLike, period: int) -> Tuple[np.ndarray, np.ndarray]:
    """Trailing *period*-bar max(high) and min(low) for every complete window."""
    check_period(period)
    h, l = as_array(high), as_array(low)
    _check_lengths(h, l)
    if len(h) < period:
        return np.empty(0), np.empty(0)
    highs = pd.Series(h).rolling(period).max().to_numpy()[period - 1:]
    lows = pd.Series(l).rolling(period).min().to_numpy()[period - 1:]
    return highs, lows
