"""RSI and MACD."""

from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from signal_engine.indicators.moving_averages import ArrayLike, as_array, check_period, ema


def _rsi_from_avgs(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def rsi(series: ArrayLike, period: int = 14) -> np.ndarray:
    """
    Wilder's Relative Strength Index.

    Algorithm:
        1. delta = x[i] - x[i-1]; gains/losses are its positive/negative parts.
        2. Seed average gain/loss = mean of the first *period* deltas.
        3. Subsequent: avg = (prev_avg * (period - 1) + current) / period
        4. RSI = 100 if avg_loss == 0 else 100 - 100 / (1 + avg_gain / avg_loss)

    Requires ``period + 1`` values. Output length is len(series) - period and
    every value lies in [0, 100].
    """
    check_period(period)
    values = as_array(series)
    if len(values) < period + 1:
        return np.empty(0)

    deltas = np.diff(values)
    gains = np.clip(deltas, 0.0, None)
    losses = np.clip(-deltas, 0.0, None)

    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()
    out = np.empty(len(deltas) - period + 1)
    out[0] = _rsi_from_avgs(avg_gain, avg_loss)
    for j, i in enumerate(range(period, len(deltas)), start=1):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[j] = _rsi_from_avgs(avg_gain, avg_loss)
    # Guard rounding at the extremes
    return np.clip(out, 0.0, 100.0)


@dataclass(frozen=True)
class MacdResult:
    """MACD line, signal line and histogram, each aligned to the end of the input."""
    line: np.ndarray
    signal: np.ndarray
    histogram: np.ndarray

    @property
    def empty(self) -> bool:
        return len(self.histogram) == 0


def macd(series: ArrayLike, fast: int = 12, slow: int = 26, signal: int = 9) -> MacdResult:
    """
    MACD line = EMA(fast) - EMA(slow) on the slow EMA's length,
    signal = EMA(line, signal), histogram = line - signal on the signal's length.
    Needs ``slow + signal - 1`` values; otherwise all three arrays are empty.
    """
    for p in (fast, slow, signal):
        check_period(p)
    if fast >= slow:
        raise ValueError(f"fast period ({fast}) must be shorter than slow period ({slow})")
    values = as_array(series)
    if len(values) < slow + signal - 1:
        empty = np.empty(0)
        return MacdResult(line=empty, signal=empty, histogram=empty)

    ema_fast = ema(values, fast)
    ema_slow = ema(values, slow)
    line = ema_fast[-len(ema_slow):] - ema_slow
    signal_line = ema(line, signal)
    histogram = line[-len(signal_line):] - signal_line
    return MacdResult(line=line, signal=signal_line, histogram=histogram)
