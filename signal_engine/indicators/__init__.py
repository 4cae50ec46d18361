"""Indicator library: pure functions over oldest-first numeric sequences."""

from signal_engine.indicators.moving_averages import ema, sma
from signal_engine.indicators.oscillators import MacdResult, macd, rsi
from signal_engine.indicators.volatility import atr, rolling_high_low, true_range

__all__ = [
    "ema",
    "sma",
    "MacdResult",
    "macd",
    "rsi",
    "atr",
    "rolling_high_low",
    "true_range",
]
