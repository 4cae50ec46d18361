"""Shared fixtures: factor snapshots and synthetic OHLCV frames."""

from datetime import datetime, timezone

import numpy as np
import pandas as pd
import pytest

from signal_engine.core.types import FactorSnapshot

BASE_SNAPSHOT = dict(
    symbol="EURUSD",
    timeframe="1h",
    timestamp=datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc),
    close=100.0,
    ema20=100.0,
    ema50=100.0,
    ema200=100.0,
    rsi14=50.0,
    macd_hist=0.0,
    macd_hist_slope=0.0,
    atr=1.0,
    atr_pct=0.01,
    volume=1000.0,
    volume_avg20=1000.0,
    volume_ratio=1.0,
    high20=105.0,
    low20=95.0,
    high50=106.0,
    low50=94.0,
    prior_high20=105.0,
    prior_low20=95.0,
)


@pytest.fixture
def make_snapshot():
    """Flat, range-bound snapshot with keyword overrides."""
    def factory(**overrides):
        return FactorSnapshot(**{**BASE_SNAPSHOT, **overrides})
    return factory


@pytest.fixture
def bullish_trend_snapshot(make_snapshot):
    """Stacked EMAs, oversold pullback, rising MACD, heavy volume, close near EMA20."""
    return make_snapshot(
        close=112.0,
        ema20=111.5,
        ema50=110.0,
        ema200=100.0,
        rsi14=28.0,
        macd_hist=0.2,
        macd_hist_slope=0.05,
        atr=2.0,
        atr_pct=2.0 / 112.0,
        volume=1600.0,
        volume_avg20=1000.0,
        volume_ratio=1.6,
        high20=113.0,
        low20=105.0,
        prior_high20=113.0,
        prior_low20=105.0,
    )


@pytest.fixture
def bearish_trend_snapshot(make_snapshot):
    return make_snapshot(
        symbol="BTCUSD",
        close=88.0,
        ema20=88.3,
        ema50=90.0,
        ema200=100.0,
        rsi14=72.0,
        macd_hist=-0.2,
        macd_hist_slope=-0.05,
        atr=1.6,
        atr_pct=1.6 / 88.0,
        volume=1600.0,
        volume_avg20=1000.0,
        volume_ratio=1.6,
        high20=95.0,
        low20=87.0,
        prior_high20=95.0,
        prior_low20=87.0,
    )


def _uptrend(n: int, last_volume: float) -> pd.DataFrame:
    close = 100.0 + 0.5 * np.arange(n)
    volume = np.full(n, 1000.0)
    volume[-1] = last_volume
    return pd.DataFrame({
        "time": pd.date_range("2024-01-01", periods=n, freq="h"),
        "open": close - 0.25,
        "high": close + 1.0,
        "low": close - 1.0,
        "close": close,
        "volume": volume,
    })


@pytest.fixture
def uptrend_bars():
    """Steady linear uptrend; the last bar trades on doubled volume."""
    def factory(n: int = 250, last_volume: float = 2000.0) -> pd.DataFrame:
        return _uptrend(n, last_volume)
    return factory
