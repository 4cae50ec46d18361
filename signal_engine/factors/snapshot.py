"""
Factor snapshot builder: OHLCV frame -> one immutable FactorSnapshot.
A snapshot is produced fully populated or not at all.
"""

from __future__ import annotations
import logging
import math
from dataclasses import astuple
from datetime import datetime
from typing import Optional

import pandas as pd

from signal_engine.core.types import FactorSnapshot
from signal_engine.indicators import atr, ema, macd, rolling_high_low, rsi, sma

logger = logging.getLogger("signal_engine.factors.snapshot")

OHLCV_COLUMNS = ("time", "open", "high", "low", "close", "volume")
MIN_BARS = 200


def _last(values) -> Optional[float]:
    return float(values[-1]) if len(values) else None


def _timestamp(value) -> datetime:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    return pd.Timestamp(value).to_pydatetime()


def build_snapshot(
    symbol: str,
    timeframe: str,
    bars: pd.DataFrame,
    min_bars: int = MIN_BARS,
) -> Optional[FactorSnapshot]:
    """
    Compute EMA(20/50/200), RSI(14), MACD histogram + slope, ATR(14), volume
    average/ratio and 20/50-bar extremes from the last bar of *bars*.

    Returns None when there are fewer than *min_bars* bars, an indicator has not
    warmed up, or any resulting field is not finite. Raises ValueError when the
    frame lacks OHLCV columns.
    """
    missing = [c for c in OHLCV_COLUMNS if c not in bars.columns]
    if missing:
        raise ValueError(f"bars missing columns: {missing}")
    if len(bars) < max(min_bars, 200):
        logger.debug("Insufficient data for %s %s: %d bars", symbol, timeframe, len(bars))
        return None

    close = bars["close"].to_numpy(dtype=float)
    high = bars["high"].to_numpy(dtype=float)
    low = bars["low"].to_numpy(dtype=float)
    volume = bars["volume"].to_numpy(dtype=float)

    hist = macd(close).histogram
    vol_avg = sma(volume, 20)
    highs20, lows20 = rolling_high_low(high, low, 20)
    highs50, lows50 = rolling_high_low(high, low, 50)
    atr_values = atr(high, low, close, 14)
    if len(hist) < 2 or len(highs20) < 2:
        return None

    last_close = float(close[-1])
    last_atr = _last(atr_values)
    last_volume = float(volume[-1])
    last_vol_avg = _last(vol_avg)
    if last_atr is None or last_vol_avg is None or last_close == 0:
        return None

    snapshot = FactorSnapshot(
        symbol=symbol,
        timeframe=timeframe,
        timestamp=_timestamp(bars["time"].iloc[-1]),
        close=last_close,
        ema20=_last(ema(close, 20)),
        ema50=_last(ema(close, 50)),
        ema200=_last(ema(close, 200)),
        rsi14=_last(rsi(close, 14)),
        macd_hist=float(hist[-1]),
        macd_hist_slope=float(hist[-1] - hist[-2]),
        atr=last_atr,
        atr_pct=last_atr / last_close,
        volume=last_volume,
        volume_avg20=last_vol_avg,
        volume_ratio=last_volume / last_vol_avg if last_vol_avg > 0 else 0.0,
        high20=float(highs20[-1]),
        low20=float(lows20[-1]),
        high50=_last(highs50),
        low50=_last(lows50),
        prior_high20=float(highs20[-2]),
        prior_low20=float(lows20[-2]),
    )
    numeric = astuple(snapshot)[3:]
    if any(v is None or not math.isfinite(v) for v in numeric):
        logger.warning("Non-finite factor state for %s %s, skipping", symbol, timeframe)
        return None
    return snapshot
