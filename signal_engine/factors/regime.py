"""Market regime classification. Stateless: only the snapshot is consulted."""

from __future__ import annotations
from typing import Optional

from signal_engine.core.config import EngineThresholds
from signal_engine.core.types import FactorSnapshot, MarketRegime


def detect_regime(f: FactorSnapshot, thresholds: Optional[EngineThresholds] = None) -> MarketRegime:
    """
    First match wins:
      1. TREND: close/EMA50/EMA200 stacked in one direction and the EMA50-EMA200
         spread (fraction of price) exceeds ``trend_spread``.
      2. BREAKOUT: close within ``breakout_proximity`` of (or beyond) the 20-bar
         high or low and the spread exceeds ``breakout_spread``.
      3. RANGE otherwise.
    """
    t = thresholds or EngineThresholds()
    spread = abs(f.ema50 - f.ema200) / f.close

    aligned = (f.close > f.ema50 > f.ema200) or (f.close < f.ema50 < f.ema200)
    if aligned and spread > t.trend_spread:
        return MarketRegime.TREND

    at_high = f.close >= f.high20 * (1 - t.breakout_proximity)
    at_low = f.close <= f.low20 * (1 + t.breakout_proximity)
    if (at_high or at_low) and spread > t.breakout_spread:
        return MarketRegime.BREAKOUT

    return MarketRegime.RANGE
