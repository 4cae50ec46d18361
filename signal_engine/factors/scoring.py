"""
Factor scoring: five sub-scores in [0, 1] per hypothetical direction,
combined into a weighted 0-100 total.
"""

from __future__ import annotations
import math
from typing import Optional, Tuple

from signal_engine.core.config import EngineThresholds, ScoreWeights
from signal_engine.core.types import Direction, FactorScores, FactorSnapshot, MarketRegime


def _volatility_score(f: FactorSnapshot, regime: MarketRegime, t: EngineThresholds) -> float:
    # Breakouts want expanding ranges; trend/range setups want moderate ones
    if regime == MarketRegime.BREAKOUT:
        return 1.0 if f.atr_pct > t.breakout_atr_pct_min else 0.5
    if t.moderate_atr_pct_min < f.atr_pct < t.moderate_atr_pct_max:
        return 1.0
    return 0.5


def _volume_score(f: FactorSnapshot, t: EngineThresholds) -> float:
    if f.volume_ratio >= t.volume_ratio_high:
        return 1.0
    if f.volume_ratio >= t.volume_ratio_above:
        return 0.7
    return 0.4


def score_long(f: FactorSnapshot, regime: MarketRegime, thresholds: Optional[EngineThresholds] = None) -> FactorScores:
    t = thresholds or EngineThresholds()

    if f.close > f.ema20 > f.ema50 > f.ema200:
        trend = 1.0
    elif f.close > f.ema50 > f.ema200:
        trend = 0.8
    elif f.close > f.ema200:
        trend = 0.5
    else:
        trend = 0.0

    momentum = 0.0
    if regime == MarketRegime.TREND:
        if t.trend_long_rsi_low < f.rsi14 < t.trend_long_rsi_high:
            momentum += 0.6
        if f.rsi14 < t.trend_oversold_rsi and f.close > f.ema200:
            momentum += 0.4
    elif regime == MarketRegime.RANGE:
        if f.rsi14 < t.range_long_rsi_strong:
            momentum += 1.0
        elif f.rsi14 < t.range_long_rsi:
            momentum += 0.7
    elif f.rsi14 > t.breakout_long_rsi:
        momentum += 0.8
    if f.macd_hist > 0 and f.macd_hist_slope > 0:
        momentum += 0.3
    momentum = min(1.0, momentum)

    structure = 0.0
    if regime == MarketRegime.TREND:
        if abs(f.close - f.ema20) / f.close < t.pullback_distance:
            structure = 1.0
    elif regime == MarketRegime.BREAKOUT:
        if f.close > f.prior_high20:
            structure = 1.0
    elif abs(f.close - f.low20) / f.close < t.range_extreme_distance:
        structure = 1.0

    return FactorScores(
        trend=trend,
        momentum=momentum,
        volatility=_volatility_score(f, regime, t),
        volume=_volume_score(f, t),
        structure=structure,
    )


def score_short(f: FactorSnapshot, regime: MarketRegime, thresholds: Optional[EngineThresholds] = None) -> FactorScores:
    t = thresholds or EngineThresholds()

    if f.close < f.ema20 < f.ema50 < f.ema200:
        trend = 1.0
    elif f.close < f.ema50 < f.ema200:
        trend = 0.8
    elif f.close < f.ema200:
        trend = 0.5
    else:
        trend = 0.0

    momentum = 0.0
    if regime == MarketRegime.TREND:
        if t.trend_short_rsi_low < f.rsi14 < t.trend_short_rsi_high:
            momentum += 0.6
        if f.rsi14 > t.trend_overbought_rsi and f.close < f.ema200:
            momentum += 0.4
    elif regime == MarketRegime.RANGE:
        if f.rsi14 > t.range_short_rsi_strong:
            momentum += 1.0
        elif f.rsi14 > t.range_short_rsi:
            momentum += 0.7
    elif f.rsi14 < t.breakout_short_rsi:
        momentum += 0.8
    if f.macd_hist < 0 and f.macd_hist_slope < 0:
        momentum += 0.3
    momentum = min(1.0, momentum)

    structure = 0.0
    if regime == MarketRegime.TREND:
        if abs(f.close - f.ema20) / f.close < t.pullback_distance:
            structure = 1.0
    elif regime == MarketRegime.BREAKOUT:
        if f.close < f.prior_low20:
            structure = 1.0
    elif abs(f.close - f.high20) / f.close < t.range_extreme_distance:
        structure = 1.0

    return FactorScores(
        trend=trend,
        momentum=momentum,
        volatility=_volatility_score(f, regime, t),
        volume=_volume_score(f, t),
        structure=structure,
    )


def total_score(scores: FactorScores, weights: Optional[ScoreWeights] = None) -> int:
    """Weighted sum of sub-scores scaled to 0-100 and rounded."""
    w = weights or ScoreWeights()
    weighted = (
        scores.trend * w.trend
        + scores.momentum * w.momentum
        + scores.volatility * w.volatility
        + scores.volume * w.volume
        + scores.structure * w.structure
    )
    # Half-up rounding, clamped for custom weights
    return max(0, min(100, int(math.floor(100 * weighted + 0.5))))


def score_directions(
    f: FactorSnapshot,
    regime: MarketRegime,
    thresholds: Optional[EngineThresholds] = None,
) -> Tuple[FactorScores, FactorScores]:
    """(long_scores, short_scores) for the same snapshot."""
    return score_long(f, regime, thresholds), score_short(f, regime, thresholds)


def pick_direction(long_total: int, short_total: int) -> Direction:
    """Higher total wins; a tie goes to LONG."""
    return Direction.LONG if long_total >= short_total else Direction.SHORT
