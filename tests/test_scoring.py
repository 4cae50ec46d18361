"""Unit tests for factors.scoring."""

import numpy as np
import pytest

from signal_engine.core.config import ScoreWeights
from signal_engine.core.types import Direction, FactorScores, MarketRegime
from signal_engine.factors.regime import detect_regime
from signal_engine.factors.scoring import (
    pick_direction,
    score_directions,
    score_long,
    score_short,
    total_score,
)


def test_bullish_trend_scores(bullish_trend_snapshot):
    long_scores, short_scores = score_directions(bullish_trend_snapshot, MarketRegime.TREND)
    assert long_scores.trend == 1.0
    assert long_scores.momentum == pytest.approx(0.7)
    assert long_scores.volatility == 1.0
    assert long_scores.volume == 1.0
    assert long_scores.structure == 1.0
    assert total_score(long_scores) == 91
    assert short_scores.trend == 0.0
    assert short_scores.momentum == 0.0
    assert total_score(short_scores) == 40


def test_bearish_trend_scores(bearish_trend_snapshot):
    long_scores, short_scores = score_directions(bearish_trend_snapshot, MarketRegime.TREND)
    assert total_score(short_scores) == 91
    assert total_score(long_scores) == 40


def test_trend_score_partial_alignment(make_snapshot):
    f = make_snapshot(close=105.0, ema20=106.0, ema50=103.0, ema200=100.0)
    assert score_long(f, MarketRegime.TREND).trend == 0.8
    f = make_snapshot(close=101.0, ema20=102.0, ema50=103.0, ema200=100.0)
    assert score_long(f, MarketRegime.TREND).trend == 0.5
    f = make_snapshot(close=95.0, ema20=96.0, ema50=97.0, ema200=100.0)
    assert score_long(f, MarketRegime.TREND).trend == 0.0
    assert score_short(f, MarketRegime.TREND).trend == 1.0


def test_range_momentum(make_snapshot):
    assert score_long(make_snapshot(rsi14=25.0), MarketRegime.RANGE).momentum == 1.0
    assert score_long(make_snapshot(rsi14=35.0), MarketRegime.RANGE).momentum == pytest.approx(0.7)
    assert score_short(make_snapshot(rsi14=75.0), MarketRegime.RANGE).momentum == 1.0
    assert score_short(make_snapshot(rsi14=65.0), MarketRegime.RANGE).momentum == pytest.approx(0.7)
    assert score_long(make_snapshot(rsi14=50.0), MarketRegime.RANGE).momentum == 0.0


def test_momentum_capped_at_one(make_snapshot):
    f = make_snapshot(rsi14=25.0, macd_hist=1.0, macd_hist_slope=0.5)
    assert score_long(f, MarketRegime.RANGE).momentum == 1.0


def test_breakout_momentum_and_structure(make_snapshot):
    f = make_snapshot(close=106.0, rsi14=65.0, prior_high20=105.0, high20=106.0)
    scores = score_long(f, MarketRegime.BREAKOUT)
    assert scores.momentum == pytest.approx(0.8)
    assert scores.structure == 1.0
    f = make_snapshot(close=94.0, rsi14=35.0, prior_low20=95.0, low20=94.0)
    scores = score_short(f, MarketRegime.BREAKOUT)
    assert scores.momentum == pytest.approx(0.8)
    assert scores.structure == 1.0


def test_breakout_structure_needs_close_beyond_prior_extreme(make_snapshot):
    f = make_snapshot(close=104.9, prior_high20=105.0, high20=105.0)
    assert score_long(f, MarketRegime.BREAKOUT).structure == 0.0


def test_range_structure_near_extremes(make_snapshot):
    f = make_snapshot(close=95.5, low20=95.0)
    assert score_long(f, MarketRegime.RANGE).structure == 1.0
    f = make_snapshot(close=104.5, high20=105.0)
    assert score_short(f, MarketRegime.RANGE).structure == 1.0


@pytest.mark.parametrize(
    "ratio, expected",
    [(2.0, 1.0), (1.5, 1.0), (1.2, 0.7), (1.0, 0.7), (0.99, 0.4), (0.0, 0.4)],
)
def test_volume_score_cutoffs(make_snapshot, ratio, expected):
    f = make_snapshot(volume_ratio=ratio)
    assert score_long(f, MarketRegime.RANGE).volume == expected
    assert score_short(f, MarketRegime.RANGE).volume == expected


def test_volatility_score(make_snapshot):
    assert score_long(make_snapshot(atr_pct=0.006), MarketRegime.BREAKOUT).volatility == 1.0
    assert score_long(make_snapshot(atr_pct=0.004), MarketRegime.BREAKOUT).volatility == 0.5
    assert score_long(make_snapshot(atr_pct=0.01), MarketRegime.RANGE).volatility == 1.0
    assert score_long(make_snapshot(atr_pct=0.03), MarketRegime.TREND).volatility == 0.5
    assert score_long(make_snapshot(atr_pct=0.0005), MarketRegime.RANGE).volatility == 0.5


def test_total_score_extremes():
    assert total_score(FactorScores(1.0, 1.0, 1.0, 1.0, 1.0)) == 100
    assert total_score(FactorScores(0.0, 0.0, 0.0, 0.0, 0.0)) == 0


def test_total_score_rounds_half_up():
    # 0.15 * 0.5 + 0.10 * 0.5 = 0.125 -> 12.5 -> 13
    assert total_score(FactorScores(0.0, 0.0, 0.5, 0.0, 0.5)) == 13


def test_total_score_clamped_for_heavy_weights():
    weights = ScoreWeights(trend=1.0, momentum=1.0, volatility=1.0, volume=1.0, structure=1.0)
    assert total_score(FactorScores(1.0, 1.0, 1.0, 1.0, 1.0), weights) == 100


def test_tie_goes_long(make_snapshot):
    f = make_snapshot()
    long_scores, short_scores = score_directions(f, MarketRegime.RANGE)
    assert total_score(long_scores) == total_score(short_scores)
    assert pick_direction(total_score(long_scores), total_score(short_scores)) == Direction.LONG
    assert pick_direction(50, 51) == Direction.SHORT
    assert pick_direction(51, 50) == Direction.LONG


def test_scores_bounded_on_random_snapshots(make_snapshot):
    rng = np.random.default_rng(11)
    for _ in range(200):
        close = float(rng.uniform(50, 150))
        f = make_snapshot(
            close=close,
            ema20=float(rng.uniform(50, 150)),
            ema50=float(rng.uniform(50, 150)),
            ema200=float(rng.uniform(50, 150)),
            rsi14=float(rng.uniform(0, 100)),
            macd_hist=float(rng.normal()),
            macd_hist_slope=float(rng.normal()),
            atr_pct=float(rng.uniform(0, 0.05)),
            volume_ratio=float(rng.uniform(0, 3)),
            high20=close * float(rng.uniform(1.0, 1.05)),
            low20=close * float(rng.uniform(0.95, 1.0)),
        )
        regime = detect_regime(f)
        for scores in score_directions(f, regime):
            for value in scores.as_dict().values():
                assert 0.0 <= value <= 1.0
            assert 0 <= total_score(scores) <= 100


def test_scoring_is_deterministic(bullish_trend_snapshot):
    first = score_directions(bullish_trend_snapshot, MarketRegime.TREND)
    second = score_directions(bullish_trend_snapshot, MarketRegime.TREND)
    assert first == second
