"""Unit tests for factors.regime."""

from signal_engine.core.config import EngineThresholds
from signal_engine.core.types import MarketRegime
from signal_engine.factors.regime import detect_regime


def test_bullish_alignment_is_trend(make_snapshot):
    f = make_snapshot(close=112.0, ema50=108.0, ema200=100.0)
    assert detect_regime(f) == MarketRegime.TREND


def test_bearish_alignment_is_trend(make_snapshot):
    f = make_snapshot(close=88.0, ema50=92.0, ema200=100.0)
    assert detect_regime(f) == MarketRegime.TREND


def test_narrow_spread_near_high_is_breakout(make_snapshot):
    # spread 0.3 / 101 ~ 0.003: below trend_spread, above breakout_spread
    f = make_snapshot(close=101.0, ema50=100.3, ema200=100.0, high20=101.1)
    assert detect_regime(f) == MarketRegime.BREAKOUT


def test_near_low_is_breakout(make_snapshot):
    f = make_snapshot(close=99.0, ema50=99.7, ema200=100.0, low20=98.9)
    assert detect_regime(f) == MarketRegime.BREAKOUT


def test_flat_emas_is_range(make_snapshot):
    f = make_snapshot(close=100.0, ema50=100.0, ema200=100.0, high20=105.0, low20=95.0)
    assert detect_regime(f) == MarketRegime.RANGE


def test_near_high_with_tiny_spread_is_range(make_snapshot):
    f = make_snapshot(close=101.0, ema50=100.1, ema200=100.0, high20=101.0)
    assert detect_regime(f) == MarketRegime.RANGE


def test_trend_checked_before_breakout(make_snapshot):
    f = make_snapshot(close=112.0, ema50=108.0, ema200=100.0, high20=112.0)
    assert detect_regime(f) == MarketRegime.TREND


def test_custom_trend_spread(make_snapshot):
    f = make_snapshot(close=112.0, ema50=108.0, ema200=100.0, high20=111.0)
    thresholds = EngineThresholds(trend_spread=0.2)
    # close beyond the 20-bar high counts as a breakout
    assert detect_regime(f, thresholds) == MarketRegime.BREAKOUT
