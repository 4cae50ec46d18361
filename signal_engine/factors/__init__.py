"""Factors: snapshot building, regime classification, direction scoring."""

from signal_engine.factors.regime import detect_regime
from signal_engine.factors.scoring import (
    pick_direction,
    score_directions,
    score_long,
    score_short,
    total_score,
)
from signal_engine.factors.snapshot import build_snapshot

__all__ = [
    "build_snapshot",
    "detect_regime",
    "pick_direction",
    "score_directions",
    "score_long",
    "score_short",
    "total_score",
]
