"""
Candidate builder: picks the stronger direction, derives stop/target from ATR
and the instrument's risk config, and rejects weak or inconsistent setups.

Stop   = entry -/+ atr * atr_multiple
Target = entry +/- atr * atr_multiple * reward_multiple
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional

from signal_engine.core.config import DEFAULT_RISK_CONFIG, DEFAULT_RISK_TABLE, EngineThresholds
from signal_engine.core.types import (
    Direction,
    FactorScores,
    FactorSnapshot,
    InstrumentType,
    MarketRegime,
    RiskConfig,
    SignalCandidate,
)
from signal_engine.factors.scoring import pick_direction, total_score
from signal_engine.utils.timeframes import infer_signal_type

logger = logging.getLogger("signal_engine.risk")

RR_TOLERANCE = 1e-6


@dataclass
class CandidateDecision:
    """Result of a build: accepted with a candidate, or rejected + reason."""
    accepted: bool
    candidate: Optional[SignalCandidate] = None
    reason: str = ""
    long_score: int = 0
    short_score: int = 0


def risk_reward_ratio(entry: float, stop: float, target: float) -> float:
    """Reward/risk measured from the levels."""
    risk = abs(entry - stop)
    if risk <= 0:
        return 0.0
    return abs(target - entry) / risk


def build_explanation(direction: Direction, regime: MarketRegime, score: int, scores: FactorScores) -> str:
    return (
        f"{direction.value.upper()} {regime.value.upper()} signal (Score: {score}). "
        f"Trend: {round(scores.trend * 100)}%, "
        f"Mom: {round(scores.momentum * 100)}%, "
        f"Volume: {round(scores.volume * 100)}%"
    )


class CandidateBuilder:
    """
    Turns scored snapshots into SignalCandidates.
    Rejects: total below the acceptance threshold, ATR <= 0 or non-finite,
    and any level set whose realized risk:reward drifts from reward_multiple.
    """

    def __init__(
        self,
        risk_table: Optional[Mapping[InstrumentType, RiskConfig]] = None,
        thresholds: Optional[EngineThresholds] = None,
        default_risk: RiskConfig = DEFAULT_RISK_CONFIG,
    ):
        self.risk_table = risk_table if risk_table is not None else DEFAULT_RISK_TABLE
        self.thresholds = thresholds or EngineThresholds()
        self.default_risk = default_risk

    def risk_for(self, instrument_type: Optional[InstrumentType]) -> RiskConfig:
        if instrument_type is None:
            return self.default_risk
        return self.risk_table.get(instrument_type, self.default_risk)

    def build(
        self,
        snapshot: FactorSnapshot,
        regime: MarketRegime,
        long_scores: FactorScores,
        short_scores: FactorScores,
        instrument_type: Optional[InstrumentType] = None,
    ) -> CandidateDecision:
        t = self.thresholds
        long_total = total_score(long_scores, t.weights)
        short_total = total_score(short_scores, t.weights)
        direction = pick_direction(long_total, short_total)
        if direction == Direction.LONG:
            score, scores, opposite = long_total, long_scores, short_scores
        else:
            score, scores, opposite = short_total, short_scores, long_scores

        def reject(reason: str) -> CandidateDecision:
            return CandidateDecision(
                accepted=False, reason=reason, long_score=long_total, short_score=short_total,
            )

        if score < t.acceptance_threshold:
            return reject(f"score {score} < {t.acceptance_threshold}")

        atr = snapshot.atr
        if not math.isfinite(atr) or atr <= 0:
            logger.warning("Zero/invalid ATR for %s %s, skipping", snapshot.symbol, snapshot.timeframe)
            return reject("invalid atr")

        risk = self.risk_for(instrument_type)
        entry = snapshot.close
        stop_distance = atr * risk.atr_multiple
        target_distance = stop_distance * risk.reward_multiple
        if direction == Direction.LONG:
            stop = entry - stop_distance
            target = entry + target_distance
        else:
            stop = entry + stop_distance
            target = entry - target_distance

        realized = risk_reward_ratio(entry, stop, target)
        if abs(realized - risk.reward_multiple) > RR_TOLERANCE * max(1.0, risk.reward_multiple):
            return reject(f"risk_reward {realized:.4f} != {risk.reward_multiple}")

        candidate = SignalCandidate(
            symbol=snapshot.symbol,
            timeframe=snapshot.timeframe,
            direction=direction,
            score=score,
            quality_tier=t.tier_for(score),
            entry=entry,
            stop=stop,
            targets=(target,),
            risk_reward=risk.reward_multiple,
            regime=regime,
            scores=scores,
            opposite_scores=opposite,
            explanation=build_explanation(direction, regime, score, scores),
            snapshot=snapshot,
            instrument_type=instrument_type,
            signal_type=infer_signal_type(snapshot.timeframe),
        )
        return CandidateDecision(
            accepted=True, candidate=candidate, long_score=long_total, short_score=short_total,
        )
