"""Risk: stop/target construction and candidate acceptance."""

from signal_engine.risk.builder import (
    CandidateBuilder,
    CandidateDecision,
    build_explanation,
    risk_reward_ratio,
)

__all__ = ["CandidateBuilder", "CandidateDecision", "build_explanation", "risk_reward_ratio"]
