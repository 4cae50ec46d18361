"""Abstract signal repository and record conversion."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional

from signal_engine.core.types import (
    Direction,
    InstrumentType,
    SignalCandidate,
    SignalRecord,
    SignalStatus,
    SignalType,
)
from signal_engine.utils.timeframes import infer_signal_type


class SignalRepository(ABC):
    """
    Persistence for generated signals. At most one ACTIVE signal may exist per
    (symbol_id, timeframe, direction); insert_signal enforces it atomically.
    """

    @abstractmethod
    def resolve_symbol_id(self, symbol: str, instrument_type: Optional[InstrumentType] = None) -> Optional[int]:
        """Id of the symbol row, or None if the symbol is unknown to storage."""
        pass

    @abstractmethod
    def has_active_signal(self, symbol_id: int, timeframe: str, direction: Direction) -> bool:
        pass

    @abstractmethod
    def insert_signal(self, record: SignalRecord) -> Optional[int]:
        """Insert-if-not-exists. Returns the new id, or None if an active duplicate exists."""
        pass

    @abstractmethod
    def list_active_signals(self, limit: int = 100) -> List[dict]:
        pass

    @abstractmethod
    def close_signal(self, signal_id: int, status: SignalStatus = SignalStatus.CLOSED) -> bool:
        """Move an active signal to a terminal status. Returns False if nothing changed."""
        pass


def factors_payload(candidate: SignalCandidate) -> dict:
    """Snapshot fields plus both directions' sub-scores, JSON-ready."""
    snapshot = asdict(candidate.snapshot)
    snapshot["timestamp"] = candidate.snapshot.timestamp.isoformat()
    snapshot["factor_scores"] = candidate.scores.as_dict()
    snapshot["opposite_scores"] = candidate.opposite_scores.as_dict()
    return snapshot


def record_from_candidate(
    candidate: SignalCandidate,
    symbol_id: int,
    engine_version: str,
    activated_at: Optional[datetime] = None,
) -> SignalRecord:
    market = candidate.instrument_type.value if candidate.instrument_type else "unknown"
    return SignalRecord(
        symbol=candidate.symbol,
        symbol_id=symbol_id,
        direction=candidate.direction,
        signal_type=candidate.signal_type or infer_signal_type(candidate.timeframe),
        market=market,
        timeframe=candidate.timeframe,
        entry=candidate.entry,
        stop=candidate.stop,
        targets=candidate.targets,
        score=candidate.score,
        quality_tier=candidate.quality_tier,
        regime=candidate.regime,
        risk_reward=candidate.risk_reward,
        explanation=candidate.explanation,
        engine_version=engine_version,
        activated_at=activated_at or datetime.now(timezone.utc),
        factors=factors_payload(candidate),
    )


def record_to_row(record: SignalRecord) -> dict:
    """Flat column dict shared by the repository implementations."""
    targets = list(record.targets) + [None, None, None]
    return {
        "symbol": record.symbol,
        "symbol_id": record.symbol_id,
        "direction": record.direction.value,
        "type": record.signal_type.value if isinstance(record.signal_type, SignalType) else str(record.signal_type),
        "market": record.market,
        "timeframe": record.timeframe,
        "entry": record.entry,
        "sl": record.stop,
        "tp1": targets[0],
        "tp2": targets[1],
        "tp3": targets[2],
        "rr": record.risk_reward,
        "status": record.status.value,
        "score": record.score,
        "quality_tier": record.quality_tier.value,
        "regime": record.regime.value,
        "explanation": record.explanation,
        "engine_version": record.engine_version,
        "activated_at": record.activated_at.isoformat(),
    }
