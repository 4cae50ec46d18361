"""
Core data types for bars, factor snapshots, scores, and signal candidates.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


class MarketRegime(str, Enum):
    TREND = "trend"
    RANGE = "range"
    BREAKOUT = "breakout"


class QualityTier(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class InstrumentType(str, Enum):
    FOREX = "forex"
    INDEX = "index"
    STOCK = "stock"
    CRYPTO = "crypto"
    COMMODITY = "commodity"
    METAL = "metal"


class SignalType(str, Enum):
    SCALP = "scalp"
    INTRADAY = "intraday"
    SWING = "swing"


class SignalStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    EXPIRED = "expired"
    HIT_TP = "hit_tp"
    STOPPED_OUT = "stopped_out"


@dataclass(frozen=True)
class Bar:
    """OHLCV candle."""
    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class RiskConfig:
    """Stop distance in ATRs and target distance in multiples of the stop distance."""
    atr_multiple: float
    reward_multiple: float


@dataclass(frozen=True)
class SymbolConfig:
    """One entry of the evaluated universe."""
    symbol: str
    instrument_type: InstrumentType
    enabled_timeframes: Tuple[str, ...]


@dataclass(frozen=True)
class FactorSnapshot:
    """Market state for one symbol/timeframe at the close of the last bar."""
    symbol: str
    timeframe: str
    timestamp: datetime
    close: float
    ema20: float
    ema50: float
    ema200: float
    rsi14: float
    macd_hist: float
    macd_hist_slope: float
    atr: float
    atr_pct: float
    volume: float
    volume_avg20: float
    volume_ratio: float
    high20: float
    low20: float
    high50: float
    low50: float
    # 20-period extremes of the window ending one bar earlier
    prior_high20: float
    prior_low20: float


@dataclass(frozen=True)
class FactorScores:
    """Sub-scores in [0, 1] for one hypothetical direction."""
    trend: float
    momentum: float
    volatility: float
    volume: float
    structure: float

    def as_dict(self) -> dict:
        return {
            "trend": self.trend,
            "momentum": self.momentum,
            "volatility": self.volatility,
            "volume": self.volume,
            "structure": self.structure,
        }


@dataclass(frozen=True)
class SignalCandidate:
    """Accepted evaluation result. Never mutated after creation."""
    symbol: str
    timeframe: str
    direction: Direction
    score: int
    quality_tier: QualityTier
    entry: float
    stop: float
    targets: Tuple[float, ...]
    risk_reward: float
    regime: MarketRegime
    scores: FactorScores
    opposite_scores: FactorScores
    explanation: str
    snapshot: FactorSnapshot
    instrument_type: Optional[InstrumentType] = None
    signal_type: Optional[SignalType] = None

    @property
    def target(self) -> float:
        return self.targets[0]


@dataclass(frozen=True)
class SignalRecord:
    """Row handed to the persistence layer."""
    symbol: str
    symbol_id: int
    direction: Direction
    signal_type: SignalType
    market: str
    timeframe: str
    entry: float
    stop: float
    targets: Tuple[float, ...]
    score: int
    quality_tier: QualityTier
    regime: MarketRegime
    risk_reward: float
    explanation: str
    engine_version: str
    activated_at: datetime
    factors: dict = field(default_factory=dict)
    status: SignalStatus = SignalStatus.ACTIVE
