"""Core: config, types, logging."""

from signal_engine.core.types import (
    Bar,
    Direction,
    FactorScores,
    FactorSnapshot,
    InstrumentType,
    MarketRegime,
    QualityTier,
    RiskConfig,
    SignalCandidate,
    SignalRecord,
    SignalStatus,
    SignalType,
    SymbolConfig,
)
from signal_engine.core.logger import setup_logging
from signal_engine.core.config import (
    Config,
    ConfigError,
    EngineThresholds,
    ScoreWeights,
    load_config,
)

__all__ = [
    "Bar",
    "Direction",
    "FactorScores",
    "FactorSnapshot",
    "InstrumentType",
    "MarketRegime",
    "QualityTier",
    "RiskConfig",
    "SignalCandidate",
    "SignalRecord",
    "SignalStatus",
    "SignalType",
    "SymbolConfig",
    "setup_logging",
    "Config",
    "ConfigError",
    "EngineThresholds",
    "ScoreWeights",
    "load_config",
]
