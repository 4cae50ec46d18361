"""
Load configuration from config.yaml and .env. API keys only from env.

Engine thresholds, the risk table and the symbol universe are immutable values
handed to the orchestrator; nothing here is module-level mutable state.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv

from signal_engine.core.types import InstrumentType, QualityTier, RiskConfig, SymbolConfig
from signal_engine.utils.timeframes import SUPPORTED_TIMEFRAMES


class ConfigError(ValueError):
    """Configuration is missing or malformed."""


@dataclass(frozen=True)
class ScoreWeights:
    trend: float = 0.30
    momentum: float = 0.30
    volatility: float = 0.15
    volume: float = 0.15
    structure: float = 0.10


@dataclass(frozen=True)
class EngineThresholds:
    """Every tunable number used by regime detection, scoring and acceptance."""

    # Acceptance and tiers
    acceptance_threshold: int = 60
    tier_a: int = 80
    tier_b: int = 70
    min_bars: int = 200

    # Regime
    trend_spread: float = 0.005
    breakout_spread: float = 0.0015
    breakout_proximity: float = 0.002

    # Momentum (RSI bands per regime)
    trend_long_rsi_low: float = 40.0
    trend_long_rsi_high: float = 65.0
    trend_short_rsi_low: float = 40.0
    trend_short_rsi_high: float = 60.0
    trend_oversold_rsi: float = 35.0
    trend_overbought_rsi: float = 65.0
    range_long_rsi_strong: float = 30.0
    range_long_rsi: float = 40.0
    range_short_rsi_strong: float = 70.0
    range_short_rsi: float = 60.0
    breakout_long_rsi: float = 60.0
    breakout_short_rsi: float = 40.0

    # Volatility (ATR as a fraction of price)
    moderate_atr_pct_min: float = 0.001
    moderate_atr_pct_max: float = 0.02
    breakout_atr_pct_min: float = 0.005

    # Volume ratio cutoffs
    volume_ratio_high: float = 1.5
    volume_ratio_above: float = 1.0

    # Structure distances (fraction of price)
    pullback_distance: float = 0.005
    range_extreme_distance: float = 0.01

    weights: ScoreWeights = ScoreWeights()

    def tier_for(self, score: int) -> QualityTier:
        if score >= self.tier_a:
            return QualityTier.A
        if score >= self.tier_b:
            return QualityTier.B
        return QualityTier.C


DEFAULT_RISK_CONFIG = RiskConfig(atr_multiple=2.0, reward_multiple=2.0)

DEFAULT_RISK_TABLE: Mapping[InstrumentType, RiskConfig] = MappingProxyType({
    InstrumentType.FOREX: RiskConfig(atr_multiple=1.5, reward_multiple=2.0),
    InstrumentType.INDEX: RiskConfig(atr_multiple=1.5, reward_multiple=1.8),
    InstrumentType.STOCK: RiskConfig(atr_multiple=2.0, reward_multiple=2.5),
    InstrumentType.CRYPTO: RiskConfig(atr_multiple=2.5, reward_multiple=3.0),
    InstrumentType.COMMODITY: RiskConfig(atr_multiple=2.0, reward_multiple=2.5),
    InstrumentType.METAL: RiskConfig(atr_multiple=1.5, reward_multiple=2.0),
})

_FAST = ("5m", "15m", "1h", "4h")
_SLOW = ("15m", "1h", "4h", "1d")
_INDEX = ("1h", "4h", "1d")

DEFAULT_UNIVERSE: Tuple[SymbolConfig, ...] = (
    SymbolConfig("BTCUSD", InstrumentType.CRYPTO, _FAST),
    SymbolConfig("ETHUSD", InstrumentType.CRYPTO, _FAST),
    SymbolConfig("EURUSD", InstrumentType.FOREX, _FAST),
    SymbolConfig("GBPUSD", InstrumentType.FOREX, _FAST),
    SymbolConfig("USDJPY", InstrumentType.FOREX, _FAST),
    SymbolConfig("USDCHF", InstrumentType.FOREX, _FAST),
    SymbolConfig("AUDUSD", InstrumentType.FOREX, _FAST),
    SymbolConfig("NZDUSD", InstrumentType.FOREX, _FAST),
    SymbolConfig("USDCAD", InstrumentType.FOREX, _FAST),
    SymbolConfig("XAUUSD", InstrumentType.METAL, _FAST),
    SymbolConfig("XAGUSD", InstrumentType.METAL, _FAST),
    SymbolConfig("CLUSD", InstrumentType.COMMODITY, _SLOW),
    SymbolConfig("NVDA", InstrumentType.STOCK, _SLOW),
    SymbolConfig("AAPL", InstrumentType.STOCK, _SLOW),
    SymbolConfig("MSFT", InstrumentType.STOCK, _SLOW),
    SymbolConfig("GOOGL", InstrumentType.STOCK, _SLOW),
    SymbolConfig("TSLA", InstrumentType.STOCK, _SLOW),
    SymbolConfig("^GSPC", InstrumentType.INDEX, _INDEX),
    SymbolConfig("^DJI", InstrumentType.INDEX, _INDEX),
    SymbolConfig("^IXIC", InstrumentType.INDEX, _INDEX),
)


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def _instrument_type(value: Any) -> InstrumentType:
    try:
        return InstrumentType(str(value).strip().lower())
    except ValueError:
        raise ConfigError(f"Unknown instrument type: {value!r}") from None


def _timeframes(values: Any, where: str) -> Tuple[str, ...]:
    if isinstance(values, str):
        values = [values]
    out = tuple(str(v).strip().lower() for v in (values or []))
    unknown = [tf for tf in out if tf not in SUPPORTED_TIMEFRAMES]
    if unknown:
        raise ConfigError(f"Unsupported timeframe(s) {unknown} in {where}")
    return out


def parse_risk_table(data: Mapping[str, Any]) -> Tuple[Mapping[InstrumentType, RiskConfig], RiskConfig]:
    """Overlay a `risk:` YAML section on the default table. Returns (table, fallback)."""
    table = dict(DEFAULT_RISK_TABLE)
    fallback = DEFAULT_RISK_CONFIG
    for key, entry in (data or {}).items():
        entry = entry or {}
        try:
            rc = RiskConfig(
                atr_multiple=float(entry.get("atr_multiple", 0)),
                reward_multiple=float(entry.get("reward_multiple", 0)),
            )
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid risk entry for {key!r}: {entry!r}") from None
        if rc.atr_multiple <= 0 or rc.reward_multiple <= 0:
            raise ConfigError(f"Risk multiples must be positive for {key!r}")
        if str(key).lower() == "default":
            fallback = rc
        else:
            table[_instrument_type(key)] = rc
    return MappingProxyType(table), fallback


def parse_universe(entries: Optional[list]) -> Tuple[SymbolConfig, ...]:
    """Build the symbol universe from a `symbols:` YAML list (None keeps the default)."""
    if entries is None:
        return DEFAULT_UNIVERSE
    universe = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("symbol"):
            raise ConfigError(f"Symbol entry needs a 'symbol' key: {entry!r}")
        symbol = str(entry["symbol"]).strip().upper()
        universe.append(SymbolConfig(
            symbol=symbol,
            instrument_type=_instrument_type(entry.get("type", "stock")),
            enabled_timeframes=_timeframes(entry.get("timeframes", []), symbol),
        ))
    return tuple(universe)


def parse_thresholds(data: Mapping[str, Any]) -> EngineThresholds:
    """Override EngineThresholds fields from a `thresholds:` YAML mapping."""
    thresholds = EngineThresholds()
    if not data:
        return thresholds
    known = {f.name: f for f in fields(EngineThresholds)}
    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            raise ConfigError(f"Unknown threshold: {key}")
        if key == "weights":
            overrides[key] = ScoreWeights(**{k: float(v) for k, v in (value or {}).items()})
        elif key in ("acceptance_threshold", "tier_a", "tier_b", "min_bars"):
            overrides[key] = int(value)
        else:
            overrides[key] = float(value)
    return replace(thresholds, **overrides)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    elif config_path is not None:
        raise ConfigError(f"Config file not found: {path}")

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    fmp = data.get("fmp") or {}
    engine = data.get("engine") or {}
    storage = data.get("storage") or {}
    telegram = data.get("telegram") or {}
    logging_cfg = data.get("logging") or {}

    risk_table, default_risk = parse_risk_table(data.get("risk") or {})

    return Config(
        # Market data (API key from env only)
        fmp_api_key=env("FMP_API_KEY"),
        fmp_base_url=env("FMP_BASE_URL", fmp.get("base_url", "https://financialmodelingprep.com/api/v3")),
        fmp_timeout=env_float("FMP_TIMEOUT", fmp.get("timeout", 15.0)),
        fmp_max_retries=env_int("FMP_MAX_RETRIES", fmp.get("max_retries", 3)),
        # Engine
        engine_version=engine.get("version", "v2.1"),
        max_workers=env_int("MAX_WORKERS", engine.get("max_workers", 4)),
        evaluation_timeout=env_float("EVALUATION_TIMEOUT", engine.get("evaluation_timeout", 60.0)),
        timeframes=_timeframes(engine.get("timeframes", ["5m", "15m", "1h", "4h", "1d"]), "engine.timeframes"),
        thresholds=parse_thresholds(data.get("thresholds") or {}),
        risk_table=risk_table,
        default_risk=default_risk,
        universe=parse_universe(data.get("symbols")),
        # Storage
        db_path=env("DB_PATH", storage.get("db_path", "data/signals.db")),
        # Telegram
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "signal_engine.log"),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "fmp_api_key", "fmp_base_url", "fmp_timeout", "fmp_max_retries",
        "engine_version", "max_workers", "evaluation_timeout", "timeframes",
        "thresholds", "risk_table", "default_risk", "universe",
        "db_path",
        "telegram_bot_token", "telegram_chat_id",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
        fmp_api_key: str = "",
        fmp_base_url: str = "https://financialmodelingprep.com/api/v3",
        fmp_timeout: float = 15.0,
        fmp_max_retries: int = 3,
        engine_version: str = "v2.1",
        max_workers: int = 4,
        evaluation_timeout: float = 60.0,
        timeframes: Tuple[str, ...] = ("5m", "15m", "1h", "4h", "1d"),
        thresholds: Optional[EngineThresholds] = None,
        risk_table: Optional[Mapping[InstrumentType, RiskConfig]] = None,
        default_risk: RiskConfig = DEFAULT_RISK_CONFIG,
        universe: Tuple[SymbolConfig, ...] = DEFAULT_UNIVERSE,
        db_path: str = "data/signals.db",
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Optional[Path] = None,
        log_file: str = "signal_engine.log",
    ):
        self.fmp_api_key = fmp_api_key
        self.fmp_base_url = fmp_base_url
        self.fmp_timeout = fmp_timeout
        self.fmp_max_retries = fmp_max_retries
        self.engine_version = engine_version
        self.max_workers = max(1, max_workers)
        self.evaluation_timeout = evaluation_timeout
        self.timeframes = tuple(timeframes)
        self.thresholds = thresholds or EngineThresholds()
        self.risk_table = risk_table if risk_table is not None else DEFAULT_RISK_TABLE
        self.default_risk = default_risk
        self.universe = tuple(universe)
        self.db_path = db_path
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
