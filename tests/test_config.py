"""Unit tests for core.config."""

import pytest

from signal_engine.core.config import (
    DEFAULT_RISK_CONFIG,
    DEFAULT_RISK_TABLE,
    DEFAULT_UNIVERSE,
    ConfigError,
    EngineThresholds,
    load_config,
    parse_risk_table,
    parse_thresholds,
    parse_universe,
)
from signal_engine.core.types import InstrumentType, QualityTier, RiskConfig

ENV_KEYS = (
    "FMP_API_KEY", "FMP_BASE_URL", "FMP_TIMEOUT", "FMP_MAX_RETRIES", "MAX_WORKERS",
    "EVALUATION_TIMEOUT", "DB_PATH", "TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "LOG_LEVEL",
)

YAML = """
fmp:
  timeout: 20
engine:
  max_workers: 2
  timeframes: [1h, 4h]
thresholds:
  acceptance_threshold: 65
  weights: {trend: 0.4, momentum: 0.2, volatility: 0.15, volume: 0.15, structure: 0.1}
risk:
  crypto: {atr_multiple: 3.0, reward_multiple: 2.0}
  default: {atr_multiple: 1.0, reward_multiple: 1.5}
symbols:
  - {symbol: btcusd, type: crypto, timeframes: [1h]}
  - {symbol: AAPL, type: stock, timeframes: [4h, 1d]}
storage:
  db_path: /tmp/test-signals.db
logging:
  level: DEBUG
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_config_file(tmp_path):
    config = load_config(project_root=tmp_path)
    assert config.fmp_api_key == ""
    assert config.universe == DEFAULT_UNIVERSE
    assert len(config.universe) == 20
    assert config.risk_table[InstrumentType.FOREX] == RiskConfig(1.5, 2.0)
    assert config.default_risk == DEFAULT_RISK_CONFIG
    assert config.thresholds == EngineThresholds()
    assert config.engine_version == "v2.1"
    assert config.db_path == "data/signals.db"


def test_yaml_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(YAML, encoding="utf-8")
    config = load_config(path, tmp_path)
    assert config.fmp_timeout == 20.0
    assert config.max_workers == 2
    assert config.timeframes == ("1h", "4h")
    assert config.thresholds.acceptance_threshold == 65
    assert config.thresholds.weights.trend == 0.4
    assert config.risk_table[InstrumentType.CRYPTO] == RiskConfig(3.0, 2.0)
    assert config.risk_table[InstrumentType.FOREX] == DEFAULT_RISK_TABLE[InstrumentType.FOREX]
    assert config.default_risk == RiskConfig(1.0, 1.5)
    assert [s.symbol for s in config.universe] == ["BTCUSD", "AAPL"]
    assert config.universe[1].enabled_timeframes == ("4h", "1d")
    assert config.db_path == "/tmp/test-signals.db"
    assert config.log_level == "DEBUG"


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(YAML, encoding="utf-8")
    monkeypatch.setenv("FMP_API_KEY", "secret")
    monkeypatch.setenv("MAX_WORKERS", "8")
    monkeypatch.setenv("DB_PATH", "other.db")
    config = load_config(path, tmp_path)
    assert config.fmp_api_key == "secret"
    assert config.max_workers == 8
    assert config.db_path == "other.db"


def test_dotenv_file_loaded(tmp_path, monkeypatch):
    # monkeypatch now restores FMP_API_KEY after load_dotenv sets it
    monkeypatch.setenv("FMP_API_KEY", "placeholder")
    monkeypatch.delenv("FMP_API_KEY")
    (tmp_path / ".env").write_text("FMP_API_KEY=from-dotenv\n", encoding="utf-8")
    config = load_config(project_root=tmp_path)
    assert config.fmp_api_key == "from-dotenv"


def test_explicit_missing_config_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml", tmp_path)


def test_unknown_threshold_rejected():
    with pytest.raises(ConfigError):
        parse_thresholds({"not_a_threshold": 1})


def test_unsupported_timeframe_rejected():
    with pytest.raises(ConfigError):
        parse_universe([{"symbol": "AAPL", "type": "stock", "timeframes": ["2h"]}])


def test_unknown_instrument_type_rejected():
    with pytest.raises(ConfigError):
        parse_universe([{"symbol": "AAPL", "type": "bond", "timeframes": ["1h"]}])
    with pytest.raises(ConfigError):
        parse_risk_table({"bond": {"atr_multiple": 1, "reward_multiple": 1}})


def test_non_positive_risk_rejected():
    with pytest.raises(ConfigError):
        parse_risk_table({"forex": {"atr_multiple": 0, "reward_multiple": 2}})


def test_empty_symbol_list_gives_empty_universe():
    assert parse_universe([]) == ()
    assert parse_universe(None) == DEFAULT_UNIVERSE


def test_tier_boundaries():
    t = EngineThresholds()
    assert t.tier_for(100) == QualityTier.A
    assert t.tier_for(80) == QualityTier.A
    assert t.tier_for(79) == QualityTier.B
    assert t.tier_for(70) == QualityTier.B
    assert t.tier_for(69) == QualityTier.C
    assert t.tier_for(60) == QualityTier.C
