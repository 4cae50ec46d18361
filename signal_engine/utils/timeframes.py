"""Timeframe helpers: minutes, provider intervals, signal style."""

from signal_engine.core.types import SignalType

SUPPORTED_TIMEFRAMES = ("1m", "5m", "15m", "30m", "1h", "4h", "1d")

_FMP_INTERVALS = {
    "1m": "1min",
    "5m": "5min",
    "15m": "15min",
    "30m": "30min",
    "1h": "1hour",
    "4h": "4hour",
    "1d": "1day",
}


def timeframe_minutes(tf: str) -> int:
    """Convert a timeframe (e.g. '5m', '1h', '1d') to minutes."""
    tf = tf.strip().lower()
    if tf.endswith("m"):
        return int(tf[:-1])
    if tf.endswith("h"):
        return int(tf[:-1]) * 60
    if tf.endswith("d"):
        return int(tf[:-1]) * 60 * 24
    raise ValueError(f"Unsupported timeframe: {tf}")


def fmp_interval(tf: str) -> str:
    """Financial Modeling Prep chart interval for a timeframe."""
    try:
        return _FMP_INTERVALS[tf.strip().lower()]
    except KeyError:
        raise ValueError(f"Unsupported timeframe: {tf}") from None


def infer_signal_type(tf: str) -> SignalType:
    minutes = timeframe_minutes(tf)
    if minutes <= 5:
        return SignalType.SCALP
    if minutes <= 60:
        return SignalType.INTRADAY
    return SignalType.SWING
