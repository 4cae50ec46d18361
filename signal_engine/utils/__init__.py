"""Utils: Telegram, timeframes."""

from signal_engine.utils.telegram import send_telegram, TelegramNotifier
from signal_engine.utils.timeframes import (
    SUPPORTED_TIMEFRAMES,
    fmp_interval,
    infer_signal_type,
    timeframe_minutes,
)

__all__ = [
    "send_telegram",
    "TelegramNotifier",
    "SUPPORTED_TIMEFRAMES",
    "fmp_interval",
    "infer_signal_type",
    "timeframe_minutes",
]
