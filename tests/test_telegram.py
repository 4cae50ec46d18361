"""Unit tests for utils.telegram."""

from unittest.mock import MagicMock, patch

import requests

from signal_engine.core.types import InstrumentType
from signal_engine.factors.regime import detect_regime
from signal_engine.factors.scoring import score_directions
from signal_engine.risk.builder import CandidateBuilder
from signal_engine.utils.telegram import TelegramNotifier, format_signal_message, send_telegram


def _candidate(snapshot):
    regime = detect_regime(snapshot)
    long_scores, short_scores = score_directions(snapshot, regime)
    return CandidateBuilder().build(snapshot, regime, long_scores, short_scores, InstrumentType.FOREX).candidate


def test_send_telegram_not_configured():
    assert send_telegram("hello") is False


def test_send_telegram_posts_message():
    with patch("signal_engine.utils.telegram.requests.post") as post:
        post.return_value = MagicMock(status_code=200)
        assert send_telegram("hello", "token", "42") is True
        assert post.call_args.kwargs["json"] == {"chat_id": "42", "text": "hello"}


def test_send_telegram_handles_network_error():
    with patch("signal_engine.utils.telegram.requests.post", side_effect=requests.ConnectionError("down")):
        assert send_telegram("hello", "token", "42") is False


def test_format_signal_message(bullish_trend_snapshot):
    text = format_signal_message(_candidate(bullish_trend_snapshot))
    assert text == "LONG EURUSD 1h [A] score=91 entry=112 SL=109 TP=118 RR=2.00"


def test_notifier_enabled_flag():
    assert not TelegramNotifier().enabled
    assert not TelegramNotifier("token", "").enabled
    assert TelegramNotifier("token", "42").enabled
