"""Telegram alerts for newly stored signals. Never log token or chat_id."""

from __future__ import annotations
import logging

import requests

from signal_engine.core.types import SignalCandidate

logger = logging.getLogger("signal_engine.utils.telegram")


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Post *text* to the signal chat. Returns False when not configured or the send fails; never raises."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text}
        r = requests.post(url, json=payload, timeout=10)
        if r.status_code != 200:
            logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
            return False
        return True
    except requests.RequestException as e:
        logger.warning("Telegram error: %s", e)
        return False


def format_signal_message(candidate: SignalCandidate) -> str:
    """One-line alert text for a stored signal."""
    return (
        f"{candidate.direction.value.upper()} {candidate.symbol} {candidate.timeframe} "
        f"[{candidate.quality_tier.value}] score={candidate.score} "
        f"entry={candidate.entry:.5g} SL={candidate.stop:.5g} TP={candidate.target:.5g} "
        f"RR={candidate.risk_reward:.2f}"
    )


class TelegramNotifier:
    """Callable notifier posting each new signal to a chat."""

    def __init__(self, bot_token: str = "", chat_id: str = ""):
        self._bot_token = bot_token
        self._chat_id = chat_id

    @property
    def enabled(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    def __call__(self, candidate: SignalCandidate) -> None:
        send_telegram(format_signal_message(candidate), self._bot_token, self._chat_id)
