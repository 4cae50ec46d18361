"""
Financial Modeling Prep historical bars with retry and rate-limit handling.
"""

from __future__ import annotations
import logging
import time
from typing import Optional
from urllib.parse import quote

import pandas as pd
import requests

from signal_engine.core.config import ConfigError
from signal_engine.data.base import MarketDataSource, normalize_bars
from signal_engine.utils.timeframes import fmp_interval

logger = logging.getLogger("signal_engine.data.fmp")

RETRY_STATUS = (429, 503)


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """
    Decorator for FMP calls: retry on 429 (plan rate limit) or 503 (upstream
    busy), doubling the delay each attempt. Other HTTP errors propagate.
    """
    def decorator(f):
        def wrapped(*args, **kwargs):
            last_exc = None
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except requests.HTTPError as e:
                    last_exc = e
                    status = e.response.status_code if e.response is not None else None
                    if status in RETRY_STATUS and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                        time.sleep(delay)
                    else:
                        raise
            raise last_exc
        return wrapped
    return decorator


class FmpMarketData(MarketDataSource):
    """Historical chart client. Intraday via historical-chart, daily via historical-price-full."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://financialmodelingprep.com/api/v3",
        timeout: float = 15.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ConfigError("FMP_API_KEY is not set")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._get_json = retry_on_rate_limit(max(1, max_retries), retry_delay)(self._get_json_once)

    def _get_json_once(self, path: str, params: dict):
        params = {**params, "apikey": self._api_key}
        r = self._session.get(
            f"{self._base_url}/{path}",
            params=params,
            headers={"Accept": "application/json"},
            timeout=self._timeout,
        )
        r.raise_for_status()
        return r.json()

    def get_bars(self, symbol: str, timeframe: str, min_bars: int = 200) -> Optional[pd.DataFrame]:
        interval = fmp_interval(timeframe)
        # Request headroom over min_bars
        count = max(min_bars + 50, 250)
        encoded = quote(symbol, safe="")
        if interval == "1day":
            payload = self._get_json(f"historical-price-full/{encoded}", {"timeseries": count})
            records = payload.get("historical") if isinstance(payload, dict) else payload
        else:
            records = self._get_json(f"historical-chart/{interval}/{encoded}", {"limit": count})

        if not isinstance(records, list) or not records:
            logger.info("No bars from FMP for %s %s", symbol, timeframe)
            return None
        df = normalize_bars(records)
        logger.debug("FMP %s %s: %d bars", symbol, timeframe, len(df))
        return df if len(df) else None
