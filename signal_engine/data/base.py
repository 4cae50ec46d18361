"""Abstract market-data interface and frame helpers."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Iterable, Optional

import pandas as pd

from signal_engine.core.types import Bar

BAR_COLUMNS = ["time", "open", "high", "low", "close", "volume"]


class MarketDataError(Exception):
    """Provider returned data that cannot be turned into bars."""


class MarketDataSource(ABC):
    """Source of historical OHLCV bars."""

    @abstractmethod
    def get_bars(self, symbol: str, timeframe: str, min_bars: int = 200) -> Optional[pd.DataFrame]:
        """
        Return an oldest-first DataFrame with columns: time, open, high, low, close, volume,
        or None when the provider has nothing for this symbol/timeframe.
        The frame may be shorter than *min_bars*; callers decide whether that is enough.
        """
        pass


def frame_from_bars(bars: Iterable[Bar]) -> pd.DataFrame:
    """Bar objects -> OHLCV frame, sorted oldest first."""
    rows = [asdict(b) for b in bars]
    if not rows:
        return pd.DataFrame(columns=BAR_COLUMNS)
    df = pd.DataFrame(rows, columns=BAR_COLUMNS)
    return df.sort_values("time", kind="stable").reset_index(drop=True)


def normalize_bars(records: list) -> pd.DataFrame:
    """
    Provider records (dicts with date/open/high/low/close/volume, any order)
    -> clean oldest-first OHLCV frame. Incomplete rows are dropped; a bar with
    high < low raises MarketDataError.
    """
    df = pd.DataFrame.from_records(records)
    required = ["date", "open", "high", "low", "close"]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise MarketDataError(f"bars missing fields: {missing}")
    if "volume" not in df.columns:
        df["volume"] = 0.0
    out = pd.DataFrame({
        "time": pd.to_datetime(df["date"], errors="coerce"),
        "open": pd.to_numeric(df["open"], errors="coerce"),
        "high": pd.to_numeric(df["high"], errors="coerce"),
        "low": pd.to_numeric(df["low"], errors="coerce"),
        "close": pd.to_numeric(df["close"], errors="coerce"),
        "volume": pd.to_numeric(df["volume"], errors="coerce").fillna(0.0),
    })
    out = out.dropna()
    if (out["high"] < out["low"]).any():
        raise MarketDataError("malformed bars: high < low")
    out = out.drop_duplicates(subset="time", keep="last")
    return out.sort_values("time", kind="stable").reset_index(drop=True)
