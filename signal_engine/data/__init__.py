"""Market data: source abstraction and Financial Modeling Prep implementation."""

from signal_engine.data.base import MarketDataError, MarketDataSource, frame_from_bars, normalize_bars
from signal_engine.data.fmp import FmpMarketData

__all__ = ["MarketDataError", "MarketDataSource", "frame_from_bars", "normalize_bars", "FmpMarketData"]
