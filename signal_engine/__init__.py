"""Technical-analysis signal engine: OHLCV bars in, scored trade signals out."""

__version__ = "2.1.0"
