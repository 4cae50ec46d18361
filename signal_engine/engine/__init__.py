"""Engine: orchestration of evaluation, dedup and storage."""

from signal_engine.engine.orchestrator import RunResult, SignalEngine

__all__ = ["RunResult", "SignalEngine"]
