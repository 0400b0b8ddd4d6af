"""Engine executors."""

from aggregator.executors.base import run_engine_with_status

__all__ = ["run_engine_with_status"]
