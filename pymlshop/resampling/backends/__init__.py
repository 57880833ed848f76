"""Execution backends for resampling iterations."""

from pymlshop.resampling.backends.executor import run_tasks

__all__ = ["run_tasks"]
