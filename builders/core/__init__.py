"""
Core Pipeline Components

1. Planner - Entry point name → Task DAG
2. Executor - Runs the DAG (fan-out on one event loop)
3. WatchOrchestrator - Re-runs builder fragments when sources change
"""
from .planner import Planner, mode_for, pipeline_names
from .executor import Executor, PipelineError
from .watcher import WatchOrchestrator, WatchBinding, WatchState, default_bindings

__all__ = [
    "Planner",
    "mode_for",
    "pipeline_names",
    "Executor",
    "PipelineError",
    "WatchOrchestrator",
    "WatchBinding",
    "WatchState",
    "default_bindings",
]
