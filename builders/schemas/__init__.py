"""
Schemas for the asset build pipeline

These schemas define the contracts between pipeline stages:
- Paths: which sources each asset category reads and where it writes
- Task: build plan (task DAG) and the build/run modes it executes under
"""
from .path_schema import (
    AssetCategory,
    CategoryPaths,
    ConfigurationError,
    GlobSet,
    PathTable,
    default_path_table,
)
from .task_schema import (
    BuildMode,
    DEVELOPMENT,
    PRODUCTION,
    RunMode,
    Task,
    TaskDAG,
    TaskStatus,
)

__all__ = [
    # Paths
    "AssetCategory",
    "CategoryPaths",
    "ConfigurationError",
    "GlobSet",
    "PathTable",
    "default_path_table",
    # Task (Build Plan)
    "BuildMode",
    "DEVELOPMENT",
    "PRODUCTION",
    "RunMode",
    "Task",
    "TaskDAG",
    "TaskStatus",
]
