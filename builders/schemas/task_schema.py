"""
Task Schema - Build Plan

This defines the task DAG format that the Planner produces
and the Executor runs.

Tasks are side-effecting operations over one asset category (or the
whole build directory, for clean / cache-bust / publish).
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field

from .path_schema import AssetCategory


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BuildMode(BaseModel):
    """
    Development vs production behavior

    Passed explicitly to every builder; a value never changes during a run.
    """
    model_config = ConfigDict(frozen=True)

    production: bool = False

    @property
    def name(self) -> str:
        return "production" if self.production else "development"


DEVELOPMENT = BuildMode(production=False)
PRODUCTION = BuildMode(production=True)


class RunMode(str, Enum):
    """How builder failures are treated"""
    ONE_SHOT = "one_shot"  # Fail hard: abort and exit non-zero
    WATCH = "watch"        # Fail soft: report and keep watching


class TaskStatus(str, Enum):
    """Task execution status"""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class Task(BaseModel):
    """A single build step in the plan"""
    task_id: str = Field(..., description="Unique task identifier")
    description: str = Field(..., description="Human-readable task description")
    tool_name: str = Field(..., description="Registered tool to invoke (e.g. 'build_html', 'clean')")
    category: Optional[AssetCategory] = Field(None, description="Asset category this task produces")

    # Dependencies
    dependencies: List[str] = Field(default_factory=list, description="Task IDs that must complete first")

    # Status tracking
    status: TaskStatus = Field(TaskStatus.PENDING)
    started_at: Optional[datetime] = Field(None)
    completed_at: Optional[datetime] = Field(None)
    error_message: Optional[str] = Field(None)
    outputs: List[str] = Field(default_factory=list, description="Files written by this task")


class TaskDAG(BaseModel):
    """
    Complete build plan as a Directed Acyclic Graph

    The Planner produces this from a pipeline name.
    The Executor runs it.
    """
    pipeline_name: str = Field(..., description="Entry point this plan was built for")
    tasks: List[Task] = Field(..., description="All tasks to execute")
    entry_tasks: List[str] = Field(..., description="Task IDs with no dependencies (start here)")
    final_tasks: List[str] = Field(..., description="Task IDs nothing else depends on")

    # Metadata
    total_tasks: int = Field(...)
    created_at: datetime = Field(default_factory=_utcnow)

    # Execution state
    completed_task_ids: List[str] = Field(default_factory=list)
    failed_task_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_tasks(cls, pipeline_name: str, tasks: List[Task]) -> "TaskDAG":
        depended_on = {dep for task in tasks for dep in task.dependencies}
        return cls(
            pipeline_name=pipeline_name,
            tasks=tasks,
            entry_tasks=[t.task_id for t in tasks if not t.dependencies],
            final_tasks=[t.task_id for t in tasks if t.task_id not in depended_on],
            total_tasks=len(tasks),
        )

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get task by ID"""
        for task in self.tasks:
            if task.task_id == task_id:
                return task
        return None

    def get_ready_tasks(self) -> List[Task]:
        """Get tasks that are ready to run (dependencies met)"""
        ready = []
        for task in self.tasks:
            if task.status != TaskStatus.PENDING:
                continue
            # Check if all dependencies are completed
            deps_met = all(
                dep_id in self.completed_task_ids
                for dep_id in task.dependencies
            )
            if deps_met:
                ready.append(task)
        return ready

    def ancestors(self, task_id: str) -> Set[str]:
        """All task IDs that must finish before task_id may start"""
        seen: Set[str] = set()
        stack = list(self.get_task(task_id).dependencies)
        while stack:
            dep = stack.pop()
            if dep in seen:
                continue
            seen.add(dep)
            stack.extend(self.get_task(dep).dependencies)
        return seen

    def is_ordered(self, first: str, second: str) -> bool:
        """True when one task is guaranteed to finish before the other starts"""
        return first in self.ancestors(second) or second in self.ancestors(first)

    def mark_running(self, task_id: str):
        task = self.get_task(task_id)
        if task:
            task.status = TaskStatus.RUNNING
            task.started_at = _utcnow()

    def mark_completed(self, task_id: str, outputs: Optional[List[str]] = None):
        """Mark task as completed"""
        task = self.get_task(task_id)
        if task:
            task.status = TaskStatus.COMPLETED
            task.completed_at = _utcnow()
            task.outputs = list(outputs or [])
            if task_id not in self.completed_task_ids:
                self.completed_task_ids.append(task_id)

    def mark_failed(self, task_id: str, error_message: str):
        """Mark task as failed"""
        task = self.get_task(task_id)
        if task:
            task.status = TaskStatus.FAILED
            task.error_message = error_message
            task.completed_at = _utcnow()
            if task_id not in self.failed_task_ids:
                self.failed_task_ids.append(task_id)

    def skip_pending(self) -> List[str]:
        """Mark every task that never started as skipped"""
        skipped = []
        for task in self.tasks:
            if task.status == TaskStatus.PENDING:
                task.status = TaskStatus.SKIPPED
                skipped.append(task.task_id)
        return skipped


# Export
__all__ = [
    "BuildMode",
    "DEVELOPMENT",
    "PRODUCTION",
    "RunMode",
    "Task",
    "TaskDAG",
    "TaskStatus",
]
