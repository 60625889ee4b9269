"""
Executor - Runs a Task DAG

Responsibilities:
- Execute tasks in dependency order
- Start every ready task without waiting for its siblings (fan-out)
- Await completions jointly before starting dependants
- Classify failures by run mode (one-shot: fail hard, watch: fail soft)
- Check that unordered tasks never write the same output path

The Executor is mechanical - it just runs the plan.
"""
import asyncio
from typing import Any, Callable, Dict, List, Optional

from builders.schemas import BuildMode, RunMode, Task, TaskDAG, TaskStatus
from builders.tools.common import BuilderError, FileSystemError


class PipelineError(Exception):
    """Raised when a pipeline invocation is aborted"""
    pass


class Executor:
    """
    Executor - Runs tasks from a Task DAG

    Executes the plan created by the Planner on the running event loop.
    Blocking tools run in worker threads; ordering comes only from the DAG.
    """

    def __init__(self, tool_registry: Dict[str, Callable], run_mode: RunMode = RunMode.ONE_SHOT):
        """
        Initialize Executor

        Args:
            tool_registry: Mapping of tool names to callables taking a BuildMode
            run_mode: ONE_SHOT raises on failure, WATCH reports it
        """
        self.tool_registry = tool_registry
        self.run_mode = run_mode
        self.execution_log: List[str] = []

    async def execute(
        self,
        dag: TaskDAG,
        mode: BuildMode,
        progress_callback: Optional[Callable[[str], None]] = None
    ) -> Dict[str, Any]:
        """
        Execute all tasks in the DAG

        Args:
            dag: Task DAG to execute
            mode: Build mode passed to every tool
            progress_callback: Optional callback for progress updates

        Returns:
            Execution results

        Raises:
            PipelineError: A task failed in ONE_SHOT mode, a file system error
                occurred, or two unordered tasks wrote the same file
        """
        def log(msg: str):
            self.execution_log.append(msg)
            if progress_callback:
                progress_callback(msg)
            print(f"[Executor] {msg}")

        log(f"Starting {dag.pipeline_name} ({dag.total_tasks} tasks, {mode.name})")

        running: Dict[asyncio.Task, Task] = {}
        written: Dict[str, str] = {}  # output path -> task_id
        failure: Optional[BaseException] = None
        fatal = False

        while True:
            # Start everything whose dependencies have completed
            if failure is None:
                for task in dag.get_ready_tasks():
                    dag.mark_running(task.task_id)
                    log(f"Executing: {task.description}")
                    running[asyncio.ensure_future(self._execute_task(task, mode))] = task

            if not running:
                break

            done, _ = await asyncio.wait(running.keys(), return_when=asyncio.FIRST_COMPLETED)
            for future in done:
                task = running.pop(future)
                try:
                    outcome = future.result()
                except FileSystemError as e:
                    dag.mark_failed(task.task_id, str(e))
                    log(f"✗ {task.description}: {e}")
                    failure, fatal = failure or e, True
                    continue
                except BuilderError as e:
                    dag.mark_failed(task.task_id, str(e))
                    log(f"✗ {task.description}: {e}")
                    failure = failure or e
                    continue

                outputs = list(outcome.get("outputs", []))
                conflict = self._find_conflict(dag, task, outputs, written)
                if conflict:
                    dag.mark_failed(task.task_id, conflict)
                    log(f"✗ {conflict}")
                    failure, fatal = failure or PipelineError(conflict), True
                    continue

                for path in outputs:
                    written[path] = task.task_id
                dag.mark_completed(task.task_id, outputs)
                skipped = len(outcome.get("skipped", []))
                suffix = f", {skipped} up to date" if skipped else ""
                log(f"✓ Completed: {task.description} ({len(outputs)} files{suffix})")

        if failure is not None:
            skipped_ids = dag.skip_pending()
            if skipped_ids:
                log(f"Skipped {len(skipped_ids)} tasks after failure")
            message = f"{dag.pipeline_name} failed: {failure}"
            if fatal or self.run_mode == RunMode.ONE_SHOT:
                raise PipelineError(message) from failure
            log(f"✗ {message}")
            return self._summary(dag, "failed", error=str(failure))

        if len(dag.completed_task_ids) < dag.total_tasks:
            raise PipelineError("Execution deadlock: no ready tasks but not all completed")

        log(f"✓ Execution complete: {len(dag.completed_task_ids)}/{dag.total_tasks} tasks succeeded")
        return self._summary(dag, "success")

    async def _execute_task(self, task: Task, mode: BuildMode) -> Dict[str, Any]:
        """Execute a single task in a worker thread"""
        if task.tool_name not in self.tool_registry:
            raise BuilderError(f"Tool not found: {task.tool_name}", task.category)

        tool_func = self.tool_registry[task.tool_name]
        try:
            return await asyncio.to_thread(tool_func, mode) or {}
        except (BuilderError, FileSystemError):
            raise
        except Exception as e:
            raise BuilderError(f"Tool {task.tool_name} failed: {e}", task.category) from e

    @staticmethod
    def _find_conflict(dag: TaskDAG, task: Task, outputs: List[str], written: Dict[str, str]) -> Optional[str]:
        for path in outputs:
            owner = written.get(path)
            if owner and owner != task.task_id and not dag.is_ordered(owner, task.task_id):
                return f"Output conflict: {path} written by both {owner} and {task.task_id}"
        return None

    def _summary(self, dag: TaskDAG, status: str, error: Optional[str] = None) -> Dict[str, Any]:
        summary = {
            "status": status,
            "pipeline": dag.pipeline_name,
            "completed_tasks": len(dag.completed_task_ids),
            "failed_tasks": len(dag.failed_task_ids),
            "skipped_tasks": sum(1 for t in dag.tasks if t.status == TaskStatus.SKIPPED),
            "total_tasks": dag.total_tasks,
            "outputs": [path for t in dag.tasks for path in t.outputs],
            "execution_log": self.execution_log,
        }
        if error:
            summary["error"] = error
        return summary


__all__ = ["Executor", "PipelineError"]
