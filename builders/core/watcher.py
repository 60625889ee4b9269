r"""
Watch Orchestrator - Re-runs builders when sources change

Each binding ties a GlobSet to a sequential fragment of builders:

    IDLE --change--> TRIGGERED --debounce--> RUNNING --ok--> IDLE (+ reload)
                                                    \--error--> FAILED
    FAILED --change--> TRIGGERED

Changes that arrive while a binding is TRIGGERED are absorbed into the
pending run. Changes that arrive while it is RUNNING set a pending flag;
when the run settles exactly one follow-up run starts, however many
changes came in. In-flight runs are never cancelled.

File system events come from a watchdog observer thread and are handed to
the event loop with call_soon_threadsafe.
"""
import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, Field
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

import config
from builders.schemas import AssetCategory, BuildMode, DEVELOPMENT, GlobSet, PathTable, RunMode
from .executor import Executor
from .planner import Planner

logger = logging.getLogger(__name__)


class WatchState(str, Enum):
    IDLE = "IDLE"
    TRIGGERED = "TRIGGERED"
    RUNNING = "RUNNING"
    FAILED = "FAILED"


class WatchBinding(BaseModel):
    """GlobSet → builder fragment association for one dev-server session"""

    name: str
    globs: GlobSet
    fragment: List[AssetCategory] = Field(..., description="Builders to run, in order")
    state: WatchState = WatchState.IDLE
    pending: bool = False
    runs: int = 0
    failures: int = 0
    last_error: Optional[str] = None


def default_bindings(table: PathTable) -> List[WatchBinding]:
    """
    One binding per category

    Markup also watches the sprite icons and rebuilds the sprite first,
    since pages may reference sprite symbols.
    """
    def paths(category: AssetCategory) -> GlobSet:
        return table.lookup(category).globs

    return [
        WatchBinding(
            name="markup",
            globs=paths(AssetCategory.MARKUP).union(paths(AssetCategory.SVG_SPRITE)),
            fragment=[AssetCategory.SVG_SPRITE, AssetCategory.MARKUP],
        ),
        WatchBinding(name="styles", globs=paths(AssetCategory.STYLES), fragment=[AssetCategory.STYLES]),
        WatchBinding(name="scripts", globs=paths(AssetCategory.SCRIPTS), fragment=[AssetCategory.SCRIPTS]),
        WatchBinding(name="images", globs=paths(AssetCategory.IMAGES), fragment=[AssetCategory.IMAGES]),
        WatchBinding(
            name="webp",
            globs=paths(AssetCategory.IMAGE_DERIVATIVES),
            fragment=[AssetCategory.IMAGE_DERIVATIVES],
        ),
        WatchBinding(name="fonts", globs=paths(AssetCategory.FONTS), fragment=[AssetCategory.FONTS]),
        WatchBinding(name="favicons", globs=paths(AssetCategory.FAVICONS), fragment=[AssetCategory.FAVICONS]),
    ]


class WatchOrchestrator:
    """Drives the per-binding state machines on one event loop"""

    def __init__(
        self,
        table: PathTable,
        tool_registry: Dict[str, Callable],
        on_reload: Optional[Callable[[str], None]] = None,
        on_failure: Optional[Callable[[str, str], None]] = None,
        bindings: Optional[List[WatchBinding]] = None,
        mode: BuildMode = DEVELOPMENT,
        debounce_ms: Optional[int] = None,
        runner: Optional[Callable[[WatchBinding], Awaitable[bool]]] = None,
    ):
        """
        Args:
            table: Path table (project root for relative event paths)
            tool_registry: Tools the fragments run
            on_reload: Called with the binding name after a successful run
            on_failure: Called with the binding name and error after a failed run
            bindings: Watch bindings (defaults to one per category)
            mode: Build mode for re-runs
            debounce_ms: Delay between TRIGGERED and RUNNING
            runner: Replaces the fragment runner (returns True on success)
        """
        self.table = table
        self.tool_registry = tool_registry
        self.on_reload = on_reload
        self.on_failure = on_failure
        self.bindings = bindings if bindings is not None else default_bindings(table)
        self.mode = mode
        self.debounce = (config.WATCH_DEBOUNCE_MS if debounce_ms is None else debounce_ms) / 1000.0
        self.runner = runner or self._run_fragment
        self.planner = Planner()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Dict[str, asyncio.Task] = {}
        self._observer: Optional[Observer] = None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def notify(self, path: str) -> List[str]:
        """
        Handle a changed path (must be called on the event loop)

        Args:
            path: Absolute or project-relative path of the changed file

        Returns:
            Names of the bindings the change matched
        """
        relative = self._relative(path)
        if relative is None:
            return []

        matched = []
        for binding in self.bindings:
            if not binding.globs.matches(relative):
                continue
            matched.append(binding.name)
            if binding.state == WatchState.RUNNING:
                binding.pending = True
            elif binding.state != WatchState.TRIGGERED:
                binding.state = WatchState.TRIGGERED
                self._tasks[binding.name] = asyncio.ensure_future(self._drive(binding))
        return matched

    def notify_threadsafe(self, path: str):
        """Forward a change from a watchdog thread to the event loop"""
        if self._loop and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.notify, path)

    def _relative(self, path: str) -> Optional[str]:
        candidate = Path(path)
        if not candidate.is_absolute():
            return candidate.as_posix()
        try:
            return candidate.resolve().relative_to(self.table.root.resolve()).as_posix()
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def _drive(self, binding: WatchBinding):
        while True:
            if self.debounce:
                await asyncio.sleep(self.debounce)
            binding.state = WatchState.RUNNING
            binding.pending = False
            binding.runs += 1

            try:
                ok = await self.runner(binding)
            except Exception as e:
                logger.exception(f"[Watcher] {binding.name} run crashed")
                binding.last_error = str(e)
                ok = False

            if ok:
                binding.state = WatchState.IDLE
                binding.last_error = None
                self._notify(self.on_reload, binding.name)
            else:
                binding.state = WatchState.FAILED
                binding.failures += 1
                logger.warning(f"[Watcher] {binding.name} failed, waiting for the next change")
                self._notify(self.on_failure, binding.name, binding.last_error or "")

            if not binding.pending:
                break
            binding.state = WatchState.TRIGGERED

        self._tasks.pop(binding.name, None)

    @staticmethod
    def _notify(callback: Optional[Callable], *args):
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception(f"[Watcher] {getattr(callback, '__name__', callback)} callback failed")

    async def _run_fragment(self, binding: WatchBinding) -> bool:
        dag = self.planner.plan_fragment(f"watch:{binding.name}", binding.fragment)
        executor = Executor(self.tool_registry, run_mode=RunMode.WATCH)
        outcome = await executor.execute(dag, self.mode)
        if outcome["status"] != "success":
            binding.last_error = outcome.get("error")
            logger.error(f"[Watcher] {binding.name}: {binding.last_error}")
            return False
        return True

    async def wait_idle(self):
        """Wait until no binding is triggered or running"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()))

    def get_binding(self, name: str) -> WatchBinding:
        for binding in self.bindings:
            if binding.name == name:
                return binding
        raise KeyError(name)

    # ------------------------------------------------------------------
    # Observer lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Start watching src/ (call from the running event loop)"""
        self._loop = asyncio.get_running_loop()
        handler = SourceChangeHandler(self)
        self._observer = Observer()
        self._observer.schedule(handler, str(self.table.src_path), recursive=True)
        self._observer.start()
        logger.info(f"[Watcher] Watching {self.table.src_path} ({len(self.bindings)} bindings)")

    def stop(self):
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None


class SourceChangeHandler(FileSystemEventHandler):
    """Forwards file events (moves count as a change at the destination)"""

    def __init__(self, orchestrator: WatchOrchestrator):
        self.orchestrator = orchestrator

    def on_any_event(self, event: FileSystemEvent):
        if event.is_directory or event.event_type not in ("created", "modified", "deleted", "moved"):
            return
        path = getattr(event, "dest_path", "") or event.src_path
        self.orchestrator.notify_threadsafe(str(path))


__all__ = [
    "WatchOrchestrator",
    "WatchBinding",
    "WatchState",
    "SourceChangeHandler",
    "default_bindings",
]
