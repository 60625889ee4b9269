"""
Main Pipeline - Runs entry points against a project

This module wires together all pipeline components:
PathTable → ToolRegistry → Planner → Executor (→ WatchOrchestrator + dev server)

Usage:
    pipeline = AssetPipeline(root=Path("my-site"))
    result = pipeline.run("buildProd")
"""
import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import uvicorn

import config
from builders.core.executor import Executor, PipelineError
from builders.core.planner import BUILD_DEV, Planner, mode_for
from builders.core.watcher import WatchOrchestrator
from builders.schemas import PathTable, RunMode, default_path_table
from builders.tools.tool_registry import create_tool_registry
from main import create_app
from services import reload_service


class AssetPipeline:
    """
    Complete asset pipeline for one project root

    One-shot entry points go through execute()/run(); the default entry
    (build, watch and serve) goes through start_dev().
    """

    def __init__(
        self,
        root: Optional[Path] = None,
        table: Optional[PathTable] = None,
        tool_registry: Optional[Dict[str, Callable]] = None
    ):
        """
        Initialize pipeline

        Args:
            root: Project root (defaults to config.BASE_DIR)
            table: Path table (defaults to the standard layout under root)
            tool_registry: Tool callables (defaults to the standard builders)
        """
        self.table = table or default_path_table(root)
        self.tool_registry = tool_registry or create_tool_registry(self.table)
        self.planner = Planner()

        # Execution log
        self.execution_log = []

    async def execute(
        self,
        pipeline_name: str,
        progress_callback: Optional[Callable[[str], None]] = None
    ) -> Dict[str, Any]:
        """
        Run a one-shot entry point

        Args:
            pipeline_name: buildDev, buildProd, deployGhPages or a single-builder name
            progress_callback: Optional callback for progress updates (msg: str) -> None

        Returns:
            Executor summary

        Raises:
            ConfigurationError: Unknown entry point
            PipelineError: A task failed
        """
        def log(msg: str):
            self.execution_log.append(msg)
            if progress_callback:
                progress_callback(msg)
            print(f"[Pipeline] {msg}")

        mode = mode_for(pipeline_name)
        dag = self.planner.plan(pipeline_name)
        log(f"=== {pipeline_name} ({mode.name}) in {self.table.root} ===")

        executor = Executor(self.tool_registry, run_mode=RunMode.ONE_SHOT)
        try:
            result = await executor.execute(dag, mode, progress_callback=progress_callback)
        finally:
            self.execution_log.extend(executor.execution_log)

        log(f"✓ {pipeline_name} finished: {len(result['outputs'])} files written")
        return result

    def run(
        self,
        pipeline_name: str,
        progress_callback: Optional[Callable[[str], None]] = None
    ) -> Dict[str, Any]:
        """Synchronous wrapper around execute()"""
        return asyncio.run(self.execute(pipeline_name, progress_callback))

    async def start_dev(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        progress_callback: Optional[Callable[[str], None]] = None
    ):
        """
        Default entry: development build, then watch sources and serve build/

        Rebuild failures are reported to connected browsers and never stop
        the server. Returns when the server shuts down (Ctrl+C).
        """
        await self.execute(BUILD_DEV, progress_callback)

        loop = asyncio.get_running_loop()
        reload_service.set_main_loop(loop)

        watcher = WatchOrchestrator(
            self.table,
            self.tool_registry,
            on_reload=reload_service.emit_reload,
            on_failure=reload_service.emit_build_failed,
        )
        server = uvicorn.Server(uvicorn.Config(
            create_app(self.table.build_path),
            host=host or config.HOST,
            port=port or config.PORT,
            log_level="info",
        ))

        print(f"[Pipeline] Serving {self.table.build_path} at http://{server.config.host}:{server.config.port}")
        watcher.start()
        try:
            await server.serve()
        finally:
            watcher.stop()


__all__ = ["AssetPipeline", "PipelineError"]
