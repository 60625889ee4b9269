"""
Planner - Pipeline name → Task DAG

Responsibilities:
- Declare the task graph behind every entry point
- Make ordering explicit as dependency edges:
    clean → every producer
    build_svg_sprite → build_html (pages may reference sprite symbols)
    every producer → bust_cache (production)
    bust_cache → publish_gh_pages (deploy)
- Build sequential fragments for watch re-runs

The Planner is "dumb" - it only declares structure, it runs nothing.
"""
from typing import Dict, List, Optional, Sequence

from builders.schemas import (
    AssetCategory,
    BuildMode,
    ConfigurationError,
    DEVELOPMENT,
    PRODUCTION,
    Task,
    TaskDAG,
)
from builders.tools.tool_registry import CATEGORY_TOOLS

BUILD_DEV = "buildDev"
BUILD_PROD = "buildProd"
DEPLOY_GH_PAGES = "deployGhPages"

# Pipelines that clean and fan out every builder
FULL_PIPELINES = (BUILD_DEV, BUILD_PROD, DEPLOY_GH_PAGES)
PRODUCTION_PIPELINES = (BUILD_PROD, DEPLOY_GH_PAGES)

# Entry points that run one builder in isolation
SINGLE_BUILDERS: Dict[str, AssetCategory] = {
    "buildHtml": AssetCategory.MARKUP,
    "buildCss": AssetCategory.STYLES,
    "buildJs": AssetCategory.SCRIPTS,
    "buildImg": AssetCategory.IMAGES,
    "buildWebp": AssetCategory.IMAGE_DERIVATIVES,
    "buildSvgSprite": AssetCategory.SVG_SPRITE,
    "buildFonts": AssetCategory.FONTS,
    "buildFavicon": AssetCategory.FAVICONS,
}

# Fan-out order; only sprite → markup is an actual edge
FAN_OUT: List[AssetCategory] = [
    AssetCategory.SVG_SPRITE,
    AssetCategory.MARKUP,
    AssetCategory.STYLES,
    AssetCategory.SCRIPTS,
    AssetCategory.IMAGES,
    AssetCategory.IMAGE_DERIVATIVES,
    AssetCategory.FONTS,
    AssetCategory.FAVICONS,
]

# category -> categories that must finish first within one pipeline run
CATEGORY_EDGES: Dict[AssetCategory, List[AssetCategory]] = {
    AssetCategory.MARKUP: [AssetCategory.SVG_SPRITE],
}


def pipeline_names() -> List[str]:
    return list(FULL_PIPELINES) + list(SINGLE_BUILDERS)


def mode_for(pipeline_name: str) -> BuildMode:
    """Build mode an entry point runs under"""
    return PRODUCTION if pipeline_name in PRODUCTION_PIPELINES else DEVELOPMENT


class Planner:
    """
    Planner - Converts an entry point name into a Task DAG

    Creates an execution plan with proper dependencies.
    """

    def __init__(self):
        self.task_counter = 0

    def plan(self, pipeline_name: str) -> TaskDAG:
        """
        Create execution plan for an entry point

        Args:
            pipeline_name: buildDev, buildProd, deployGhPages or a single-builder name

        Returns:
            TaskDAG with all tasks and dependencies

        Raises:
            ConfigurationError: Unknown pipeline name
        """
        self.task_counter = 0

        if pipeline_name in SINGLE_BUILDERS:
            task = self._create_builder_task(SINGLE_BUILDERS[pipeline_name], dependencies=[])
            return TaskDAG.from_tasks(pipeline_name, [task])

        if pipeline_name not in FULL_PIPELINES:
            available = ", ".join(pipeline_names())
            raise ConfigurationError(f"Unknown pipeline '{pipeline_name}'. Available: {available}")

        tasks = []

        # Phase 1: Clean (exclusive access to the build directory)
        clean_task = self._create_task("clean", "Clean build directory")
        tasks.append(clean_task)

        # Phase 2: Fan out builders; each depends on clean plus its declared edges
        producer_ids: Dict[AssetCategory, str] = {}
        for category in FAN_OUT:
            deps = [clean_task.task_id] + [producer_ids[c] for c in CATEGORY_EDGES.get(category, [])]
            task = self._create_builder_task(category, deps)
            producer_ids[category] = task.task_id
            tasks.append(task)

        # Phase 3: Cache busting after every producer (production only)
        if pipeline_name in PRODUCTION_PIPELINES:
            bust_task = self._create_task(
                "bust_cache",
                "Cache-bust CSS/JS bundles",
                dependencies=list(producer_ids.values()),
            )
            tasks.append(bust_task)

            # Phase 4: Publish
            if pipeline_name == DEPLOY_GH_PAGES:
                tasks.append(self._create_task(
                    "publish_gh_pages",
                    "Publish build to GitHub Pages",
                    dependencies=[bust_task.task_id],
                ))

        dag = TaskDAG.from_tasks(pipeline_name, tasks)
        print(f"[Planner] Planned {dag.total_tasks} tasks for {pipeline_name}")
        return dag

    def plan_fragment(self, name: str, categories: Sequence[AssetCategory]) -> TaskDAG:
        """
        Create a sequential plan (each builder waits for the previous one)

        Used for watch re-runs, e.g. [SVG_SPRITE, MARKUP].
        """
        if not categories:
            raise ConfigurationError(f"Watch fragment '{name}' has no builders")
        self.task_counter = 0
        tasks = []
        previous: Optional[str] = None
        for category in categories:
            task = self._create_builder_task(category, [previous] if previous else [])
            tasks.append(task)
            previous = task.task_id
        return TaskDAG.from_tasks(name, tasks)

    def _next_task_id(self) -> str:
        """Generate next task ID"""
        self.task_counter += 1
        return f"task_{self.task_counter:03d}"

    def _create_task(self, tool_name: str, description: str, dependencies: Optional[List[str]] = None,
                     category: Optional[AssetCategory] = None) -> Task:
        return Task(
            task_id=self._next_task_id(),
            description=description,
            tool_name=tool_name,
            category=category,
            dependencies=dependencies or [],
        )

    def _create_builder_task(self, category: AssetCategory, dependencies: List[str]) -> Task:
        if category not in CATEGORY_TOOLS:
            raise ConfigurationError(f"No builder registered for category '{category.value}'")
        return self._create_task(
            CATEGORY_TOOLS[category],
            f"Build {category.value.replace('_', ' ')}",
            dependencies=dependencies,
            category=category,
        )


__all__ = [
    "Planner",
    "mode_for",
    "pipeline_names",
    "BUILD_DEV",
    "BUILD_PROD",
    "DEPLOY_GH_PAGES",
    "FULL_PIPELINES",
    "PRODUCTION_PIPELINES",
    "SINGLE_BUILDERS",
    "FAN_OUT",
    "CATEGORY_EDGES",
]
