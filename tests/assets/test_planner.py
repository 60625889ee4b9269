"""
Tests for Planner

Verify the task graph behind every entry point.
"""
import pytest

from builders.core.planner import (
    BUILD_DEV,
    BUILD_PROD,
    DEPLOY_GH_PAGES,
    SINGLE_BUILDERS,
    Planner,
    mode_for,
    pipeline_names,
)
from builders.schemas import AssetCategory, ConfigurationError


def _by_tool(dag):
    return {task.tool_name: task for task in dag.tasks}


class TestPlanner:
    """Test suite for Planner"""

    @pytest.fixture
    def planner(self):
        return Planner()

    def test_build_dev_cleans_before_every_producer(self, planner):
        dag = planner.plan(BUILD_DEV)
        tasks = _by_tool(dag)

        assert dag.entry_tasks == [tasks["clean"].task_id]
        assert dag.total_tasks == 9
        for task in dag.tasks:
            if task.tool_name != "clean":
                assert tasks["clean"].task_id in dag.ancestors(task.task_id)

    def test_sprite_precedes_markup(self, planner):
        dag = planner.plan(BUILD_DEV)
        tasks = _by_tool(dag)
        assert tasks["build_svg_sprite"].task_id in tasks["build_html"].dependencies

    def test_other_producers_are_unordered(self, planner):
        dag = planner.plan(BUILD_DEV)
        tasks = _by_tool(dag)
        assert not dag.is_ordered(tasks["build_css"].task_id, tasks["build_js"].task_id)
        assert not dag.is_ordered(tasks["build_images"].task_id, tasks["build_webp"].task_id)

    def test_build_dev_has_no_cache_busting(self, planner):
        tools = _by_tool(planner.plan(BUILD_DEV))
        assert "bust_cache" not in tools
        assert "publish_gh_pages" not in tools

    def test_build_prod_busts_cache_after_all_producers(self, planner):
        dag = planner.plan(BUILD_PROD)
        tasks = _by_tool(dag)
        bust = tasks["bust_cache"]

        producers = [t for t in dag.tasks if t.category is not None]
        assert len(producers) == len(AssetCategory)
        for producer in producers:
            assert producer.task_id in bust.dependencies
        assert dag.final_tasks == [bust.task_id]

    def test_deploy_publishes_last(self, planner):
        dag = planner.plan(DEPLOY_GH_PAGES)
        tasks = _by_tool(dag)
        assert tasks["publish_gh_pages"].dependencies == [tasks["bust_cache"].task_id]
        assert dag.final_tasks == [tasks["publish_gh_pages"].task_id]

    def test_single_builder_runs_alone(self, planner):
        dag = planner.plan("buildCss")
        assert dag.total_tasks == 1
        assert dag.tasks[0].tool_name == "build_css"
        assert dag.tasks[0].dependencies == []

    def test_every_single_builder_is_plannable(self, planner):
        for name, category in SINGLE_BUILDERS.items():
            dag = planner.plan(name)
            assert dag.tasks[0].category == category

    def test_unknown_pipeline_raises(self, planner):
        with pytest.raises(ConfigurationError, match="Unknown pipeline"):
            planner.plan("buildEverything")

    def test_fragment_is_sequential(self, planner):
        dag = planner.plan_fragment("watch:markup", [AssetCategory.SVG_SPRITE, AssetCategory.MARKUP])
        sprite, html = dag.tasks
        assert sprite.dependencies == []
        assert html.dependencies == [sprite.task_id]

    def test_empty_fragment_raises(self, planner):
        with pytest.raises(ConfigurationError):
            planner.plan_fragment("watch:nothing", [])

    def test_modes(self):
        assert not mode_for(BUILD_DEV).production
        assert mode_for(BUILD_PROD).production
        assert mode_for(DEPLOY_GH_PAGES).production
        assert not mode_for("buildImg").production

    def test_pipeline_names(self):
        names = pipeline_names()
        assert names[:3] == [BUILD_DEV, BUILD_PROD, DEPLOY_GH_PAGES]
        assert "buildFavicon" in names


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
