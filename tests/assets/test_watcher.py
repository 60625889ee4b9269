"""
Tests for WatchOrchestrator

The fragment runner is replaced so the state machine can be driven
deterministically on one event loop.
"""
import asyncio
import warnings
from pathlib import Path

import pytest

from builders.core import watcher as watcher_module
from builders.core.watcher import SourceChangeHandler, WatchOrchestrator, WatchState, default_bindings
from builders.schemas import AssetCategory
from builders.tools.tool_registry import create_tool_registry


class ScriptedRunner:
    """Runner that records calls and returns scripted results"""

    def __init__(self, results=None, gate=None):
        self.calls = []
        self.results = list(results or [])
        self.gate = gate

    async def __call__(self, binding):
        self.calls.append(binding.name)
        if self.gate is not None:
            await self.gate.wait()
        return self.results.pop(0) if self.results else True


def snapshot(directory):
    return {
        path.relative_to(directory).as_posix(): path.read_bytes()
        for path in sorted(directory.rglob("*"))
        if path.is_file()
    }


def make_orchestrator(table, runner, reloads=None, failures=None):
    return WatchOrchestrator(
        table,
        tool_registry={},
        on_reload=reloads.append if reloads is not None else None,
        on_failure=(lambda name, error: failures.append(name)) if failures is not None else None,
        debounce_ms=0,
        runner=runner,
    )


class TestBindings:
    """Test default binding layout"""

    def test_markup_binding_rebuilds_sprite_first(self, table):
        markup = next(b for b in default_bindings(table) if b.name == "markup")
        assert markup.fragment == [AssetCategory.SVG_SPRITE, AssetCategory.MARKUP]
        assert markup.globs.matches("src/img/icons/icon-home.svg")
        assert markup.globs.matches("src/html/includes/header.html")

    def test_styles_binding_watches_scss_only(self, table):
        styles = next(b for b in default_bindings(table) if b.name == "styles")
        assert styles.globs.matches("src/scss/components/_button.scss")
        assert not styles.globs.matches("src/img/icons/icon-home.svg")


class TestWatchStateMachine:
    """Test debounce, failure and isolation behavior"""

    def test_change_runs_binding_and_reloads(self, table):
        runner, reloads = ScriptedRunner(), []

        async def scenario():
            watcher = make_orchestrator(table, runner, reloads)
            matched = watcher.notify("src/scss/style.scss")
            assert matched == ["styles"]
            assert watcher.get_binding("styles").state == WatchState.TRIGGERED
            await watcher.wait_idle()
            return watcher

        watcher = asyncio.run(scenario())
        assert runner.calls == ["styles"]
        assert reloads == ["styles"]
        assert watcher.get_binding("styles").state == WatchState.IDLE

    def test_changes_while_triggered_are_absorbed(self, table):
        runner = ScriptedRunner()

        async def scenario():
            watcher = make_orchestrator(table, runner)
            for _ in range(5):
                watcher.notify("src/js/main.js")
            await watcher.wait_idle()

        asyncio.run(scenario())
        assert runner.calls == ["scripts"]

    def test_changes_while_running_give_exactly_one_follow_up(self, table):
        reloads = []

        async def scenario():
            gate = asyncio.Event()
            runner = ScriptedRunner(gate=gate)
            watcher = make_orchestrator(table, runner, reloads)

            watcher.notify("src/scss/style.scss")
            while watcher.get_binding("styles").state != WatchState.RUNNING:
                await asyncio.sleep(0)

            for _ in range(4):
                watcher.notify("src/scss/_vars.scss")
            assert watcher.get_binding("styles").pending

            gate.set()
            await watcher.wait_idle()
            return runner, watcher

        runner, watcher = asyncio.run(scenario())
        assert runner.calls == ["styles", "styles"]
        assert reloads == ["styles", "styles"]
        assert watcher.get_binding("styles").runs == 2

    def test_failure_sends_no_reload_and_next_change_retries(self, table):
        runner, reloads, failures = ScriptedRunner(results=[False, True]), [], []

        async def scenario():
            watcher = make_orchestrator(table, runner, reloads, failures)
            watcher.notify("src/scss/style.scss")
            await watcher.wait_idle()
            assert watcher.get_binding("styles").state == WatchState.FAILED
            assert reloads == []

            watcher.notify("src/scss/style.scss")
            await watcher.wait_idle()
            return watcher

        watcher = asyncio.run(scenario())
        assert failures == ["styles"]
        assert reloads == ["styles"]
        assert watcher.get_binding("styles").state == WatchState.IDLE
        assert watcher.get_binding("styles").failures == 1

    def test_crashing_runner_marks_binding_failed(self, table):
        async def crash(binding):
            raise RuntimeError("boom")

        async def scenario():
            watcher = make_orchestrator(table, crash)
            watcher.notify("src/fonts/a.woff2")
            await watcher.wait_idle()
            return watcher

        binding = asyncio.run(scenario()).get_binding("fonts")
        assert binding.state == WatchState.FAILED
        assert binding.last_error == "boom"

    def test_bindings_are_isolated(self, table):
        runner = ScriptedRunner(results=[False])

        async def scenario():
            watcher = make_orchestrator(table, runner)
            watcher.notify("src/scss/style.scss")
            watcher.notify("src/js/main.js")
            await watcher.wait_idle()
            return watcher

        watcher = asyncio.run(scenario())
        assert sorted(runner.calls) == ["scripts", "styles"]
        states = {watcher.get_binding(n).state for n in ("styles", "scripts")}
        assert states == {WatchState.FAILED, WatchState.IDLE}

    def test_unmatched_paths_are_ignored(self, table, temp_dir):
        runner = ScriptedRunner()

        async def scenario():
            watcher = make_orchestrator(table, runner)
            assert watcher.notify("README.md") == []
            assert watcher.notify("/somewhere/else/style.scss") == []
            assert watcher.notify(str(temp_dir / "src/html/index.html")) == ["markup"]
            await watcher.wait_idle()

        asyncio.run(scenario())
        assert runner.calls == ["markup"]


class TestFragmentRunner:
    """Test the default runner against real builders"""

    def test_icon_change_rebuilds_sprite_then_pages(self, table, temp_dir, write_file):
        write_file("src/img/icons/icon-home.svg", '<svg viewBox="0 0 1 1"><path d="M0 0"/></svg>')
        write_file("src/html/index.html", "<body>\n  <svg><use href=\"img/sprite.svg#icon-home\"/></svg>\n</body>")
        reloads = []

        async def scenario():
            watcher = WatchOrchestrator(
                table, create_tool_registry(table), on_reload=reloads.append, debounce_ms=0,
            )
            watcher.notify("src/img/icons/icon-home.svg")
            await watcher.wait_idle()

        asyncio.run(scenario())
        # Icons are images too, so both bindings rebuild
        assert sorted(reloads) == ["images", "markup"]
        assert (temp_dir / "build/img/sprite.svg").exists()
        assert (temp_dir / "build/index.html").read_text().startswith("<body> <svg>")

    def test_builder_error_is_a_failed_cycle(self, table, write_file):
        write_file("src/html/index.html", "@@include('missing.html')")
        failures = []

        async def scenario():
            watcher = WatchOrchestrator(
                table,
                create_tool_registry(table),
                on_failure=lambda name, error: failures.append(error),
                debounce_ms=0,
            )
            watcher.notify("src/html/index.html")
            await watcher.wait_idle()
            return watcher

        watcher = asyncio.run(scenario())
        assert watcher.get_binding("markup").state == WatchState.FAILED
        assert "Include not found" in failures[0]

    def _broken_cycle(self, table, setup, break_sources, path):
        """Build once through the watcher, break the sources, rebuild"""
        reloads, failures = [], []

        async def scenario():
            watcher = WatchOrchestrator(
                table,
                create_tool_registry(table),
                on_reload=reloads.append,
                on_failure=lambda name, error: failures.append(name),
                debounce_ms=0,
            )
            setup()
            watcher.notify(path)
            await watcher.wait_idle()
            before = snapshot(table.build_path)

            break_sources()
            watcher.notify(path)
            await watcher.wait_idle()
            return before, snapshot(table.build_path)

        before, after = asyncio.run(scenario())
        return before, after, reloads, failures

    def test_broken_scss_keeps_previous_stylesheet(self, table, temp_dir, write_file):
        before, after, reloads, failures = self._broken_cycle(
            table,
            setup=lambda: write_file("src/scss/style.scss", "body { color: red; }\n"),
            break_sources=lambda: write_file("src/scss/style.scss", "body { color: red;\n"),
            path="src/scss/style.scss",
        )

        assert "css/style.min.css" in before
        assert after == before
        assert reloads == ["styles"]
        assert failures == ["styles"]

    def test_broken_page_keeps_every_previous_page(self, table, temp_dir, write_file):
        def setup():
            write_file("src/html/a.html", "<p>v1</p>")
            write_file("src/html/b.html", "<p>b1</p>")

        def break_sources():
            write_file("src/html/a.html", "<p>v2</p>")
            write_file("src/html/b.html", "@@include('missing.html')")

        before, after, reloads, failures = self._broken_cycle(
            table, setup, break_sources, path="src/html/a.html",
        )

        assert before["a.html"] == b"<p>v1</p>"
        assert after == before
        assert reloads == ["markup"]
        assert failures == ["markup"]

    def test_failing_reload_callback_does_not_wedge_the_watcher(self, table):
        runner = ScriptedRunner()
        calls = []

        def flaky_reload(name):
            calls.append(name)
            raise RuntimeError("client gone")

        async def scenario():
            watcher = WatchOrchestrator(table, {}, on_reload=flaky_reload, debounce_ms=0, runner=runner)
            watcher.notify("src/scss/style.scss")
            await watcher.wait_idle()
            watcher.notify("src/scss/style.scss")
            await watcher.wait_idle()
            return watcher

        watcher = asyncio.run(scenario())
        assert calls == ["styles", "styles"]
        assert watcher._tasks == {}
        assert watcher.get_binding("styles").state == WatchState.IDLE

    def test_failing_failure_callback_does_not_wedge_the_watcher(self, table):
        def flaky_failure(name, error):
            raise RuntimeError("client gone")

        async def scenario():
            watcher = WatchOrchestrator(
                table, {}, on_failure=flaky_failure, debounce_ms=0, runner=ScriptedRunner(results=[False]),
            )
            watcher.notify("src/js/main.js")
            await watcher.wait_idle()
            return watcher

        watcher = asyncio.run(scenario())
        assert watcher._tasks == {}
        assert watcher.get_binding("scripts").state == WatchState.FAILED



class TestModuleSource:
    def test_compiles_without_warnings(self):
        source = Path(watcher_module.__file__).read_text(encoding="utf-8")
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(source, watcher_module.__file__, "exec")


class TestSourceChangeHandler:
    def test_forwards_file_events(self):
        class Recorder:
            def __init__(self):
                self.paths = []

            def notify_threadsafe(self, path):
                self.paths.append(path)

        class Event:
            def __init__(self, event_type, src_path, dest_path="", is_directory=False):
                self.event_type = event_type
                self.src_path = src_path
                self.dest_path = dest_path
                self.is_directory = is_directory

        recorder = Recorder()
        handler = SourceChangeHandler(recorder)
        handler.on_any_event(Event("modified", "/site/src/a.scss"))
        handler.on_any_event(Event("moved", "/site/src/tmp", "/site/src/b.scss"))
        handler.on_any_event(Event("modified", "/site/src/dir", is_directory=True))
        handler.on_any_event(Event("opened", "/site/src/c.scss"))

        assert recorder.paths == ["/site/src/a.scss", "/site/src/b.scss"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
