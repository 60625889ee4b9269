"""
Tests for AssetPipeline

These tests run whole entry points against a small site. The JS bundler is
replaced with a stand-in so the tests do not need esbuild installed.
"""
import json

import pytest

from builders.pipeline import AssetPipeline, PipelineError
from builders.schemas import AssetCategory, ConfigurationError
from builders.tools import ToolRegistry
from builders.tools.common import result, write_output


def fake_bundler(table, mode):
    paths = table.lookup(AssetCategory.SCRIPTS)
    source = (table.root / paths.entry_point).read_text()
    bundle = table.output_path(AssetCategory.SCRIPTS) / paths.output_filename
    return result([write_output(bundle, f"/* {mode.name} */{source}")])


def snapshot(directory):
    return {
        path.relative_to(directory).as_posix(): path.read_bytes()
        for path in sorted(directory.rglob("*"))
        if path.is_file()
    }


class TestAssetPipeline:
    """Test suite for AssetPipeline"""

    @pytest.fixture
    def site(self, temp_dir, write_file, write_image):
        write_file("src/html/includes/header.html", "<header>\n  <!-- logo -->\n  <h1>@@title</h1>\n</header>")
        write_file(
            "src/html/index.html",
            '<html><head><link href="css/style.min.css" rel="stylesheet"></head>\n<body>\n'
            '@@include("src/html/includes/header.html", {"title": "Home"})\n'
            '<script src="js/script.min.js"></script>\n</body></html>',
        )
        write_file("src/scss/style.scss", "$c: #123456;\nbody { color: $c; }\n")
        write_file("src/js/main.js", "console.log('hi');\n")
        write_file("src/img/icons/icon-home.svg", '<svg viewBox="0 0 10 10"><path d="M0 0"/></svg>')
        write_image("src/img/photo.jpg")
        write_file("src/fonts/site.woff2", b"\x00\x01")
        write_file("src/favicon/favicon.ico", b"\x00ico")
        return temp_dir

    @pytest.fixture
    def pipeline(self, table):
        registry = ToolRegistry(table)
        registry.register("build_js", fake_bundler, description="Stand-in bundler", category=AssetCategory.SCRIPTS)
        return AssetPipeline(table=table, tool_registry=registry.get_all_tools())

    def test_build_dev_outputs(self, pipeline, site):
        summary = pipeline.run("buildDev")

        build = site / "build"
        assert summary["status"] == "success"
        assert (build / "css/style.min.css").exists()
        assert (build / "css/style.min.css.map").exists()
        assert (build / "js/script.min.js").exists()
        assert (build / "img/sprite.svg").exists()
        assert (build / "img/photo.jpg").exists()
        assert (build / "img/photo.webp").exists()
        assert (build / "img/icons/icon-home.svg").exists()
        assert (build / "fonts/site.woff2").exists()
        assert (build / "favicon.ico").exists()

        index = (build / "index.html").read_text()
        assert "<h1>Home</h1>" in index
        assert "<!--" not in index
        assert "@@" not in index
        assert 'href="css/style.min.css"' in index

    def test_build_dev_is_idempotent(self, pipeline, site):
        pipeline.run("buildDev")
        first = snapshot(site / "build")
        pipeline.run("buildDev")
        assert snapshot(site / "build") == first

    def test_clean_removes_stale_output(self, pipeline, site, write_file):
        write_file("build/stale.txt", "old")
        pipeline.run("buildDev")
        assert not (site / "build/stale.txt").exists()

    def test_build_prod_busts_cache(self, pipeline, site):
        pipeline.run("buildProd")

        build = site / "build"
        manifest = json.loads((build / "rev-manifest.json").read_text())
        assert set(manifest) == {"css/style.min.css", "js/script.min.js"}
        for original, revved in manifest.items():
            assert not (build / original).exists()
            assert (build / revved).exists()

        index = (build / "index.html").read_text()
        assert manifest["css/style.min.css"] in index
        assert manifest["js/script.min.js"] in index
        assert not list(build.rglob("*.map"))

    def test_single_builder_does_not_clean(self, pipeline, site, write_file):
        write_file("build/keep.txt", "keep")
        pipeline.run("buildFonts")
        assert (site / "build/keep.txt").exists()
        assert (site / "build/fonts/site.woff2").exists()
        assert not (site / "build/index.html").exists()

    def test_failing_builder_aborts(self, pipeline, site, write_file):
        write_file("src/scss/style.scss", "body { color: $nope; }")
        with pytest.raises(PipelineError, match="SCSS compilation failed"):
            pipeline.run("buildDev")
        assert any("✗" in line for line in pipeline.execution_log)

    def test_unknown_entry_raises_configuration_error(self, pipeline):
        with pytest.raises(ConfigurationError):
            pipeline.run("buildEverything")

    def test_progress_callback(self, pipeline, site):
        messages = []
        pipeline.run("buildHtml", progress_callback=messages.append)
        assert any("buildHtml" in m for m in messages)
        assert messages[-1].startswith("✓ buildHtml finished")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
