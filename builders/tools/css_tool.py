"""
CSS Tool - Compiles the SCSS entry point with libsass

Development: expanded output with a source map next to the bundle.
Production: compressed output, no source map.

Stylesheets can inline SVG files as data URIs:
    background: svg-load("src/img/arrow.svg");
"""
from pathlib import Path
from typing import Any, Dict, List
from urllib.parse import quote

import sass

from builders.schemas import AssetCategory, BuildMode, PathTable
from .common import BuilderError, result, write_output


def make_svg_loader(search_paths: List[Path]):
    """Create the `svg-load($path)` Sass function"""
    def svg_load(path):
        name = str(path).strip("'\"")
        for base in search_paths:
            candidate = base / name
            if candidate.is_file():
                svg = candidate.read_text(encoding="utf-8").strip()
                return f'url("data:image/svg+xml;charset=utf-8,{quote(svg, safe="")}")'
        raise ValueError(f"svg-load: file not found: {name}")
    return svg_load


def build_css(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """
    Compile src/scss/style.scss to build/css/style.min.css

    Args:
        table: Path table
        mode: Build mode

    Returns:
        Dictionary with the bundle (and source map) paths
    """
    paths = table.lookup(AssetCategory.STYLES)
    entry = table.root / paths.entry_point
    out_dir = table.output_path(AssetCategory.STYLES)
    bundle = out_dir / paths.output_filename
    source_map = bundle.with_name(bundle.name + ".map")

    if not entry.exists():
        return result([], skipped=[entry])

    options = {
        "filename": str(entry),
        "include_paths": [str(entry.parent), str(table.root / "node_modules")],
        "custom_functions": {"svg-load": make_svg_loader([table.root, entry.parent])},
        "output_style": "compressed" if mode.production else "expanded",
    }
    if not mode.production:
        options.update(
            source_map_filename=str(source_map),
            output_filename_hint=str(bundle),
            source_map_contents=True,
        )

    try:
        compiled = sass.compile(**options)
    except sass.CompileError as e:
        raise BuilderError(f"SCSS compilation failed: {e}", AssetCategory.STYLES, entry) from e

    outputs = []
    if mode.production:
        outputs.append(write_output(bundle, compiled))
        if source_map.exists():
            source_map.unlink()
    else:
        css, css_map = compiled
        outputs.append(write_output(bundle, css))
        outputs.append(write_output(source_map, css_map))

    return result(outputs)


__all__ = ["build_css", "make_svg_loader"]
