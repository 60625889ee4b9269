"""
JS Tool - Bundles the script entry point with esbuild

esbuild resolves imports, applies the syntax transform (--target) and,
in production, minifies. esbuild writes nothing when the build has errors,
so a failed bundle leaves the previous build/js output in place.
"""
import subprocess
from pathlib import Path
from typing import Any, Dict, List

import config
from builders.schemas import AssetCategory, BuildMode, PathTable
from .common import BuilderError, result


def bundler_command(entry: Path, outfile: Path, mode: BuildMode) -> List[str]:
    """Build the esbuild command line for a mode"""
    cmd = [
        config.JS_BUNDLER,
        str(entry),
        "--bundle",
        f"--outfile={outfile}",
        f"--target={config.JS_TARGET}",
        "--log-level=warning",
    ]
    if mode.production:
        cmd += ["--minify", '--define:process.env.NODE_ENV="production"']
    else:
        cmd += ["--sourcemap", '--define:process.env.NODE_ENV="development"']
    return cmd


def build_js(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """
    Bundle src/js/main.js to build/js/script.min.js

    Args:
        table: Path table
        mode: Build mode

    Returns:
        Dictionary with the bundle (and source map) paths
    """
    paths = table.lookup(AssetCategory.SCRIPTS)
    entry = table.root / paths.entry_point
    out_dir = table.output_path(AssetCategory.SCRIPTS)
    bundle = out_dir / paths.output_filename
    source_map = bundle.with_name(bundle.name + ".map")

    if not entry.exists():
        return result([], skipped=[entry])

    out_dir.mkdir(parents=True, exist_ok=True)
    cmd = bundler_command(entry.relative_to(table.root), bundle.relative_to(table.root), mode)
    try:
        proc = subprocess.run(
            cmd,
            cwd=table.root,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise BuilderError(
            f"JS bundler not found: {config.JS_BUNDLER}",
            AssetCategory.SCRIPTS,
            entry,
        ) from e

    if proc.returncode != 0:
        raise BuilderError(
            f"JS bundling failed with exit code {proc.returncode}:\n{proc.stderr[-2000:]}",
            AssetCategory.SCRIPTS,
            entry,
        )

    outputs = [bundle]
    if mode.production:
        if source_map.exists():
            source_map.unlink()
    else:
        outputs.append(source_map)

    return result(outputs)


__all__ = ["build_js", "bundler_command"]
