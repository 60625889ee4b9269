"""
Copy Tool - Fonts and favicons

Fonts are copied as is. Favicons land in the build root; production builds
recompress PNG favicons and minify SVG ones.
"""
from typing import Any, Dict

from builders.schemas import AssetCategory, BuildMode, PathTable
from .common import copy_file, mirror_path, result, write_output
from .image_tool import optimize_image

OPTIMIZABLE_FAVICONS = (".png", ".svg")


def build_fonts(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """Copy src/fonts into build/fonts"""
    outputs = [
        copy_file(source, mirror_path(table, AssetCategory.FONTS, source))
        for source in table.sources(AssetCategory.FONTS)
    ]
    return result(outputs)


def build_favicons(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """Copy src/favicon into the build root"""
    outputs = []
    for source in table.sources(AssetCategory.FAVICONS):
        dest = mirror_path(table, AssetCategory.FAVICONS, source)
        if mode.production and source.suffix.lower() in OPTIMIZABLE_FAVICONS:
            outputs.append(write_output(dest, optimize_image(source, AssetCategory.FAVICONS)))
        else:
            outputs.append(copy_file(source, dest))
    return result(outputs)


__all__ = ["build_fonts", "build_favicons"]
