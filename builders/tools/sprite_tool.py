"""
SVG Sprite Tool - Combines icon-*.svg files into one <symbol> sprite

Each icon becomes `<symbol id="icon-name" viewBox="...">`, so markup can
reference it with `<use href="img/sprite.svg#icon-name">`. Internal ids are
prefixed with the icon name so gradients/masks from different icons never
collide. The sprite has no XML declaration and can be inlined as is.
"""
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Optional

from builders.schemas import AssetCategory, BuildMode, PathTable
from .common import BuilderError, result, write_output

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
HREF_ATTRS = ("href", f"{{{XLINK_NS}}}href")
SYMBOL_ATTRS = ("viewBox", "preserveAspectRatio")

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _view_box(root: ET.Element) -> Optional[str]:
    if root.get("viewBox"):
        return root.get("viewBox")
    width, height = root.get("width"), root.get("height")
    if width and height:
        return f"0 0 {width.rstrip('px')} {height.rstrip('px')}"
    return None


def _prefix_ids(root: ET.Element, prefix: str):
    """Rename every id to `<prefix>-<id>` and rewrite references to it"""
    renamed = {}
    for el in root.iter():
        if el.get("id"):
            renamed[el.get("id")] = f"{prefix}-{el.get('id')}"
            el.set("id", renamed[el.get("id")])
    if not renamed:
        return

    url_re = re.compile(r"url\(\s*#(" + "|".join(re.escape(k) for k in renamed) + r")\s*\)")

    def fix(value: str) -> str:
        return url_re.sub(lambda m: f"url(#{renamed[m.group(1)]})", value)

    for el in root.iter():
        for name, value in list(el.attrib.items()):
            if name in HREF_ATTRS and value.startswith("#") and value[1:] in renamed:
                el.set(name, "#" + renamed[value[1:]])
            elif "url(" in value:
                el.set(name, fix(value))
        if _local(el.tag) == "style" and el.text:
            el.text = fix(el.text)


def icon_to_symbol(source: Path) -> ET.Element:
    """Parse one icon file into a <symbol> element"""
    try:
        root = ET.fromstring(source.read_text(encoding="utf-8"))
    except (ET.ParseError, UnicodeDecodeError) as e:
        raise BuilderError(f"Invalid SVG {source.name}: {e}", AssetCategory.SVG_SPRITE, source) from e
    if _local(root.tag) != "svg":
        raise BuilderError(f"{source.name} has no <svg> root element", AssetCategory.SVG_SPRITE, source)

    # Icons written without xmlns parse as un-namespaced tags
    for el in root.iter():
        if not el.tag.startswith("{"):
            el.tag = f"{{{SVG_NS}}}{el.tag}"

    symbol_id = source.stem
    _prefix_ids(root, symbol_id)

    symbol = ET.Element(f"{{{SVG_NS}}}symbol", {"id": symbol_id})
    view_box = _view_box(root)
    if view_box:
        symbol.set("viewBox", view_box)
    if root.get("preserveAspectRatio"):
        symbol.set("preserveAspectRatio", root.get("preserveAspectRatio"))

    for child in root:
        if _local(child.tag) == "metadata":
            continue
        child.tail = None
        symbol.append(child)
    return symbol


def assemble_sprite(sources: List[Path]) -> str:
    """Combine icon files (in the given order) into sprite markup"""
    sprite = ET.Element(f"{{{SVG_NS}}}svg")
    seen = {}
    for source in sources:
        if source.stem in seen:
            raise BuilderError(
                f"Duplicate icon name '{source.stem}': {seen[source.stem]} and {source}",
                AssetCategory.SVG_SPRITE,
                source,
            )
        seen[source.stem] = source
        sprite.append(icon_to_symbol(source))
    return ET.tostring(sprite, encoding="unicode")


def build_svg_sprite(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """
    Build build/img/sprite.svg from src/img/**/icon-*.svg

    Args:
        table: Path table
        mode: Build mode (the sprite is identical in both modes)

    Returns:
        Dictionary with the sprite path and symbol ids
    """
    paths = table.lookup(AssetCategory.SVG_SPRITE)
    sources = table.sources(AssetCategory.SVG_SPRITE)
    if not sources:
        return result([])

    dest = table.output_path(AssetCategory.SVG_SPRITE) / paths.output_filename
    write_output(dest, assemble_sprite(sources))
    return result([dest], symbols=[s.stem for s in sources])


__all__ = ["build_svg_sprite", "assemble_sprite", "icon_to_symbol"]
