"""
Image Tool - Raster/SVG images and WebP derivatives

Development builds copy only images whose output is older than the source.
Production builds recompress every image:
- JPEG: progressive, quality JPEG_QUALITY
- PNG / GIF: Pillow optimizer
- SVG: comments, metadata and inter-tag whitespace removed
"""
import re
from io import BytesIO
from pathlib import Path
from typing import Any, Dict

from PIL import Image

import config
from builders.schemas import AssetCategory, BuildMode, PathTable
from utils.files import is_newer
from .common import BuilderError, copy_file, mirror_path, result, write_output

SVG_COMMENT_RE = re.compile(r"<!--.*?-->", re.S)
SVG_METADATA_RE = re.compile(r"<metadata\b.*?</metadata>", re.S | re.I)
SVG_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>", re.I)
SVG_GAP_RE = re.compile(r">\s+<")


def minify_svg(svg: str) -> str:
    """Remove comments, metadata, doctype and whitespace between tags"""
    svg = SVG_COMMENT_RE.sub("", svg)
    svg = SVG_METADATA_RE.sub("", svg)
    svg = SVG_DOCTYPE_RE.sub("", svg)
    svg = SVG_GAP_RE.sub("><", svg)
    return svg.strip()


def optimize_image(source: Path, category: AssetCategory = AssetCategory.IMAGES) -> bytes:
    """Recompress one image and return the new bytes"""
    ext = source.suffix.lower()
    if ext == ".svg":
        return minify_svg(source.read_text(encoding="utf-8")).encode("utf-8")

    buffer = BytesIO()
    try:
        with Image.open(source) as img:
            if ext in (".jpg", ".jpeg"):
                if img.mode not in ("RGB", "L"):
                    img = img.convert("RGB")
                img.save(buffer, format="JPEG", quality=config.JPEG_QUALITY, progressive=True, optimize=True)
            elif ext == ".png":
                img.save(buffer, format="PNG", optimize=True)
            elif ext == ".gif":
                img.save(buffer, format="GIF", save_all=getattr(img, "is_animated", False), optimize=True)
            else:
                return source.read_bytes()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise BuilderError(f"Cannot optimize image {source.name}: {e}", category, source) from e
    return buffer.getvalue()


def to_webp(source: Path) -> bytes:
    """Encode a raster image as WebP"""
    buffer = BytesIO()
    try:
        with Image.open(source) as img:
            if img.mode in ("P", "LA", "PA"):
                img = img.convert("RGBA")
            elif img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGB")
            img.save(buffer, format="WEBP", quality=config.WEBP_QUALITY)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise BuilderError(
            f"Cannot convert {source.name} to WebP: {e}",
            AssetCategory.IMAGE_DERIVATIVES,
            source,
        ) from e
    return buffer.getvalue()


def build_images(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """
    Copy (development) or recompress (production) src/img into build/img

    Args:
        table: Path table
        mode: Build mode

    Returns:
        Dictionary with written and skipped paths
    """
    outputs, skipped = [], []
    for source in table.sources(AssetCategory.IMAGES):
        dest = mirror_path(table, AssetCategory.IMAGES, source)
        if mode.production:
            outputs.append(write_output(dest, optimize_image(source)))
        elif is_newer(source, dest):
            outputs.append(copy_file(source, dest))
        else:
            skipped.append(dest)
    return result(outputs, skipped)


def build_webp(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """
    Write a .webp next to every jpg/jpeg/png output

    Args:
        table: Path table
        mode: Build mode (development skips up-to-date derivatives)

    Returns:
        Dictionary with written and skipped paths
    """
    outputs, skipped = [], []
    for source in table.sources(AssetCategory.IMAGE_DERIVATIVES):
        dest = mirror_path(table, AssetCategory.IMAGE_DERIVATIVES, source, suffix=".webp")
        if not mode.production and not is_newer(source, dest):
            skipped.append(dest)
            continue
        outputs.append(write_output(dest, to_webp(source)))
    return result(outputs, skipped)


__all__ = ["build_images", "build_webp", "minify_svg", "optimize_image", "to_webp"]
