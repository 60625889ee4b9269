"""
Tools for the asset pipeline

These tools are invoked by the Executor to perform specific tasks:
- Cleaning the build directory
- Building one asset category (markup, styles, scripts, images, WebP,
  SVG sprite, fonts, favicons)
- Cache busting and publishing

All tools are deterministic: same sources and mode → same output bytes.
"""
from .common import BuilderError, FileSystemError
from .clean_tool import clean_build
from .html_tool import build_html, minify_html, FileIncluder
from .css_tool import build_css
from .js_tool import build_js
from .image_tool import build_images, build_webp, minify_svg
from .sprite_tool import build_svg_sprite, assemble_sprite
from .copy_tool import build_fonts, build_favicons
from .rev_tool import bust_cache, content_hash
from .publish_tool import publish_gh_pages
from .tool_registry import ToolRegistry, create_tool_registry, CATEGORY_TOOLS

__all__ = [
    "BuilderError",
    "FileSystemError",
    "clean_build",
    "build_html",
    "minify_html",
    "FileIncluder",
    "build_css",
    "build_js",
    "build_images",
    "build_webp",
    "minify_svg",
    "build_svg_sprite",
    "assemble_sprite",
    "build_fonts",
    "build_favicons",
    "bust_cache",
    "content_hash",
    "publish_gh_pages",
    "ToolRegistry",
    "create_tool_registry",
    "CATEGORY_TOOLS",
]
