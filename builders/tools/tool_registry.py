"""
Tool Registry - Central registry for all available build tools

This module defines all tools available to the Executor.
Each tool is a callable `tool(table, mode)` that the Task DAG names.

Tool Design Principles:
1. Tools are deterministic - same sources and mode always produce the same bytes
2. Tools only write below their category's output directory
3. Tools are dumb - ordering lives in the Planner, not here
4. Tools report what they did - written paths, skipped paths
"""
from typing import Any, Callable, Dict, List, Optional

from builders.schemas import AssetCategory, BuildMode, PathTable
from .clean_tool import clean_build
from .copy_tool import build_favicons, build_fonts
from .css_tool import build_css
from .html_tool import build_html
from .image_tool import build_images, build_webp
from .js_tool import build_js
from .publish_tool import publish_gh_pages
from .rev_tool import bust_cache
from .sprite_tool import build_svg_sprite

# Tool name that builds each category
CATEGORY_TOOLS: Dict[AssetCategory, str] = {
    AssetCategory.SVG_SPRITE: "build_svg_sprite",
    AssetCategory.MARKUP: "build_html",
    AssetCategory.STYLES: "build_css",
    AssetCategory.SCRIPTS: "build_js",
    AssetCategory.IMAGES: "build_images",
    AssetCategory.IMAGE_DERIVATIVES: "build_webp",
    AssetCategory.FONTS: "build_fonts",
    AssetCategory.FAVICONS: "build_favicons",
}


class ToolRegistry:
    """
    Central registry for all available tools

    The Planner uses this to understand what tools are available.
    The Executor uses this to invoke tools.
    """

    def __init__(self, table: PathTable):
        """
        Initialize tool registry

        Args:
            table: Path table every tool reads from
        """
        self.table = table

        # Build registry
        self._registry: Dict[str, Callable] = {}
        self._register_tools()

    def _register_tools(self):
        """Register all available tools"""

        # Build directory
        self.register("clean", clean_build, description="Remove and recreate the build directory")

        # Asset builders
        self.register(
            "build_svg_sprite", build_svg_sprite,
            description="Combine icon-*.svg files into img/sprite.svg",
            category=AssetCategory.SVG_SPRITE,
        )
        self.register(
            "build_html", build_html,
            description="Resolve @@include markers and minify pages",
            category=AssetCategory.MARKUP,
        )
        self.register(
            "build_css", build_css,
            description="Compile SCSS to css/style.min.css",
            category=AssetCategory.STYLES,
        )
        self.register(
            "build_js", build_js,
            description="Bundle scripts to js/script.min.js",
            category=AssetCategory.SCRIPTS,
        )
        self.register(
            "build_images", build_images,
            description="Copy or recompress images",
            category=AssetCategory.IMAGES,
        )
        self.register(
            "build_webp", build_webp,
            description="Generate WebP derivatives",
            category=AssetCategory.IMAGE_DERIVATIVES,
        )
        self.register(
            "build_fonts", build_fonts,
            description="Copy fonts",
            category=AssetCategory.FONTS,
        )
        self.register(
            "build_favicons", build_favicons,
            description="Copy favicons to the build root",
            category=AssetCategory.FAVICONS,
        )

        # Post-processing
        self.register("bust_cache", bust_cache, description="Content-hash bundle names and rewrite references")
        self.register("publish_gh_pages", publish_gh_pages, description="Publish the build to GitHub Pages")

    def register(
        self,
        name: str,
        func: Callable[[PathTable, BuildMode], Dict[str, Any]],
        description: str = "",
        category: Optional[AssetCategory] = None,
    ):
        """Register (or replace) a tool"""
        self._registry[name] = self._wrap_tool(func, description, category)

    def _wrap_tool(self, func: Callable, description: str, category: Optional[AssetCategory]) -> Callable:
        """
        Wrap tool function with metadata

        The wrapper binds the path table, so the Executor only passes the mode.
        """
        def wrapper(mode: BuildMode) -> Dict[str, Any]:
            return func(self.table, mode)

        # Attach metadata
        wrapper.__doc__ = description
        wrapper.__tool_category__ = category
        wrapper.__wrapped__ = func
        wrapper.__name__ = getattr(func, "__name__", "tool")

        return wrapper

    def get_tool(self, tool_name: str) -> Callable:
        """Get tool by name"""
        if tool_name not in self._registry:
            available = ", ".join(self._registry.keys())
            raise ValueError(f"Tool '{tool_name}' not found. Available tools: {available}")
        return self._registry[tool_name]

    def get_all_tools(self) -> Dict[str, Callable]:
        """Get all registered tools"""
        return self._registry.copy()

    def list_tools(self) -> List[str]:
        """List all available tool names"""
        return list(self._registry.keys())

    def get_tool_info(self, tool_name: str) -> Dict[str, Any]:
        """Get metadata about a tool"""
        tool = self.get_tool(tool_name)
        category = getattr(tool, "__tool_category__", None)
        return {
            "name": tool_name,
            "description": tool.__doc__,
            "category": category.value if category else None,
        }


def create_tool_registry(table: PathTable) -> Dict[str, Callable]:
    """
    Factory function to create a tool registry

    This is the main entry point for the Executor.

    Args:
        table: Path table for the project

    Returns:
        Dictionary mapping tool names to callables taking a BuildMode
    """
    registry = ToolRegistry(table)
    return registry.get_all_tools()


__all__ = ["ToolRegistry", "create_tool_registry", "CATEGORY_TOOLS"]
