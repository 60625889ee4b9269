"""
Path Schema - Asset categories and their source/output locations

The PathTable is the static registry every builder reads:
- AssetCategory: the fixed set of asset kinds
- GlobSet: include/exclude source patterns for one category
- CategoryPaths: GlobSet + output location
"""
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

import config
from utils.globbing import compile_glob, expand_braces, glob_base, normalize


class ConfigurationError(Exception):
    """Raised for an invalid path table, glob or entry point name"""
    pass


class AssetCategory(str, Enum):
    """Asset kinds handled by the pipeline"""
    MARKUP = "markup"
    STYLES = "styles"
    SCRIPTS = "scripts"
    IMAGES = "images"
    IMAGE_DERIVATIVES = "image_derivatives"
    SVG_SPRITE = "svg_sprite"
    FONTS = "fonts"
    FAVICONS = "favicons"


class GlobSet(BaseModel):
    """Ordered include/exclude glob patterns, relative to the project root"""
    model_config = ConfigDict(frozen=True)

    includes: List[str] = Field(..., description="Patterns selecting source files")
    excludes: List[str] = Field(default_factory=list, description="Patterns removed from the includes")

    @classmethod
    def from_patterns(cls, *patterns: str) -> "GlobSet":
        """Build from gulp-style patterns where a leading `!` marks an exclude"""
        includes = [p for p in patterns if not p.startswith("!")]
        excludes = [p[1:] for p in patterns if p.startswith("!")]
        return cls(includes=includes, excludes=excludes)

    @field_validator("includes")
    @classmethod
    def _non_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("GlobSet needs at least one include pattern")
        return [normalize(p) for p in value]

    @field_validator("excludes")
    @classmethod
    def _normalize_excludes(cls, value: List[str]) -> List[str]:
        return [normalize(p) for p in value]

    @model_validator(mode="after")
    def _compilable(self) -> "GlobSet":
        for pattern in self.includes + self.excludes:
            try:
                compile_glob(pattern)
            except ValueError as e:
                raise ValueError(str(e)) from e
        return self

    @property
    def patterns(self) -> List[str]:
        return self.includes + [f"!{p}" for p in self.excludes]

    @property
    def base(self) -> str:
        """Directory that output paths are computed relative to"""
        return glob_base(self.includes[0])

    def matches(self, relative_path: str) -> bool:
        path = normalize(relative_path)
        if not any(compile_glob(p).match(path) for p in self.includes):
            return False
        return not any(compile_glob(p).match(path) for p in self.excludes)

    def resolve(self, root: Path) -> List[Path]:
        """List matching files under root, sorted for deterministic builds"""
        root = Path(root)
        bases = {glob_base(p) for include in self.includes for p in expand_braces(include)}
        found = set()
        for base in bases:
            base_dir = root / base if base else root
            if not base_dir.is_dir():
                continue
            for path in base_dir.rglob("*"):
                if path.is_file() and self.matches(path.relative_to(root).as_posix()):
                    found.add(path)
        return sorted(found)

    def union(self, other: "GlobSet") -> "GlobSet":
        return GlobSet(
            includes=self.includes + [p for p in other.includes if p not in self.includes],
            excludes=self.excludes + [p for p in other.excludes if p not in self.excludes],
        )


class CategoryPaths(BaseModel):
    """Where one category reads from and writes to"""
    model_config = ConfigDict(frozen=True)

    category: AssetCategory
    globs: GlobSet
    output_dir: str = Field(..., description="Output directory relative to the project root")
    entry_point: Optional[str] = Field(None, description="Single compiled entry (styles, scripts)")
    output_filename: Optional[str] = Field(None, description="Fixed logical output name")


class PathTable(BaseModel):
    """Static mapping from asset category to source globs and output directory"""
    model_config = ConfigDict(frozen=True)

    root: Path
    src_dir: str = "src"
    build_dir: str = "build"
    include_root: str = "."
    categories: Dict[AssetCategory, CategoryPaths] = Field(default_factory=dict)

    @property
    def build_path(self) -> Path:
        return self.root / self.build_dir

    @property
    def src_path(self) -> Path:
        return self.root / self.src_dir

    def lookup(self, category: AssetCategory) -> CategoryPaths:
        """Get paths for a category"""
        if category not in self.categories:
            registered = ", ".join(c.value for c in self.categories)
            raise ConfigurationError(
                f"Asset category '{getattr(category, 'value', category)}' is not registered. "
                f"Registered: {registered}"
            )
        return self.categories[category]

    def output_path(self, category: AssetCategory) -> Path:
        return self.root / self.lookup(category).output_dir

    def sources(self, category: AssetCategory) -> List[Path]:
        return self.lookup(category).globs.resolve(self.root)


def default_path_table(root: Optional[Path] = None) -> PathTable:
    """
    Build the standard source/build layout

    src/{html,scss,js,img,fonts,favicon} -> build/{,css,js,img,fonts}
    """
    root = Path(root or config.BASE_DIR).resolve()
    src = config.SRC_PATH
    build = config.BUILD_PATH

    html, scss, js = f"{src}/html", f"{src}/scss", f"{src}/js"
    img, fonts, favicon = f"{src}/img", f"{src}/fonts", f"{src}/favicon"

    try:
        categories = {
            AssetCategory.MARKUP: CategoryPaths(
                category=AssetCategory.MARKUP,
                globs=GlobSet.from_patterns(f"{html}/**/*.html", f"!{html}/includes/**/*.html"),
                output_dir=build,
            ),
            AssetCategory.STYLES: CategoryPaths(
                category=AssetCategory.STYLES,
                globs=GlobSet.from_patterns(f"{scss}/**/*.scss"),
                output_dir=f"{build}/css",
                entry_point=f"{scss}/style.scss",
                output_filename=config.CSS_BUNDLE_FILENAME,
            ),
            AssetCategory.SCRIPTS: CategoryPaths(
                category=AssetCategory.SCRIPTS,
                globs=GlobSet.from_patterns(f"{js}/**/*.js"),
                output_dir=f"{build}/js",
                entry_point=f"{js}/main.js",
                output_filename=config.JS_BUNDLE_FILENAME,
            ),
            AssetCategory.IMAGES: CategoryPaths(
                category=AssetCategory.IMAGES,
                globs=GlobSet.from_patterns(f"{img}/**/*.{{jpg,jpeg,png,gif,svg}}"),
                output_dir=f"{build}/img",
            ),
            AssetCategory.IMAGE_DERIVATIVES: CategoryPaths(
                category=AssetCategory.IMAGE_DERIVATIVES,
                globs=GlobSet.from_patterns(f"{img}/**/*.{{jpg,jpeg,png}}"),
                output_dir=f"{build}/img",
            ),
            AssetCategory.SVG_SPRITE: CategoryPaths(
                category=AssetCategory.SVG_SPRITE,
                globs=GlobSet.from_patterns(f"{img}/**/icon-*.svg"),
                output_dir=f"{build}/img",
                output_filename=config.SVG_SPRITE_FILENAME,
            ),
            AssetCategory.FONTS: CategoryPaths(
                category=AssetCategory.FONTS,
                globs=GlobSet.from_patterns(f"{fonts}/**/*"),
                output_dir=f"{build}/fonts",
            ),
            AssetCategory.FAVICONS: CategoryPaths(
                category=AssetCategory.FAVICONS,
                globs=GlobSet.from_patterns(f"{favicon}/**/*"),
                output_dir=build,
            ),
        }
    except ValueError as e:
        raise ConfigurationError(f"Invalid path table: {e}") from e

    return PathTable(
        root=root,
        src_dir=src,
        build_dir=build,
        include_root=config.INCLUDE_ROOT,
        categories=categories,
    )


__all__ = [
    "AssetCategory",
    "GlobSet",
    "CategoryPaths",
    "PathTable",
    "ConfigurationError",
    "default_path_table",
]
