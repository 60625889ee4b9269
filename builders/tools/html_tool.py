"""
HTML Tool - Resolves @@include markers and minifies pages

Template syntax:
    @@include('includes/header.html')
    @@include('includes/card.html', {"title": "Hello"})
    @@title                      (context variable inside an included file)

Includes resolve against the include root (the project root by default),
then against the including file's directory. Files under the excluded
include-only globs are never emitted as pages.
"""
import json
import re
from pathlib import Path
from typing import Any, Dict, List

from builders.schemas import AssetCategory, BuildMode, PathTable
from .common import BuilderError, mirror_path, result, write_output

INCLUDE_MARKER = "@@include("
MAX_INCLUDE_DEPTH = 32

# Comments and pre/textarea/script/style blocks, in one left-to-right pass
TOKEN_RE = re.compile(r"<!--.*?-->|<(pre|textarea|script|style)\b[^>]*>.*?</\1\s*>", re.I | re.S)
WHITESPACE_RE = re.compile(r"\s+")
VARIABLE_RE = re.compile(r"@@([A-Za-z_][\w.]*)")


class FileIncluder:
    """Expands @@include directives, recursively"""

    def __init__(self, include_root: Path):
        self.include_root = Path(include_root)
        self._decoder = json.JSONDecoder()

    def render(self, source: Path) -> str:
        source = Path(source)
        text = self._read(source)
        return self._expand(text, source, context={}, stack=[source.resolve()])

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise BuilderError(f"{path} is not valid UTF-8", AssetCategory.MARKUP, path) from e

    def _resolve(self, name: str, current: Path) -> Path:
        for candidate in (self.include_root / name, current.parent / name):
            if candidate.is_file():
                return candidate
        raise BuilderError(
            f"Include not found: '{name}' (from {current.name})",
            AssetCategory.MARKUP,
            current,
        )

    def _expand(self, text: str, current: Path, context: Dict[str, Any], stack: List[Path]) -> str:
        if len(stack) > MAX_INCLUDE_DEPTH:
            raise BuilderError(f"Include depth exceeded in {current}", AssetCategory.MARKUP, current)

        out = []
        pos = 0
        while True:
            start = text.find(INCLUDE_MARKER, pos)
            if start == -1:
                out.append(text[pos:])
                break
            out.append(text[pos:start])
            name, include_context, end = self._parse_directive(text, start + len(INCLUDE_MARKER), current)

            target = self._resolve(name, current)
            resolved = target.resolve()
            if resolved in stack:
                chain = " -> ".join(p.name for p in stack + [resolved])
                raise BuilderError(f"Circular include: {chain}", AssetCategory.MARKUP, current)

            merged = {**context, **include_context}
            body = self._expand(self._read(target), target, merged, stack + [resolved])
            out.append(self._substitute(body, merged))
            pos = end

        return "".join(out)

    def _parse_directive(self, text: str, pos: int, current: Path):
        """Parse `'name'[, {json}])` starting right after `@@include(`"""
        def fail(reason: str):
            line = text.count("\n", 0, pos) + 1
            raise BuilderError(
                f"Malformed @@include in {current.name}:{line}: {reason}",
                AssetCategory.MARKUP,
                current,
            )

        pos = self._skip_ws(text, pos)
        if pos >= len(text) or text[pos] not in "'\"":
            fail("expected a quoted file name")
        quote = text[pos]
        close = text.find(quote, pos + 1)
        if close == -1:
            fail("unterminated file name")
        name = text[pos + 1:close]
        pos = self._skip_ws(text, close + 1)

        context: Dict[str, Any] = {}
        if pos < len(text) and text[pos] == ",":
            pos = self._skip_ws(text, pos + 1)
            try:
                context, pos = self._decoder.raw_decode(text, pos)
            except json.JSONDecodeError as e:
                fail(f"invalid context ({e.msg})")
            if not isinstance(context, dict):
                fail("context must be a JSON object")
            pos = self._skip_ws(text, pos)

        if pos >= len(text) or text[pos] != ")":
            fail("expected ')'")
        return name, context, pos + 1

    @staticmethod
    def _skip_ws(text: str, pos: int) -> int:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        return pos

    @staticmethod
    def _substitute(text: str, context: Dict[str, Any]) -> str:
        if not context:
            return text

        def lookup(match: re.Match) -> str:
            value: Any = context
            for key in match.group(1).split("."):
                if not isinstance(value, dict) or key not in value:
                    return match.group(0)
                value = value[key]
            return str(value)

        return VARIABLE_RE.sub(lookup, text)


def minify_html(content: str) -> str:
    """
    Remove comments and collapse whitespace runs to a single space

    Whitespace is collapsed conservatively (never removed entirely) and the
    contents of pre/textarea/script/style blocks are left as they are.
    """
    pieces = []
    text = []
    pos = 0
    for match in TOKEN_RE.finditer(content):
        text.append(content[pos:match.start()])
        pos = match.end()
        if match.group(1) is None:
            continue
        pieces.append(WHITESPACE_RE.sub(" ", "".join(text)))
        pieces.append(match.group(0))
        text = []
    text.append(content[pos:])
    pieces.append(WHITESPACE_RE.sub(" ", "".join(text)))
    return "".join(pieces).strip()


def build_html(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """
    Build every page: resolve includes, minify, write to the build root

    Args:
        table: Path table
        mode: Build mode (pages are minified in both modes)

    Returns:
        Dictionary with written page paths
    """
    includer = FileIncluder(table.root / table.include_root)
    # nothing is written unless every page renders
    pages = [
        (mirror_path(table, AssetCategory.MARKUP, source), minify_html(includer.render(source)))
        for source in table.sources(AssetCategory.MARKUP)
    ]
    return result([write_output(target, page) for target, page in pages])


__all__ = ["build_html", "minify_html", "FileIncluder"]
