"""
Glob utilities

Source sets are written as project-relative glob patterns:
- `**` matches any number of directories (including none)
- `*` and `?` never cross a `/`
- `{a,b}` expands to alternatives

Patterns are expanded and compiled to anchored regexes.
"""
import re
from functools import lru_cache
from typing import List, Pattern

GLOB_CHARS = set("*?[{")


def expand_braces(pattern: str) -> List[str]:
    """Expand `{a,b}` groups (nested groups are expanded recursively)"""
    start = pattern.find("{")
    if start == -1:
        return [pattern]

    depth = 0
    for end in range(start, len(pattern)):
        char = pattern[end]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        raise ValueError(f"Unbalanced brace in glob: {pattern}")

    # Split the group body on top-level commas only
    body = pattern[start + 1:end]
    options, depth, current = [], 0, ""
    for char in body:
        if char == "," and depth == 0:
            options.append(current)
            current = ""
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current += char
    options.append(current)

    head, tail = pattern[:start], pattern[end + 1:]
    expanded = []
    for option in options:
        expanded.extend(expand_braces(head + option + tail))
    return expanded


def _translate(pattern: str) -> str:
    out = ""
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith("**/", i):
            out += "(?:.*/)?"
            i += 3
            continue
        if pattern.startswith("**", i):
            out += ".*"
            i += 2
            continue
        if char == "*":
            out += "[^/]*"
        elif char == "?":
            out += "[^/]"
        elif char == "[":
            close = pattern.find("]", i + 1)
            if close == -1:
                raise ValueError(f"Unbalanced bracket in glob: {pattern}")
            body = pattern[i + 1:close]
            if body.startswith("!"):
                body = "^" + body[1:]
            out += f"[{body}]"
            i = close + 1
            continue
        else:
            out += re.escape(char)
        i += 1
    return out


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> Pattern:
    """Compile a glob pattern (braces included) into one anchored regex"""
    alternatives = [_translate(normalize(p)) for p in expand_braces(pattern)]
    return re.compile("^(?:" + "|".join(alternatives) + ")$")


def normalize(path: str) -> str:
    """Normalize to a posix, `./`-free relative form"""
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def glob_base(pattern: str) -> str:
    """Return the leading directory of a pattern that contains no glob characters"""
    parts = normalize(pattern).split("/")
    base = []
    for part in parts[:-1]:
        if GLOB_CHARS & set(part):
            break
        base.append(part)
    return "/".join(base)
