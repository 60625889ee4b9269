"""
Rev Tool - Content-hash cache busting for the CSS and JS bundles

For each bundle:
    css/style.min.css -> css/style.min-<md5[:10]>.css
The original file is removed, every reference in the emitted HTML is
rewritten, and rev-manifest.json records the mapping.
"""
import hashlib
import json
import re
from pathlib import Path
from typing import Any, Dict

import config
from builders.schemas import AssetCategory, BuildMode, PathTable
from .common import FileSystemError, result, write_output

REVVED_CATEGORIES = (AssetCategory.STYLES, AssetCategory.SCRIPTS)


def content_hash(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()[:config.REV_HASH_LENGTH]


def revved_path(path: Path, digest: str) -> Path:
    """style.min.css + digest -> style.min-<digest>.css"""
    return path.with_name(f"{path.stem}-{digest}{path.suffix}")


def rewrite_references(text: str, manifest: Dict[str, str]) -> str:
    for original, revved in manifest.items():
        pattern = re.compile(r"(?<![\w.-])" + re.escape(original) + r"(?![\w.-])")
        text = pattern.sub(revved, text)
    return text


def bust_cache(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """
    Rename bundles by content hash and rewrite HTML references

    Must run after every producing builder has finished: the hash is taken
    from the final bundle bytes and every emitted page is rewritten.

    Args:
        table: Path table
        mode: Build mode

    Returns:
        Dictionary with written paths and the rev manifest
    """
    build_dir = table.build_path
    manifest: Dict[str, str] = {}
    outputs = []

    for category in REVVED_CATEGORIES:
        paths = table.lookup(category)
        bundle = table.output_path(category) / paths.output_filename
        if not bundle.exists():
            continue
        data = bundle.read_bytes()
        target = revved_path(bundle, content_hash(data))
        outputs.append(write_output(target, data))
        try:
            bundle.unlink()
        except OSError as e:
            raise FileSystemError(f"Cannot remove {bundle}: {e}") from e
        manifest[bundle.relative_to(build_dir).as_posix()] = target.relative_to(build_dir).as_posix()

    if manifest:
        for page in sorted(build_dir.rglob("*.html")):
            text = page.read_text(encoding="utf-8")
            rewritten = rewrite_references(text, manifest)
            if rewritten != text:
                outputs.append(write_output(page, rewritten))

    manifest_path = build_dir / config.REV_MANIFEST_FILENAME
    outputs.append(write_output(manifest_path, json.dumps(manifest, indent=2, sort_keys=True) + "\n"))

    return result(outputs, manifest=manifest)


__all__ = ["bust_cache", "content_hash", "revved_path", "rewrite_references"]
