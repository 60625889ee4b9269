"""
Shared pieces for the builder tools

Every tool has the same shape:

    build_x(table: PathTable, mode: BuildMode) -> {"status", "outputs", "skipped"}

and raises BuilderError when a source is malformed or an external tool
rejects it.
"""
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from builders.schemas import AssetCategory, PathTable
from utils.files import atomic_write


class BuilderError(Exception):
    """Raised when a builder cannot process its sources"""

    def __init__(self, message: str, category: Optional[AssetCategory] = None, source: Optional[Path] = None):
        super().__init__(message)
        self.category = category
        self.source = source


class FileSystemError(Exception):
    """Raised when the build directory cannot be cleaned or written"""
    pass


def mirror_path(table: PathTable, category: AssetCategory, source: Path, suffix: Optional[str] = None) -> Path:
    """Map a source file to its output path, keeping its path below the glob base"""
    paths = table.lookup(category)
    relative = Path(source).relative_to(table.root / paths.globs.base)
    if suffix is not None:
        relative = relative.with_suffix(suffix)
    return table.output_path(category) / relative


def write_output(dest: Path, data: Union[bytes, str]) -> Path:
    """Atomically write one output file"""
    try:
        return atomic_write(dest, data)
    except OSError as e:
        raise FileSystemError(f"Cannot write {dest}: {e}") from e


def copy_file(source: Path, dest: Path) -> Path:
    """Copy preserving the source modification time"""
    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.copy2(source, dest)
    except OSError as e:
        raise FileSystemError(f"Cannot write {dest}: {e}") from e
    return dest


def result(outputs: List[Path], skipped: Optional[List[Path]] = None, **extra: Any) -> Dict[str, Any]:
    return {
        "status": "success",
        "outputs": [str(p) for p in outputs],
        "skipped": [str(p) for p in skipped or []],
        **extra,
    }


__all__ = ["BuilderError", "FileSystemError", "mirror_path", "write_output", "copy_file", "result"]
