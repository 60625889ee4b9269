"""
Clean Tool - Removes and recreates the build directory
"""
import shutil
from typing import Any, Dict

from builders.schemas import BuildMode, PathTable
from .common import FileSystemError


def clean_build(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """
    Remove the build directory and create it empty

    Args:
        table: Path table (provides the build directory)
        mode: Build mode (unused, kept for the common tool signature)

    Returns:
        Dictionary with the recreated build path
    """
    build_dir = table.build_path
    if build_dir.resolve() == table.root.resolve():
        raise FileSystemError(f"Refusing to clean the project root: {build_dir}")

    try:
        if build_dir.exists():
            shutil.rmtree(build_dir)
        build_dir.mkdir(parents=True)
    except OSError as e:
        raise FileSystemError(f"Cannot clean {build_dir}: {e}") from e

    return {
        "status": "success",
        "outputs": [],
        "skipped": [],
        "build_path": str(build_dir),
    }


__all__ = ["clean_build"]
