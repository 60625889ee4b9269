"""
File helpers shared by the asset builders
"""
import os
import tempfile
from pathlib import Path
from typing import Union


def atomic_write(dest: Path, data: Union[bytes, str], encoding: str = "utf-8") -> Path:
    """
    Write a file by replacing it in one step

    The content goes to a temp file in the destination directory first, so a
    reader (or a failed build) never sees a half-written output.
    """
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, str):
        data = data.encode(encoding)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", dir=dest.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, dest)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return dest


def is_newer(source: Path, output: Path) -> bool:
    """True when the output is missing or older than its source"""
    if not output.exists():
        return True
    return source.stat().st_mtime > output.stat().st_mtime
