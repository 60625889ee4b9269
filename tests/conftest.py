"""
Shared fixtures: throwaway project roots with the standard src/ layout
"""
import shutil
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from builders.schemas import default_path_table


@pytest.fixture
def temp_dir():
    """Create temporary directory"""
    temp = Path(tempfile.mkdtemp()).resolve()
    yield temp
    if temp.exists():
        shutil.rmtree(temp)


@pytest.fixture
def write_file(temp_dir):
    """Write a text (or bytes) file below the temp root, creating parents"""
    def write(relative: str, content="") -> Path:
        path = temp_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path
    return write


@pytest.fixture
def write_image(temp_dir):
    """Write a small raster image below the temp root"""
    def write(relative: str, size=(8, 8), color=(200, 30, 30)) -> Path:
        path = temp_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        mode = "RGBA" if path.suffix.lower() == ".png" else "RGB"
        fill = color + (255,) if mode == "RGBA" else color
        Image.new(mode, size, fill).save(path)
        return path
    return write


@pytest.fixture
def table(temp_dir):
    """Standard path table rooted at the temp directory"""
    return default_path_table(temp_dir)
