"""
Routers package
FastAPI route handlers for the dev server
"""
from . import livereload

__all__ = [
    "livereload",
]
