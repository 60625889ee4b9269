"""
Utils package
Utility functions (glob matching, atomic file writes)
"""
from .globbing import compile_glob, expand_braces, glob_base, normalize
from .files import atomic_write, is_newer

__all__ = [
    # Globbing
    "compile_glob",
    "expand_braces",
    "glob_base",
    "normalize",
    # Files
    "atomic_write",
    "is_newer",
]
