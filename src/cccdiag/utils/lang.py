"""
Source-file detection: decides which files the diagnostician will validate.
"""
from pathlib import Path

# C and C++ sources and headers
SUPPORTED_EXTENSIONS = {".c", ".h", ".cpp", ".cc", ".cxx", ".hpp", ".hh", ".C"}


def is_supported(file_path: str) -> bool:
    """Return True if the file extension is supported."""
    return Path(file_path).suffix in SUPPORTED_EXTENSIONS
