"""
Toolchain Infrastructure

Leo CLI and in-process library backends plus output normalization.
"""

from .cli_backend import LeoCliBackend
from .factory import create_backend
from .library_backend import LibraryBackend

__all__ = ["LeoCliBackend", "LibraryBackend", "create_backend"]
