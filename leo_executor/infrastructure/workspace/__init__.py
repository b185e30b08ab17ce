"""
Workspace Infrastructure

Per-request disposable Leo projects.
"""

from .manager import WorkspaceManager

__all__ = ["WorkspaceManager"]
