"""
Workspace Port Interface

Defines the contract for materializing and tearing down per-request
workspaces.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager

from leo_executor.domain.entities import Workspace


class IWorkspacePort(ABC):
    """Port interface for disposable workspace management."""

    @abstractmethod
    async def create(self, source: str, program_name: str) -> Workspace:
        """
        Materialize a fresh, uniquely named workspace.

        Raises:
            WorkspaceError: If the layout cannot be written
        """
        pass

    @abstractmethod
    async def destroy(self, workspace: Workspace) -> None:
        """
        Remove the workspace. Failures are logged, never raised.
        """
        pass

    @abstractmethod
    def workspace(self, source: str, program_name: str) -> AsyncContextManager[Workspace]:
        """
        Scoped acquisition: destroy runs exactly once on every exit path.
        """
        pass
