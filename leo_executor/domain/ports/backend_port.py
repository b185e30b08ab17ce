"""
Execution Backend Port Interface

Defines the contract shared by the toolchain realizations.
This is an output port - implemented by infrastructure layer
(Leo CLI via subprocess, or an in-process library on a worker thread).
"""

from abc import ABC, abstractmethod
from typing import Sequence

from leo_executor.domain.entities import Workspace
from leo_executor.domain.value_objects import HealthStatus, ProcessOutcome


class IExecutionBackend(ABC):
    """
    Port interface for building and running a materialized program.

    Both operations return a ProcessOutcome; interpreting it is the
    coordinator's job.
    """

    name: str = "backend"

    @abstractmethod
    async def build(self, workspace: Workspace, timeout_ms: int) -> ProcessOutcome:
        """
        Compile the program in the workspace.

        Args:
            workspace: Materialized project
            timeout_ms: Wall-clock bound for the build

        Returns:
            ProcessOutcome of the build step
        """
        pass

    @abstractmethod
    async def run(
        self,
        workspace: Workspace,
        entry_point: str,
        inputs: Sequence[str],
        timeout_ms: int,
    ) -> ProcessOutcome:
        """
        Execute one transition with literal inputs.

        Args:
            workspace: Built project
            entry_point: Transition name
            inputs: Literal argument strings, in order
            timeout_ms: Wall-clock bound for the run

        Returns:
            ProcessOutcome of the run step
        """
        pass

    async def initialize(self) -> None:
        """
        One-time setup before the first run. No-op by default.

        Raises:
            ToolchainUnavailableError: If the toolchain cannot be prepared
        """
        return None

    def shutdown(self) -> None:
        """Release resources held by the backend. No-op by default."""
        return None

    @abstractmethod
    async def probe(self) -> HealthStatus:
        """
        Check whether the toolchain can currently be invoked.

        Returns:
            HealthStatus; never raises
        """
        pass
