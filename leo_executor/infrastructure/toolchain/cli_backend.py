"""
Leo CLI backend.

Builds and runs a materialized project by shelling out to the `leo`
executable through ProcessRunner:

    leo build
    leo run <transition> <input> <input> ...

Each step is a separate process with its own timeout.
"""

import time
from typing import Optional, Sequence

from leo_executor.domain.entities import Workspace
from leo_executor.domain.ports import IExecutionBackend
from leo_executor.domain.value_objects import HealthStatus, ProcessOutcome
from leo_executor.infrastructure.logging import get_logger
from leo_executor.infrastructure.process import ProcessRunner
from leo_executor.shared.errors import ToolchainUnavailableError

logger = get_logger(__name__)

INSTALL_HINT = "Please install it from https://developer.aleo.org/leo/installation"


class LeoCliBackend(IExecutionBackend):
    """
    Executes programs with the Leo command-line toolchain.

    Implements IExecutionBackend.
    """

    name = "cli"

    def __init__(
        self,
        leo_binary: str = "leo",
        process_runner: Optional[ProcessRunner] = None,
        probe_timeout_ms: int = 5000,
    ):
        """
        Args:
            leo_binary: Executable name or path
            process_runner: Runner used for every invocation
            probe_timeout_ms: Timeout for `leo --version`
        """
        self.leo_binary = leo_binary
        self._runner = process_runner or ProcessRunner()
        self._probe_timeout_ms = probe_timeout_ms

    def build_command(self) -> list:
        return [self.leo_binary, "build"]

    def run_command(self, entry_point: str, inputs: Sequence[str]) -> list:
        # argv list: inputs are passed verbatim, never through a shell
        return [self.leo_binary, "run", entry_point, *inputs]

    async def build(self, workspace: Workspace, timeout_ms: int) -> ProcessOutcome:
        logger.info("Building program", workspace_id=workspace.workspace_id, program=workspace.program_name)
        return await self._runner.run(self.build_command(), timeout_ms, cwd=workspace.path)

    async def run(
        self,
        workspace: Workspace,
        entry_point: str,
        inputs: Sequence[str],
        timeout_ms: int,
    ) -> ProcessOutcome:
        logger.info(
            "Running transition",
            workspace_id=workspace.workspace_id,
            entry_point=entry_point,
            input_count=len(inputs),
        )
        return await self._runner.run(self.run_command(entry_point, inputs), timeout_ms, cwd=workspace.path)

    async def probe(self) -> HealthStatus:
        """Check `leo --version`; never raises."""
        try:
            outcome = await self._runner.run([self.leo_binary, "--version"], self._probe_timeout_ms)
        except ToolchainUnavailableError as e:
            logger.warning("Leo CLI not found", binary=self.leo_binary, error=e.message)
            return HealthStatus(
                available=False,
                message=f"Leo CLI is not installed. {INSTALL_HINT}",
                checked_at=time.monotonic(),
            )

        if not outcome.exit_succeeded:
            reason = "timed out" if outcome.killed_by_timeout else f"exited with {outcome.exit_code}"
            logger.warning("Leo CLI probe failed", binary=self.leo_binary, reason=reason)
            return HealthStatus(
                available=False,
                message=f"Leo CLI check {reason}. {INSTALL_HINT}",
                checked_at=time.monotonic(),
            )

        version = outcome.stdout.strip().splitlines()[0] if outcome.stdout.strip() else None
        return HealthStatus(
            available=True,
            message="Leo CLI is installed and ready",
            version=version,
            checked_at=time.monotonic(),
        )
