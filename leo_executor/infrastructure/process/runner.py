"""
Bounded subprocess runner.

Spawns exactly one external process per call, captures stdout and stderr,
and enforces a wall-clock timeout measured from spawn. A process that
outlives its timeout is killed and reaped; its partial output is dropped.
No retries happen here.
"""

import asyncio
import os
import signal
import time
from pathlib import Path
from typing import Dict, Optional, Sequence

from leo_executor.domain.value_objects import ProcessOutcome
from leo_executor.infrastructure.logging import get_logger
from leo_executor.shared.errors import ToolchainUnavailableError

logger = get_logger(__name__)

TIMEOUT_EXIT_CODE = 124


class ProcessRunner:
    """Runs one command at a time under a hard timeout."""

    def __init__(self, kill_grace_seconds: float = 5.0):
        """
        Args:
            kill_grace_seconds: How long to wait for a killed process to be reaped
        """
        self._kill_grace_seconds = kill_grace_seconds

    async def run(
        self,
        command: Sequence[str],
        timeout_ms: int,
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> ProcessOutcome:
        """
        Run a command and capture its output.

        Args:
            command: argv list; no shell is involved
            timeout_ms: Wall-clock bound from spawn, in milliseconds
            cwd: Working directory
            env: Extra environment variables layered over os.environ

        Returns:
            ProcessOutcome

        Raises:
            ToolchainUnavailableError: If the executable cannot be spawned
        """
        process_env = None
        if env:
            process_env = os.environ.copy()
            process_env.update(env)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(cwd) if cwd else None,
                env=process_env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise ToolchainUnavailableError(
                f"Cannot start '{command[0]}': {e}",
                details={"command": list(command)},
            ) from e

        start_time = time.perf_counter()
        logger.debug("Process spawned", command=list(command), pid=process.pid, timeout_ms=timeout_ms)

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(
                "Process killed after timeout",
                command=list(command),
                pid=process.pid,
                timeout_ms=timeout_ms,
            )
            return ProcessOutcome(
                exit_succeeded=False,
                stdout="",
                stderr="",
                killed_by_timeout=True,
                exit_code=TIMEOUT_EXIT_CODE,
                duration_ms=duration_ms,
            )
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "Process exited",
            command=list(command),
            exit_code=process.returncode,
            duration_ms=duration_ms,
        )
        return ProcessOutcome(
            exit_succeeded=process.returncode == 0,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            killed_by_timeout=False,
            exit_code=process.returncode,
            duration_ms=duration_ms,
        )

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        """Kill and reap a process that is still running."""
        if process.returncode is None:
            try:
                # Own session, so the whole group goes (leo spawns children)
                os.killpg(process.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
            except PermissionError:
                process.kill()
        try:
            await asyncio.wait_for(process.wait(), timeout=self._kill_grace_seconds)
        except asyncio.TimeoutError:
            logger.error("Killed process did not exit", pid=process.pid)
