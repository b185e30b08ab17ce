"""
In-process library backend.

Runs a program through a library entry point instead of the Leo CLI.
There is no build step and no external process: each call runs on a
worker thread so the event loop stays responsive.

The program runner is any callable with the shape

    runner(program: str, function: str, inputs: list[str]) -> list[str]

An optional initializer (e.g. a thread-pool setup) runs exactly once per
process, awaited by the first request that needs it.

At most max_workers calls run at once. A call that exceeds its timeout
cannot be stopped, so its thread is written off until it returns; the
pool holds max_abandoned spare threads for such calls, and runs are
refused while all of them are taken.
"""

import asyncio
import importlib
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from leo_executor.domain.entities import Workspace
from leo_executor.domain.ports import IExecutionBackend
from leo_executor.domain.value_objects import HealthStatus, ProcessOutcome
from leo_executor.infrastructure.logging import get_logger
from leo_executor.shared.errors import ToolchainUnavailableError

logger = get_logger(__name__)

ProgramRunner = Callable[[str, str, List[str]], Sequence[str]]


def import_symbol(path: str) -> Callable:
    """
    Import ``package.module:attribute`` (or ``package.module.attribute``).

    Raises:
        ToolchainUnavailableError: If the path cannot be resolved
    """
    if ":" in path:
        module_path, _, attr = path.partition(":")
    else:
        module_path, _, attr = path.rpartition(".")
    if not module_path or not attr:
        raise ToolchainUnavailableError(f"Invalid entry point '{path}'")
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ToolchainUnavailableError(f"Cannot import '{module_path}': {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise ToolchainUnavailableError(f"'{path}' is not importable") from e


class LibraryBackend(IExecutionBackend):
    """
    Executes programs with an in-process library on a thread pool.

    Implements IExecutionBackend.
    """

    name = "library"

    def __init__(
        self,
        program_runner: Optional[ProgramRunner] = None,
        initializer: Optional[Callable[[], None]] = None,
        entry_point: Optional[str] = None,
        initializer_path: Optional[str] = None,
        max_workers: int = 2,
        max_abandoned: int = 8,
    ):
        """
        Args:
            program_runner: Callable that executes a program
            initializer: One-time setup callable
            entry_point: 'module:callable' resolved lazily when program_runner is None
            initializer_path: 'module:callable' resolved lazily when initializer is None
            max_workers: Concurrent calls
            max_abandoned: Timed-out calls tolerated while still running
        """
        self._program_runner = program_runner
        self._initializer = initializer
        self._entry_point = entry_point
        self._initializer_path = initializer_path
        self._max_abandoned = max_abandoned
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers + max_abandoned, thread_name_prefix="leo-library"
        )
        self._slots = asyncio.Semaphore(max_workers)
        self._abandoned = 0
        self._abandoned_lock = threading.Lock()
        self._init_lock = asyncio.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def ensure_initialized(self) -> None:
        """
        Resolve the runner and run the initializer once per process.

        Concurrent first callers wait on the same lock; a failed
        initialization is retried by the next caller.

        Raises:
            ToolchainUnavailableError: If the library cannot be loaded
        """
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            if self._program_runner is None:
                if not self._entry_point:
                    raise ToolchainUnavailableError("No library entry point configured")
                self._program_runner = import_symbol(self._entry_point)
            if self._initializer is None and self._initializer_path:
                self._initializer = import_symbol(self._initializer_path)

            if self._initializer is not None:
                logger.info("Initializing execution library")
                loop = asyncio.get_running_loop()
                try:
                    await loop.run_in_executor(self._executor, self._initializer)
                except Exception as e:
                    raise ToolchainUnavailableError(f"Library initialization failed: {e}") from e
            self._initialized = True
            logger.info("Execution library ready")

    async def build(self, workspace: Workspace, timeout_ms: int) -> ProcessOutcome:
        # The library compiles as part of run()
        return ProcessOutcome(exit_succeeded=True, stdout="", stderr="", exit_code=0)

    async def run(
        self,
        workspace: Workspace,
        entry_point: str,
        inputs: Sequence[str],
        timeout_ms: int,
    ) -> ProcessOutcome:
        await self.ensure_initialized()
        program = await asyncio.to_thread(workspace.source_path.read_text, encoding="utf-8")

        # Queueing for a worker does not count against the timeout
        async with self._slots:
            if self.abandoned_count >= self._max_abandoned:
                raise ToolchainUnavailableError(
                    "Execution library is saturated by timed-out calls that are still running"
                )
            logger.info("Running transition in-process", entry_point=entry_point, input_count=len(inputs))
            start_time = time.perf_counter()
            call = self._executor.submit(self._program_runner, program, entry_point, list(inputs))
            try:
                outputs = await asyncio.wait_for(asyncio.wrap_future(call), timeout=timeout_ms / 1000)
            except asyncio.TimeoutError:
                self._abandon(call)
                logger.warning(
                    "Library call exceeded timeout",
                    entry_point=entry_point,
                    timeout_ms=timeout_ms,
                    abandoned=self.abandoned_count,
                )
                return ProcessOutcome(
                    exit_succeeded=False,
                    stdout="",
                    stderr="",
                    killed_by_timeout=True,
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                )
            except asyncio.CancelledError:
                self._abandon(call)
                raise
            except Exception as e:
                logger.info("Library call failed", entry_point=entry_point, error=str(e))
                return ProcessOutcome(
                    exit_succeeded=False,
                    stdout="",
                    stderr=str(e) or type(e).__name__,
                    exit_code=1,
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                )

        values = tuple(str(value) for value in outputs)
        return ProcessOutcome(
            exit_succeeded=True,
            stdout="\n".join(values),
            stderr="",
            exit_code=0,
            duration_ms=(time.perf_counter() - start_time) * 1000,
            outputs=values,
        )

    @property
    def abandoned_count(self) -> int:
        """Timed-out calls whose worker threads have not returned yet."""
        with self._abandoned_lock:
            return self._abandoned

    def _abandon(self, call: Future) -> None:
        # A thread cannot be killed; it keeps its reserved slot until it returns
        with self._abandoned_lock:
            self._abandoned += 1
        call.add_done_callback(self._release_abandoned)

    def _release_abandoned(self, call: Future) -> None:
        with self._abandoned_lock:
            self._abandoned -= 1
            remaining = self._abandoned
        logger.info("Abandoned library call returned", abandoned=remaining)

    async def probe(self) -> HealthStatus:
        """Available once the library loads and initializes; never raises."""
        try:
            await self.ensure_initialized()
        except ToolchainUnavailableError as e:
            return HealthStatus(available=False, message=e.message, checked_at=time.monotonic())
        return HealthStatus(
            available=True,
            message="Execution library is loaded and ready",
            checked_at=time.monotonic(),
        )

    async def initialize(self) -> None:
        await self.ensure_initialized()

    def shutdown(self) -> None:
        """Release worker threads."""
        self._executor.shutdown(wait=False, cancel_futures=True)
