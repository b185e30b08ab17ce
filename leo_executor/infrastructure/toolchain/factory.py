"""
Backend selection.

The only place that decides between the CLI and library backends.
"""

from leo_executor.domain.ports import IExecutionBackend
from leo_executor.infrastructure.config import Settings
from leo_executor.infrastructure.process import ProcessRunner
from leo_executor.infrastructure.toolchain.cli_backend import LeoCliBackend
from leo_executor.infrastructure.toolchain.library_backend import LibraryBackend


def create_backend(settings: Settings) -> IExecutionBackend:
    """
    Build the backend named by settings.backend.

    Args:
        settings: Application settings

    Returns:
        Configured IExecutionBackend
    """
    if settings.backend == "library":
        return LibraryBackend(
            entry_point=settings.library_entry_point,
            initializer_path=settings.library_initializer,
            max_workers=settings.worker_threads,
            max_abandoned=settings.abandoned_threads,
        )
    return LeoCliBackend(
        leo_binary=settings.leo_binary,
        process_runner=ProcessRunner(),
        probe_timeout_ms=settings.probe_timeout_ms,
    )
