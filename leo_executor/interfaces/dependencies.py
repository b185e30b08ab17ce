"""
Service wiring.

Builds the coordinator and its collaborators from settings. Shared by
the HTTP app and the message-passing worker.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from leo_executor.application.commands.execute_code import ExecuteCodeCommand
from leo_executor.application.services.health_service import HealthCache
from leo_executor.domain.ports import IExecutionBackend
from leo_executor.infrastructure.config import Settings
from leo_executor.infrastructure.toolchain import create_backend
from leo_executor.infrastructure.workspace import WorkspaceManager


@dataclass
class ExecutorServices:
    """Everything one deployment needs, owned by its construction context."""

    settings: Settings
    backend: IExecutionBackend
    health_cache: HealthCache
    workspace_manager: WorkspaceManager
    execute_command: ExecuteCodeCommand


def build_services(
    settings: Settings,
    backend: Optional[IExecutionBackend] = None,
) -> ExecutorServices:
    """
    Wire a coordinator for the configured backend.

    Args:
        settings: Application settings
        backend: Override for the configured backend (tests, embedding)
    """
    backend = backend or create_backend(settings)
    health_cache = HealthCache(probe=backend.probe, ttl_seconds=settings.health_ttl_seconds)
    workspace_manager = WorkspaceManager(
        root=Path(settings.workspace_root) if settings.workspace_root else None,
        env_vars={
            "NETWORK": settings.network,
            "PRIVATE_KEY": settings.private_key,
            "ENDPOINT": settings.endpoint,
        },
    )
    execute_command = ExecuteCodeCommand(
        backend=backend,
        workspace_port=workspace_manager,
        health_port=health_cache,
        max_error_chars=settings.max_error_chars,
    )
    return ExecutorServices(
        settings=settings,
        backend=backend,
        health_cache=health_cache,
        workspace_manager=workspace_manager,
        execute_command=execute_command,
    )
