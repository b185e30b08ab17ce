"""
Disposable workspace manager.

Each execution gets its own uniquely named Leo project directory:

    <root>/leo_temp_<uuid>/
        program.json
        .env
        src/main.leo

Workspaces are never shared or reused, so concurrent requests need no
locking. Teardown is guaranteed by the `workspace()` async context
manager and never raises.
"""

import asyncio
import json
import shutil
import tempfile
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Optional

from leo_executor.domain.entities import Workspace
from leo_executor.domain.ports import IWorkspacePort
from leo_executor.infrastructure.logging import get_logger
from leo_executor.shared.errors import WorkspaceError

logger = get_logger(__name__)

WORKSPACE_PREFIX = "leo_temp_"


class WorkspaceManager(IWorkspacePort):
    """
    Creates and removes per-request Leo projects.

    Implements IWorkspacePort. Blocking filesystem calls run in a worker
    thread so the event loop keeps serving other requests.
    """

    def __init__(
        self,
        root: Optional[Path] = None,
        env_vars: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            root: Parent directory for workspaces (system temp dir when None)
            env_vars: Key/values written to each workspace's .env file
        """
        self.root = Path(root) if root else Path(tempfile.gettempdir())
        self.env_vars = dict(env_vars or {})

    @staticmethod
    def build_manifest(program_name: str) -> Dict[str, str]:
        return {
            "program": f"{program_name}.aleo",
            "version": "0.0.0",
            "description": "Temporary Leo program for Exploring Leo",
            "license": "MIT",
        }

    async def create(self, source: str, program_name: str) -> Workspace:
        """
        Materialize a fresh workspace for one execution.

        Raises:
            WorkspaceError: If the directory layout cannot be written
        """
        workspace_id = f"{WORKSPACE_PREFIX}{uuid.uuid4().hex}"
        workspace = Workspace(
            workspace_id=workspace_id,
            path=self.root / workspace_id,
            program_name=program_name,
            manifest=self.build_manifest(program_name),
        )

        try:
            await asyncio.to_thread(self._write_layout, workspace, source)
        except OSError as e:
            # Don't leave a half-written directory behind
            await asyncio.to_thread(shutil.rmtree, workspace.path, True)
            raise WorkspaceError(
                f"Failed to create workspace: {e}",
                details={"workspace_id": workspace_id},
            ) from e

        logger.debug("Workspace created", workspace_id=workspace_id, path=str(workspace.path))
        return workspace

    def _write_layout(self, workspace: Workspace, source: str) -> None:
        # exist_ok=False: a collision would mean sharing a workspace
        workspace.path.mkdir(parents=True, exist_ok=False)
        workspace.source_path.parent.mkdir()
        workspace.manifest_path.write_text(json.dumps(workspace.manifest, indent=2), encoding="utf-8")
        env_text = "".join(f"{key}={value}\n" for key, value in self.env_vars.items())
        (workspace.path / ".env").write_text(env_text, encoding="utf-8")
        workspace.source_path.write_text(source, encoding="utf-8")

    async def destroy(self, workspace: Workspace) -> None:
        """
        Recursively remove a workspace. Logged, never raised.
        """
        if workspace.destroyed:
            return
        workspace.destroyed = True
        try:
            await asyncio.to_thread(shutil.rmtree, workspace.path)
            logger.debug("Workspace removed", workspace_id=workspace.workspace_id)
        except FileNotFoundError:
            logger.debug("Workspace already gone", workspace_id=workspace.workspace_id)
        except Exception as e:
            logger.warning(
                "Failed to remove workspace",
                workspace_id=workspace.workspace_id,
                path=str(workspace.path),
                error=str(e),
            )

    @asynccontextmanager
    async def workspace(self, source: str, program_name: str) -> AsyncIterator[Workspace]:
        """
        Scoped workspace: destroy() runs exactly once on every exit path,
        including exceptions and cancellation.
        """
        workspace = await self.create(source, program_name)
        try:
            yield workspace
        finally:
            await asyncio.shield(self.destroy(workspace))
