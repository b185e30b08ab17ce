"""
Execution Entities

Core domain entities tracking one request and its scratch workspace.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from leo_executor.domain.value_objects import ExecutionOutcome, ExecutionPhase
from leo_executor.shared.errors import InvalidPhaseTransitionError

_ALLOWED_TRANSITIONS = {
    ExecutionPhase.VALIDATING: {ExecutionPhase.BUILDING, ExecutionPhase.ERROR},
    ExecutionPhase.BUILDING: {ExecutionPhase.RUNNING, ExecutionPhase.ERROR},
    ExecutionPhase.RUNNING: {ExecutionPhase.SUCCESS, ExecutionPhase.ERROR},
    ExecutionPhase.SUCCESS: set(),
    ExecutionPhase.ERROR: set(),
}


@dataclass
class Execution:
    """
    Represents a single execution request moving through the state machine.

    validating -> building -> running -> success, and any non-terminal
    phase -> error. Every execution ends in exactly one terminal phase.
    """

    execution_id: str
    phase: ExecutionPhase = ExecutionPhase.VALIDATING
    outcome: Optional[ExecutionOutcome] = None
    started_at: float = field(default_factory=time.perf_counter)
    completed_at: Optional[float] = None

    def _transition(self, target: ExecutionPhase) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.phase]:
            raise InvalidPhaseTransitionError(
                f"Cannot move execution from {self.phase.value} to {target.value}",
                details={"execution_id": self.execution_id},
            )
        self.phase = target

    def mark_building(self) -> None:
        """Mark the execution as building."""
        self._transition(ExecutionPhase.BUILDING)

    def mark_running(self) -> None:
        """Mark the execution as running."""
        self._transition(ExecutionPhase.RUNNING)

    def mark_succeeded(self, outcome: ExecutionOutcome) -> None:
        """Mark the execution as successful with its outcome."""
        self._transition(ExecutionPhase.SUCCESS)
        self.outcome = outcome
        self.completed_at = time.perf_counter()

    def mark_failed(self, outcome: ExecutionOutcome) -> None:
        """Mark the execution as failed with its outcome."""
        self._transition(ExecutionPhase.ERROR)
        self.outcome = outcome
        self.completed_at = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since validation started (or until completion)."""
        end = self.completed_at if self.completed_at is not None else time.perf_counter()
        return (end - self.started_at) * 1000


@dataclass
class Workspace:
    """
    A disposable project directory owned by exactly one execution.

    Attributes:
        workspace_id: Unique identifier, also the directory name
        path: Root of the materialized project
        program_name: Program the manifest describes
        manifest: Contents written to program.json
        destroyed: Set once teardown has been attempted
    """

    workspace_id: str
    path: Path
    program_name: str
    manifest: Dict[str, Any] = field(default_factory=dict)
    destroyed: bool = False

    @property
    def source_path(self) -> Path:
        return self.path / "src" / "main.leo"

    @property
    def manifest_path(self) -> Path:
        return self.path / "program.json"
