"""
Executor Errors

Error types raised inside the executor. None of them cross the
ExecuteCodeCommand boundary: the coordinator converts every one of them
into an ExecutionOutcome.
"""

from typing import Any, Dict, List, Optional


class LeoExecutorError(Exception):
    """Base class for executor errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class SourceValidationError(LeoExecutorError):
    """Source text failed the structural pre-flight checks."""
    pass


class EmptySourceError(SourceValidationError):
    """No source code was provided."""

    def __init__(self):
        super().__init__("No Leo code provided")


class MissingProgramError(SourceValidationError):
    """The source has no recognizable program declaration."""

    def __init__(self):
        super().__init__(
            'Could not find a valid program declaration. '
            'Leo programs must start with "program name.aleo { }"'
        )


class NoEntryPointsError(SourceValidationError):
    """The program declares no callable transitions."""

    def __init__(self, program_name: str):
        super().__init__(
            "No transitions found in the program. Add at least one transition function.",
            details={"program_name": program_name},
        )


class EntryPointNotFoundError(SourceValidationError):
    """The requested transition is not declared in the program."""

    def __init__(self, requested: str, available: List[str]):
        self.requested = requested
        self.available = list(available)
        super().__init__(
            f'Transition "{requested}" not found. '
            f"Available transitions: {', '.join(self.available)}",
            details={"requested": requested, "available": self.available},
        )


class ToolchainUnavailableError(LeoExecutorError):
    """The toolchain could not be invoked at all."""
    pass


class WorkspaceError(LeoExecutorError):
    """A workspace could not be materialized."""
    pass


class InvalidPhaseTransitionError(LeoExecutorError):
    """An execution tried to leave a terminal phase or re-enter a phase."""
    pass
