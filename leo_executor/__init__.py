"""
Leo Executor

Builds and runs Leo programs in disposable workspaces and normalizes the
toolchain's output into one result contract.
"""

__version__ = "1.0.0"

from .domain.value_objects import (
    EntryPoint,
    ErrorType,
    ExecutionOutcome,
    ExecutionRequest,
    HealthStatus,
    OutcomeStatus,
    Parameter,
    SourceProgram,
)

__all__ = [
    "EntryPoint",
    "ErrorType",
    "ExecutionOutcome",
    "ExecutionRequest",
    "HealthStatus",
    "OutcomeStatus",
    "Parameter",
    "SourceProgram",
]
