"""
Executor Domain Layer

Value objects, entities and the source analyzer that every
execution flows through.
"""

from .entities import Execution, Workspace
from .services import SourceAnalyzer
from .value_objects import (
    EntryPoint,
    ErrorType,
    ExecutionOutcome,
    ExecutionPhase,
    ExecutionRequest,
    HealthStatus,
    OutcomeStatus,
    Parameter,
    ProcessOutcome,
    SourceProgram,
)

__all__ = [
    "Execution",
    "Workspace",
    "SourceAnalyzer",
    "EntryPoint",
    "ErrorType",
    "ExecutionOutcome",
    "ExecutionPhase",
    "ExecutionRequest",
    "HealthStatus",
    "OutcomeStatus",
    "Parameter",
    "ProcessOutcome",
    "SourceProgram",
]
