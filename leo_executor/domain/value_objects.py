"""
Execution Value Objects

Immutable value objects for execution-related concepts.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

MAX_SOURCE_BYTES = 1048576
DEFAULT_TIMEOUT_MS = 60000


class OutcomeStatus(str, Enum):
    """Final status reported to the caller."""

    SUCCESS = "success"
    ERROR = "error"


class ErrorType(str, Enum):
    """Coarse failure category reported to the caller."""

    COMPILATION = "compilation"
    RUNTIME = "runtime"
    TIMEOUT = "timeout"
    SETUP = "setup"


class ExecutionPhase(str, Enum):
    """Phases of the execution state machine."""

    VALIDATING = "validating"
    BUILDING = "building"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionPhase.SUCCESS, ExecutionPhase.ERROR)


@dataclass(frozen=True)
class Parameter:
    """
    A declared transition parameter.

    Attributes:
        name: Parameter name
        type_name: Declared Leo type (e.g. "u32", "field", "Token")
        visibility: "public", "private", "constant" or None when omitted
    """

    name: str
    type_name: str
    visibility: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type_name, "visibility": self.visibility}


@dataclass(frozen=True)
class EntryPoint:
    """
    A callable transition discovered in the source.

    Attributes:
        name: Transition name
        parameters: Declared parameters in order
        is_async: True for finalizing (async) transitions
        return_type: Raw return type text, if declared
    """

    name: str
    parameters: Tuple[Parameter, ...] = ()
    is_async: bool = False
    return_type: Optional[str] = None

    @property
    def parameter_types(self) -> List[str]:
        return [p.type_name for p in self.parameters]


@dataclass(frozen=True)
class SourceProgram:
    """
    Structure recovered from one source text.

    Derived fresh for every request; never cached across edits.
    """

    source: str
    program_name: Optional[str]
    entry_points: Tuple[EntryPoint, ...] = ()

    @property
    def entry_point_names(self) -> List[str]:
        return [e.name for e in self.entry_points]

    def find_entry_point(self, name: str) -> Optional[EntryPoint]:
        for entry_point in self.entry_points:
            if entry_point.name == name:
                return entry_point
        return None


@dataclass(frozen=True)
class ValidationIssue:
    """A problem reported by static validation."""

    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "line": self.line, "column": self.column}


@dataclass(frozen=True)
class ExecutionRequest:
    """
    Request to execute one transition of a Leo program.

    Attributes:
        source: Leo source text (max 1MB)
        entry_point_name: Transition to run; first declared one when omitted
        inputs: Literal arguments; analyzer defaults are used when omitted
        timeout_ms: Wall-clock bound for each spawned process
        execution_id: Identifier used for log correlation
    """

    source: str
    entry_point_name: Optional[str] = None
    inputs: Optional[Tuple[str, ...]] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    execution_id: str = field(default_factory=lambda: f"exec_{uuid.uuid4().hex[:12]}")

    def __post_init__(self):
        """Validate execution request."""
        if len(self.source.encode("utf-8")) > MAX_SOURCE_BYTES:
            raise ValueError("Source size exceeds 1MB limit")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.inputs is not None and not isinstance(self.inputs, tuple):
            object.__setattr__(self, "inputs", tuple(self.inputs))

    @property
    def has_explicit_inputs(self) -> bool:
        return bool(self.inputs)


@dataclass(frozen=True)
class ProcessOutcome:
    """
    Raw result of one external process invocation.

    When killed_by_timeout is set, stdout and stderr are empty: partial
    output of a killed process is discarded.

    outputs is set by backends that return values directly instead of a
    printed report; the values are used as is, without stdout parsing.
    """

    exit_succeeded: bool
    stdout: str
    stderr: str
    killed_by_timeout: bool = False
    exit_code: Optional[int] = None
    duration_ms: float = 0.0
    outputs: Optional[Tuple[str, ...]] = None

    @property
    def error_text(self) -> str:
        """Text used for failure classification, stderr first."""
        return self.stderr.strip() or self.stdout.strip()


@dataclass
class ExecutionOutcome:
    """
    The single result object returned across the system boundary.

    Attributes:
        status: success or error
        execution_time_ms: Wall-clock time from validation start
        output: Display output (success only)
        error: Human-readable message (error only)
        error_type: Failure category (error only)
        outputs: Individual output values, when the backend reports them
    """

    status: OutcomeStatus
    execution_time_ms: float
    output: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
    outputs: List[str] = field(default_factory=list)

    @classmethod
    def success(
        cls, output: str, execution_time_ms: float, outputs: Optional[List[str]] = None
    ) -> "ExecutionOutcome":
        return cls(
            status=OutcomeStatus.SUCCESS,
            output=output,
            execution_time_ms=execution_time_ms,
            outputs=list(outputs or []),
        )

    @classmethod
    def failure(
        cls, error: str, error_type: ErrorType, execution_time_ms: float
    ) -> "ExecutionOutcome":
        return cls(
            status=OutcomeStatus.ERROR,
            error=error,
            error_type=error_type,
            execution_time_ms=execution_time_ms,
        )

    @property
    def is_success(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape."""
        if self.is_success:
            return {
                "status": self.status.value,
                "output": self.output,
                "executionTimeMs": self.execution_time_ms,
            }
        return {
            "status": self.status.value,
            "error": self.error,
            "errorType": self.error_type.value if self.error_type else None,
            "executionTimeMs": self.execution_time_ms,
        }


@dataclass(frozen=True)
class HealthStatus:
    """
    Toolchain availability snapshot.

    Attributes:
        available: Whether the toolchain can currently be invoked
        message: Human-readable status
        version: Toolchain version string, when known
        checked_at: time.monotonic() value of the probe
    """

    available: bool
    message: str
    version: Optional[str] = None
    checked_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"available": self.available, "message": self.message, "version": self.version}
