"""
Execute Request DTO

Data transfer objects between the transports and the domain.
Wire names are camelCase; the older `code`, `functionName` and
`timeout` field names are still accepted.
"""

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from leo_executor.domain.value_objects import (
    ExecutionOutcome,
    ExecutionRequest,
    HealthStatus,
    SourceProgram,
    ValidationIssue,
)
from leo_executor.domain.services import default_inputs_for


class ExecuteRequestDTO(BaseModel):
    """
    Request DTO for code execution.

    Maps a transport payload to the domain ExecutionRequest value object.
    """

    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(
        ...,
        validation_alias=AliasChoices("source", "code"),
        description="Leo program source",
    )
    entry_point_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("entryPointName", "functionName", "entry_point_name"),
        description="Transition to run (first declared when omitted)",
    )
    inputs: Optional[List[str]] = Field(default=None, description="Literal arguments, in order")
    timeout_ms: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("timeoutMs", "timeout", "timeout_ms"),
        ge=1,
        description="Per-process timeout in milliseconds",
    )

    def to_domain(self, default_timeout_ms: int, max_timeout_ms: int) -> ExecutionRequest:
        """
        Convert DTO to domain ExecutionRequest value object.

        Raises:
            ValueError: If the timeout exceeds max_timeout_ms or the source is too large
        """
        timeout_ms = self.timeout_ms or default_timeout_ms
        if timeout_ms > max_timeout_ms:
            raise ValueError(f"timeoutMs cannot exceed {max_timeout_ms}")
        return ExecutionRequest(
            source=self.source,
            entry_point_name=self.entry_point_name or None,
            inputs=tuple(self.inputs) if self.inputs else None,
            timeout_ms=timeout_ms,
        )


class ExecuteResponseDTO(BaseModel):
    """
    Response DTO for code execution.

    Exactly the ExecutionOutcome wire shape; unset fields are omitted.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: str
    output: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = Field(default=None, serialization_alias="errorType")
    execution_time_ms: float = Field(serialization_alias="executionTimeMs")

    @classmethod
    def from_domain(cls, outcome: ExecutionOutcome) -> "ExecuteResponseDTO":
        return cls(**_snake(outcome.to_dict()))

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class HealthResponseDTO(BaseModel):
    """
    Health check response DTO.
    """

    available: bool
    message: str
    version: Optional[str] = None
    backend: Optional[str] = None
    active_executions: Optional[int] = Field(default=None, serialization_alias="activeExecutions")

    @classmethod
    def from_domain(
        cls, status: HealthStatus, backend: Optional[str] = None, active_executions: Optional[int] = None
    ) -> "HealthResponseDTO":
        return cls(
            available=status.available,
            message=status.message,
            version=status.version,
            backend=backend,
            active_executions=active_executions,
        )


class ParameterDTO(BaseModel):
    name: str
    type: str
    visibility: Optional[str] = None


class EntryPointDTO(BaseModel):
    name: str
    parameters: List[ParameterDTO]
    is_async: bool = Field(serialization_alias="isAsync")
    return_type: Optional[str] = Field(default=None, serialization_alias="returnType")
    default_inputs: List[str] = Field(serialization_alias="defaultInputs")


class IssueDTO(BaseModel):
    message: str
    line: Optional[int] = None
    column: Optional[int] = None


class AnalyzeRequestDTO(BaseModel):
    source: str = Field(..., validation_alias=AliasChoices("source", "code"))


class AnalyzeResponseDTO(BaseModel):
    """
    Static analysis response: program identity, transitions and issues.
    """

    valid: bool
    program_name: Optional[str] = Field(default=None, serialization_alias="programName")
    entry_points: List[EntryPointDTO] = Field(default_factory=list, serialization_alias="entryPoints")
    issues: List[IssueDTO] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, program: SourceProgram, issues: List[ValidationIssue]) -> "AnalyzeResponseDTO":
        return cls(
            valid=not issues,
            program_name=program.program_name,
            entry_points=[
                EntryPointDTO(
                    name=e.name,
                    parameters=[ParameterDTO(**p.to_dict()) for p in e.parameters],
                    is_async=e.is_async,
                    return_type=e.return_type,
                    default_inputs=default_inputs_for(e.parameters),
                )
                for e in program.entry_points
            ],
            issues=[IssueDTO(**i.to_dict()) for i in issues],
        )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


def _snake(wire: dict) -> dict:
    mapping = {"errorType": "error_type", "executionTimeMs": "execution_time_ms"}
    return {mapping.get(k, k): v for k, v in wire.items()}
