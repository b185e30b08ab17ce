"""
Execute Code Command

Main execution orchestrator use case.
Coordinates the analyzer, workspace, backend and normalizer to turn one
ExecutionRequest into one ExecutionOutcome.
"""

from typing import List, Optional

import structlog

from leo_executor.domain.entities import Execution, Workspace
from leo_executor.domain.ports import IExecutionBackend, IHealthPort, IWorkspacePort
from leo_executor.domain.services import SourceAnalyzer
from leo_executor.domain.value_objects import (
    ErrorType,
    ExecutionOutcome,
    ExecutionRequest,
    ProcessOutcome,
)
from leo_executor.infrastructure.toolchain import result_parser
from leo_executor.shared.errors import (
    SourceValidationError,
    ToolchainUnavailableError,
    WorkspaceError,
)

logger = structlog.get_logger(__name__)

EMPTY_OUTPUT_MESSAGE = "✓ Program executed successfully"


class ExecuteCodeCommand:
    """
    Command handler for the execute use case.

    Orchestrates the state machine:
    1. validating - static source analysis, then toolchain health
    2. building   - materialize the workspace, compile
    3. running    - run the transition, normalize the output
    4. teardown   - the workspace is destroyed on every exit path

    No exception escapes execute(); every failure becomes an
    ExecutionOutcome with status=error.
    """

    def __init__(
        self,
        backend: IExecutionBackend,
        workspace_port: IWorkspacePort,
        health_port: Optional[IHealthPort] = None,
        analyzer: Optional[SourceAnalyzer] = None,
        max_error_chars: int = 4000,
    ):
        """
        Initialize the execute code command.

        Args:
            backend: Build/run realization (CLI or library)
            workspace_port: Workspace manager
            health_port: Availability cache; skipped when None
            analyzer: Structural source analyzer
            max_error_chars: Longest error message returned to callers
        """
        self._backend = backend
        self._workspace_port = workspace_port
        self._health_port = health_port
        self._analyzer = analyzer or SourceAnalyzer()
        self._max_error_chars = max_error_chars
        self._active_executions: set = set()

    def get_active_count(self) -> int:
        """Get the number of active executions."""
        return len(self._active_executions)

    async def execute(self, request: ExecutionRequest) -> ExecutionOutcome:
        """
        Execute one request.

        Args:
            request: Execution request value object

        Returns:
            ExecutionOutcome, always
        """
        execution = Execution(execution_id=request.execution_id)
        log = logger.bind(execution_id=request.execution_id)
        log.info(
            "Starting execution",
            backend=self._backend.name,
            entry_point=request.entry_point_name,
            timeout_ms=request.timeout_ms,
            source_length=len(request.source),
        )

        self._active_executions.add(execution.execution_id)
        try:
            outcome = await self._execute(execution, request)
        except Exception as e:
            log.error("Execution failed unexpectedly", phase=execution.phase.value, error=str(e), exc_info=True)
            outcome = self._fail(execution, str(e) or type(e).__name__, ErrorType.RUNTIME)
        finally:
            self._active_executions.discard(execution.execution_id)

        log.info(
            "Execution finished",
            status=outcome.status.value,
            error_type=outcome.error_type.value if outcome.error_type else None,
            execution_time_ms=outcome.execution_time_ms,
        )
        return outcome

    async def _execute(self, execution: Execution, request: ExecutionRequest) -> ExecutionOutcome:
        # validating: source first (pure), then toolchain availability
        try:
            program = self._analyzer.analyze(request.source)
            self._analyzer.validate_program(program)
            entry_point = self._analyzer.resolve_entry_point(program, request.entry_point_name)
            inputs = self._analyzer.resolve_inputs(program, entry_point, request.inputs)
        except SourceValidationError as e:
            return self._fail(execution, e.message, ErrorType.COMPILATION)

        if self._health_port is not None:
            health = await self._health_port.get_status()
            if not health.available:
                return self._fail(execution, health.message, ErrorType.SETUP)

        # building
        execution.mark_building()
        try:
            async with self._workspace_port.workspace(request.source, program.program_name) as workspace:
                return await self._build_and_run(execution, request, workspace, entry_point, inputs)
        except WorkspaceError as e:
            return self._fail(execution, e.message, ErrorType.SETUP)
        except ToolchainUnavailableError as e:
            return self._fail(execution, e.message, ErrorType.SETUP)

    async def _build_and_run(
        self,
        execution: Execution,
        request: ExecutionRequest,
        workspace: Workspace,
        entry_point: str,
        inputs: List[str],
    ) -> ExecutionOutcome:
        build = await self._backend.build(workspace, request.timeout_ms)
        if not build.exit_succeeded:
            error_type = ErrorType.TIMEOUT if build.killed_by_timeout else ErrorType.COMPILATION
            return self._fail(execution, self._error_message(build, "Build failed"), error_type)

        # running
        execution.mark_running()
        run = await self._backend.run(workspace, entry_point, inputs, request.timeout_ms)
        if not run.exit_succeeded:
            error_type = result_parser.classify_error(run.error_text, run.killed_by_timeout)
            return self._fail(execution, self._error_message(run, "Execution failed"), error_type)

        if run.outputs is not None:
            values = list(run.outputs)
            output = "\n".join(values) or EMPTY_OUTPUT_MESSAGE
        else:
            values = result_parser.extract_output_values(run.stdout)
            output = result_parser.extract_success_output(run.stdout) or EMPTY_OUTPUT_MESSAGE
        outcome = ExecutionOutcome.success(output, execution.elapsed_ms, outputs=values)
        execution.mark_succeeded(outcome)
        return outcome

    def _error_message(self, outcome: ProcessOutcome, fallback: str) -> str:
        if outcome.killed_by_timeout:
            return result_parser.TIMEOUT_MESSAGE
        message = result_parser.format_error(outcome.error_text) or fallback
        return result_parser.truncate_message(message, self._max_error_chars)

    def _fail(self, execution: Execution, message: str, error_type: ErrorType) -> ExecutionOutcome:
        outcome = ExecutionOutcome.failure(message, error_type, execution.elapsed_ms)
        if not execution.phase.is_terminal:
            execution.mark_failed(outcome)
        return outcome
