"""
Unit tests for the ExecuteCodeCommand coordinator.

The backend and health port are AsyncMocks; workspaces are real
directories under tmp_path so teardown can be observed.
"""

import pytest
from unittest.mock import AsyncMock

from conftest import HELLO_SOURCE, list_workspaces
from leo_executor.application.commands import ExecuteCodeCommand
from leo_executor.application.commands.execute_code import EMPTY_OUTPUT_MESSAGE
from leo_executor.domain.ports import IExecutionBackend
from leo_executor.domain.value_objects import (
    ErrorType,
    ExecutionRequest,
    HealthStatus,
    OutcomeStatus,
    ProcessOutcome,
)
from leo_executor.infrastructure.toolchain import LibraryBackend
from leo_executor.infrastructure.toolchain.result_parser import TIMEOUT_MESSAGE
from leo_executor.infrastructure.workspace import WorkspaceManager
from leo_executor.interfaces.worker.message_worker import result_payload
from leo_executor.shared.errors import ToolchainUnavailableError

OK_BUILD = ProcessOutcome(exit_succeeded=True, stdout="Compiled", stderr="", exit_code=0)


def run_output(*values: str) -> ProcessOutcome:
    stdout = "\x1b[32m       Leo\x1b[0m Finished\n\n Outputs\n\n" + "".join(f" • {v}\n" for v in values)
    return ProcessOutcome(exit_succeeded=True, stdout=stdout, stderr="", exit_code=0)


@pytest.fixture
def backend():
    mock = AsyncMock(spec=IExecutionBackend)
    mock.name = "mock"
    mock.build.return_value = OK_BUILD
    mock.run.return_value = run_output("15u32")
    return mock


@pytest.fixture
def health_port():
    mock = AsyncMock()
    mock.get_status.return_value = HealthStatus(available=True, message="Leo CLI is installed and ready")
    return mock


@pytest.fixture
def manager(workspace_root) -> WorkspaceManager:
    return WorkspaceManager(root=workspace_root)


@pytest.fixture
def command(backend, manager, health_port) -> ExecuteCodeCommand:
    return ExecuteCodeCommand(backend=backend, workspace_port=manager, health_port=health_port, max_error_chars=200)


class TestSuccess:
    """Tests for successful executions."""

    @pytest.mark.asyncio
    async def test_success(self, command, backend, workspace_root):
        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE, inputs=["5u32", "10u32"]))

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.output == "15u32"
        assert outcome.outputs == ["15u32"]
        assert outcome.error is None
        assert outcome.execution_time_ms >= 0
        backend.run.assert_awaited_once()
        assert backend.run.await_args.args[1:3] == ("main", ["5u32", "10u32"])
        assert list_workspaces(workspace_root) == []

    @pytest.mark.asyncio
    async def test_default_inputs_are_typed_placeholders(self, command, backend):
        await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert backend.run.await_args.args[2] == ["5u32", "5u32"]

    @pytest.mark.asyncio
    async def test_workspace_contains_source_during_build(self, command, backend):
        seen = {}

        async def build(workspace, timeout_ms):
            seen["source"] = workspace.source_path.read_text(encoding="utf-8")
            seen["timeout_ms"] = timeout_ms
            return OK_BUILD

        backend.build.side_effect = build

        await command.execute(ExecutionRequest(source=HELLO_SOURCE, timeout_ms=1234))

        assert seen == {"source": HELLO_SOURCE, "timeout_ms": 1234}

    @pytest.mark.asyncio
    async def test_empty_output_gets_placeholder(self, command, backend):
        backend.run.return_value = ProcessOutcome(exit_succeeded=True, stdout="", stderr="", exit_code=0)

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.output == EMPTY_OUTPUT_MESSAGE

    @pytest.mark.asyncio
    async def test_reported_outputs_skip_stdout_parsing(self, command, backend):
        record = "{\n  a: 1u32,\n  b: 2u32\n}"
        backend.run.return_value = ProcessOutcome(
            exit_succeeded=True, stdout=record, stderr="", exit_code=0, outputs=(record,)
        )

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.outputs == [record]
        assert outcome.output == record

    @pytest.mark.asyncio
    async def test_library_backend_multiline_output(self, manager):
        record = "{\n  a: 1u32,\n  b: 2u32\n}"
        library = LibraryBackend(program_runner=lambda program, function, inputs: [record])
        command = ExecuteCodeCommand(backend=library, workspace_port=manager)
        try:
            outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE, inputs=["1u32", "2u32"]))
        finally:
            library.shutdown()

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.outputs == [record]
        assert outcome.output == record
        assert result_payload(outcome)["outputs"] == [record]

    @pytest.mark.asyncio
    async def test_active_count_returns_to_zero(self, command):
        await command.execute(ExecutionRequest(source=HELLO_SOURCE))
        assert command.get_active_count() == 0


class TestValidationFailures:
    """Source problems never reach the backend."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "source,message",
        [
            ("", "No Leo code provided"),
            ("transition main() {}", "program name.aleo"),
            ("program hello {\n transition main() {} }", "program name.aleo"),
            ("program empty.aleo { }", "No transitions found"),
        ],
    )
    async def test_compilation_error_without_workspace(
        self, command, backend, health_port, workspace_root, source, message
    ):
        outcome = await command.execute(ExecutionRequest(source=source))

        assert outcome.error_type == ErrorType.COMPILATION
        assert message in outcome.error
        backend.build.assert_not_awaited()
        health_port.get_status.assert_not_awaited()
        assert list_workspaces(workspace_root) == []

    @pytest.mark.asyncio
    async def test_unknown_entry_point(self, command, backend):
        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE, entry_point_name="foo"))

        assert outcome.error_type == ErrorType.COMPILATION
        assert outcome.error == 'Transition "foo" not found. Available transitions: main'
        backend.build.assert_not_awaited()


class TestSetupFailures:
    """Tests for failures before the program is built."""

    @pytest.mark.asyncio
    async def test_unavailable_toolchain(self, command, backend, health_port, workspace_root):
        health_port.get_status.return_value = HealthStatus(available=False, message="Leo CLI is not installed.")

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.SETUP
        assert outcome.error == "Leo CLI is not installed."
        backend.build.assert_not_awaited()
        assert not workspace_root.exists() or list_workspaces(workspace_root) == []

    @pytest.mark.asyncio
    async def test_spawn_failure_is_setup(self, command, backend, workspace_root):
        backend.build.side_effect = ToolchainUnavailableError("Cannot start 'leo'")

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.SETUP
        assert list_workspaces(workspace_root) == []

    @pytest.mark.asyncio
    async def test_workspace_failure_is_setup(self, backend, health_port, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        command = ExecuteCodeCommand(backend, WorkspaceManager(root=blocker), health_port)

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.SETUP
        assert "Failed to create workspace" in outcome.error

    @pytest.mark.asyncio
    async def test_without_health_port(self, backend, manager):
        command = ExecuteCodeCommand(backend=backend, workspace_port=manager)

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.status == OutcomeStatus.SUCCESS


class TestBuildAndRunFailures:
    """Tests for toolchain failures."""

    @pytest.mark.asyncio
    async def test_build_failure_is_compilation(self, command, backend, workspace_root):
        backend.build.return_value = ProcessOutcome(
            exit_succeeded=False,
            stdout="\x1b[32m  Leo\x1b[0m Compiling\n",
            stderr="\x1b[31mError [EPAR0370005]:\x1b[0m expected ; -- found '}'\n",
            exit_code=1,
        )

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.COMPILATION
        assert outcome.error == "Error [EPAR0370005]: expected ; -- found '}'"
        backend.run.assert_not_awaited()
        assert list_workspaces(workspace_root) == []

    @pytest.mark.asyncio
    async def test_build_timeout(self, command, backend):
        backend.build.return_value = ProcessOutcome(
            exit_succeeded=False, stdout="", stderr="", killed_by_timeout=True, exit_code=124
        )

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.TIMEOUT
        assert outcome.error == TIMEOUT_MESSAGE
        backend.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_run_timeout(self, command, backend, workspace_root):
        backend.run.return_value = ProcessOutcome(
            exit_succeeded=False, stdout="", stderr="", killed_by_timeout=True, exit_code=124
        )

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.TIMEOUT
        assert list_workspaces(workspace_root) == []

    @pytest.mark.asyncio
    async def test_runtime_failure(self, command, backend):
        backend.run.return_value = ProcessOutcome(
            exit_succeeded=False,
            stdout="",
            stderr="Error: Failed to evaluate instruction (assert.eq r0 r1;)\n",
            exit_code=1,
        )

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.RUNTIME
        assert outcome.error == "Error: Failed to evaluate instruction (assert.eq r0 r1;)"

    @pytest.mark.asyncio
    async def test_run_failure_with_compilation_vocabulary(self, command, backend):
        backend.run.return_value = ProcessOutcome(
            exit_succeeded=False, stdout="", stderr="Error: Expected 2 inputs, found 1\n", exit_code=1
        )

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.COMPILATION

    @pytest.mark.asyncio
    async def test_long_errors_are_truncated(self, command, backend):
        backend.run.return_value = ProcessOutcome(
            exit_succeeded=False, stdout="", stderr="Error: " + "x" * 5000, exit_code=1
        )

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert len(outcome.error) < 300
        assert outcome.error.endswith("(truncated)")

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_runtime(self, command, backend, workspace_root):
        backend.run.side_effect = RuntimeError("backend exploded")

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.RUNTIME
        assert outcome.error == "backend exploded"
        assert list_workspaces(workspace_root) == []
        assert command.get_active_count() == 0


class TestTeardownFailures:
    """A workspace that cannot be removed never replaces the computed outcome."""

    @pytest.fixture(autouse=True)
    def failing_rmtree(self, monkeypatch):
        calls = []

        def rmtree(path, *args, **kwargs):
            calls.append(path)
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr("leo_executor.infrastructure.workspace.manager.shutil.rmtree", rmtree)
        return calls

    @pytest.mark.asyncio
    async def test_success_survives_teardown_failure(self, command, failing_rmtree):
        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE, inputs=["5u32", "10u32"]))

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.output == "15u32"
        assert len(failing_rmtree) == 1
        assert command.get_active_count() == 0

    @pytest.mark.asyncio
    async def test_runtime_failure_survives_teardown_failure(self, command, backend, failing_rmtree):
        backend.run.return_value = ProcessOutcome(
            exit_succeeded=False,
            stdout="",
            stderr="Error: Failed to evaluate instruction (assert.eq r0 r1;)\n",
            exit_code=1,
        )

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.RUNTIME
        assert outcome.error == "Error: Failed to evaluate instruction (assert.eq r0 r1;)"
        assert len(failing_rmtree) == 1

    @pytest.mark.asyncio
    async def test_build_failure_survives_teardown_failure(self, command, backend, failing_rmtree):
        backend.build.return_value = ProcessOutcome(
            exit_succeeded=False, stdout="", stderr="Error: expected ; -- found '}'\n", exit_code=1
        )

        outcome = await command.execute(ExecutionRequest(source=HELLO_SOURCE))

        assert outcome.error_type == ErrorType.COMPILATION
        assert outcome.error == "Error: expected ; -- found '}'"
        assert len(failing_rmtree) == 1
