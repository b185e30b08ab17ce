"""
Unit tests for the bounded subprocess runner.

Uses /bin/sh so no Leo installation is needed.
"""

import asyncio
import time

import pytest

from leo_executor.infrastructure.process import ProcessRunner
from leo_executor.infrastructure.process.runner import TIMEOUT_EXIT_CODE
from leo_executor.shared.errors import ToolchainUnavailableError


@pytest.fixture
def runner() -> ProcessRunner:
    return ProcessRunner(kill_grace_seconds=2.0)


@pytest.mark.asyncio
async def test_captures_stdout_and_exit_code(runner):
    outcome = await runner.run(["sh", "-c", "echo hello; echo oops >&2"], timeout_ms=5000)

    assert outcome.exit_succeeded is True
    assert outcome.exit_code == 0
    assert outcome.stdout == "hello\n"
    assert outcome.stderr == "oops\n"
    assert outcome.killed_by_timeout is False


@pytest.mark.asyncio
async def test_non_zero_exit(runner):
    outcome = await runner.run(["sh", "-c", "echo bad >&2; exit 3"], timeout_ms=5000)

    assert outcome.exit_succeeded is False
    assert outcome.exit_code == 3
    assert outcome.error_text == "bad"


@pytest.mark.asyncio
async def test_timeout_kills_process_and_drops_output(runner):
    start = time.perf_counter()

    outcome = await runner.run(["sh", "-c", "echo partial; sleep 30"], timeout_ms=200)

    assert time.perf_counter() - start < 10
    assert outcome.killed_by_timeout is True
    assert outcome.exit_succeeded is False
    assert outcome.exit_code == TIMEOUT_EXIT_CODE
    assert outcome.stdout == ""
    assert outcome.stderr == ""


@pytest.mark.asyncio
async def test_runs_in_working_directory(runner, tmp_path):
    outcome = await runner.run(["pwd"], timeout_ms=5000, cwd=tmp_path)
    assert outcome.stdout.strip() == str(tmp_path.resolve())


@pytest.mark.asyncio
async def test_extra_environment(runner):
    outcome = await runner.run(["sh", "-c", 'echo "$LEO_TEST_VALUE"'], timeout_ms=5000, env={"LEO_TEST_VALUE": "42"})
    assert outcome.stdout == "42\n"


@pytest.mark.asyncio
async def test_missing_executable(runner):
    with pytest.raises(ToolchainUnavailableError) as exc_info:
        await runner.run(["definitely-not-a-leo-binary"], timeout_ms=1000)

    assert exc_info.value.details == {"command": ["definitely-not-a-leo-binary"]}


@pytest.mark.asyncio
async def test_unexecutable_file(runner, tmp_path):
    garbage = tmp_path / "leo"
    garbage.write_bytes(b"\x7fELF\x00\x01garbage")
    garbage.chmod(0o755)

    with pytest.raises(ToolchainUnavailableError, match="Cannot start"):
        await runner.run([str(garbage), "--version"], timeout_ms=1000)


@pytest.mark.asyncio
async def test_cancellation_kills_process(runner, tmp_path):
    marker = tmp_path / "finished"
    task = asyncio.create_task(runner.run(["sh", "-c", f"sleep 2; touch {marker}"], timeout_ms=10000))
    await asyncio.sleep(0.2)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    await asyncio.sleep(2.5)
    assert not marker.exists()
