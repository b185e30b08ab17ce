"""Pytest configuration and fixtures."""

import stat
from pathlib import Path
from typing import List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from leo_executor.infrastructure.config import Settings
from leo_executor.infrastructure.toolchain import LeoCliBackend
from leo_executor.interfaces.dependencies import build_services
from leo_executor.interfaces.http import create_app

HELLO_SOURCE = """program hello.aleo {
    transition main(public a: u32, b: u32) -> u32 {
        let c: u32 = a + b;
        return c;
    }
}
"""

# Stand-in for the Leo CLI. Behaviour is selected by "// fake: ..." markers
# in src/main.leo; by default `run` prints the sum of its u32 arguments.
FAKE_LEO_SCRIPT = r"""#!/bin/sh
if [ -n "$FAKE_LEO_LOG" ]; then
  echo "$*" >> "$FAKE_LEO_LOG"
fi
case "$1" in
  --version)
    echo "leo 2.4.1"
    ;;
  build)
    if grep -q "fake: build-error" src/main.leo; then
      printf '\033[1;31mError [ETYC0372003]:\033[0m Expected type `u32` but type `field` was found\n' >&2
      exit 1
    fi
    if grep -q "fake: slow-build" src/main.leo; then
      sleep 30
    fi
    echo "       Leo Compiled 'main.leo' into Aleo instructions"
    ;;
  run)
    shift
    shift
    if grep -q "fake: slow-run" src/main.leo; then
      sleep 30
    fi
    if grep -q "fake: runtime-error" src/main.leo; then
      echo "Error: Failed to evaluate instruction (assert.eq r0 r1;)" >&2
      exit 1
    fi
    printf '\033[1;32m       Leo\033[0m Finished\n\n Outputs\n\n'
    if grep -q "fake: echo" src/main.leo; then
      for a in "$@"; do
        printf ' \342\200\242 %s\n' "$a"
      done
    else
      sum=0
      for a in "$@"; do
        sum=$((sum + ${a%u32}))
      done
      printf ' \342\200\242 %su32\n' "$sum"
    fi
    ;;
  *)
    echo "unknown command $1" >&2
    exit 2
    ;;
esac
"""


def pytest_configure(config):
    config.addinivalue_line("markers", "contract: HTTP contract tests")
    config.addinivalue_line("markers", "integration: end-to-end tests against the fake Leo CLI")


def list_workspaces(root: Path) -> List[Path]:
    """Workspace directories currently present under root."""
    if not root.exists():
        return []
    return [p for p in root.iterdir() if p.name.startswith("leo_temp_")]


def read_leo_calls(log_path: Path) -> List[str]:
    """Argument lines recorded by the fake CLI, one per invocation."""
    if not log_path.exists():
        return []
    return log_path.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def leo_log(tmp_path, monkeypatch) -> Path:
    """File the fake CLI appends its arguments to."""
    log_path = tmp_path / "leo_calls.log"
    monkeypatch.setenv("FAKE_LEO_LOG", str(log_path))
    return log_path


@pytest.fixture
def fake_leo(tmp_path, leo_log) -> Path:
    """Executable fake `leo` script."""
    script = tmp_path / "bin" / "leo"
    script.parent.mkdir()
    script.write_text(FAKE_LEO_SCRIPT, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def workspace_root(tmp_path) -> Path:
    return tmp_path / "workspaces"


@pytest.fixture
def settings(workspace_root, fake_leo) -> Settings:
    """Settings pointing at the fake CLI and a private workspace root."""
    return Settings(
        leo_binary=str(fake_leo),
        workspace_root=str(workspace_root),
        default_timeout_ms=10000,
        health_ttl_seconds=30,
    )


@pytest.fixture
def cli_backend(fake_leo) -> LeoCliBackend:
    return LeoCliBackend(leo_binary=str(fake_leo), probe_timeout_ms=5000)


@pytest.fixture
def services(settings, cli_backend):
    """Fully wired services backed by the fake CLI."""
    return build_services(settings, backend=cli_backend)


@pytest_asyncio.fixture
async def client(settings, services) -> AsyncClient:
    """Get test HTTP client."""
    app = create_app(settings=settings, services=services)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
