"""
Remote executor client.

Calls a running executor over HTTP and returns the same ExecutionOutcome
the in-process coordinator does. Source problems are caught locally
before any request is sent, and transport failures are mapped onto the
error taxonomy:
- read/write timeout -> timeout
- connection failure -> setup
"""

import time
from typing import Any, Dict, Optional, Sequence

import httpx

from leo_executor.domain.ports import IHealthPort
from leo_executor.domain.services import SourceAnalyzer
from leo_executor.domain.value_objects import (
    DEFAULT_TIMEOUT_MS,
    ErrorType,
    ExecutionOutcome,
    HealthStatus,
    OutcomeStatus,
)
from leo_executor.infrastructure.logging import get_logger
from leo_executor.infrastructure.toolchain.result_parser import TIMEOUT_MESSAGE
from leo_executor.shared.errors import SourceValidationError

logger = get_logger(__name__)

DEFAULT_EXECUTOR_URL = "http://localhost:3001"


def outcome_from_wire(data: Dict[str, Any]) -> ExecutionOutcome:
    """Rebuild an ExecutionOutcome from an /execute response body."""
    elapsed = float(data.get("executionTimeMs") or 0)
    if data.get("status") == OutcomeStatus.SUCCESS.value:
        return ExecutionOutcome.success(data.get("output") or "", elapsed)
    try:
        error_type = ErrorType(data.get("errorType"))
    except ValueError:
        error_type = ErrorType.RUNTIME
    return ExecutionOutcome.failure(data.get("error") or "Unknown error occurred", error_type, elapsed)


class ExecutorClient:
    """
    Async HTTP client for a remote Leo executor.

    Health answers go through the injected health port (normally a
    HealthCache wrapping probe()); without one every check probes.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_EXECUTOR_URL,
        health_port: Optional[IHealthPort] = None,
        analyzer: Optional[SourceAnalyzer] = None,
        connect_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize executor client.

        Args:
            base_url: Executor base URL
            health_port: Availability cache; probe() is called directly when None
            analyzer: Source analyzer used for local validation
            connect_timeout: Connection timeout (seconds)
            transport: Optional httpx transport (tests use ASGITransport)
        """
        self.base_url = base_url.rstrip("/")
        self.health_port = health_port
        self._analyzer = analyzer or SourceAnalyzer()
        self._connect_timeout = connect_timeout
        self._transport = transport

        # Lazy-initialized async client
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(30.0, connect=self._connect_timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def probe(self) -> HealthStatus:
        """
        Ask the executor's /health endpoint; never raises.

        Returns:
            HealthStatus as reported by the executor, or unavailable
        """
        try:
            client = await self._get_client()
            response = await client.get("/health")
        except httpx.HTTPError as e:
            logger.warning("Executor health check failed", url=self.base_url, error=str(e))
            return HealthStatus(
                available=False,
                message=f"Cannot connect to Leo executor at {self.base_url}",
                checked_at=time.monotonic(),
            )

        try:
            data = response.json()
        except ValueError:
            return HealthStatus(
                available=False,
                message=f"Executor responded with status {response.status_code}",
                checked_at=time.monotonic(),
            )
        return HealthStatus(
            available=bool(data.get("available")) and response.status_code == 200,
            message=data.get("message") or f"Executor responded with status {response.status_code}",
            version=data.get("version"),
            checked_at=time.monotonic(),
        )

    async def check_health(self) -> HealthStatus:
        if self.health_port is not None:
            return await self.health_port.get_status()
        return await self.probe()

    async def execute(
        self,
        source: str,
        entry_point_name: Optional[str] = None,
        inputs: Optional[Sequence[str]] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> ExecutionOutcome:
        """
        Execute a program on the remote executor.

        Args:
            source: Leo program source
            entry_point_name: Transition to run (first declared when None)
            inputs: Literal arguments; the executor picks defaults when empty
            timeout_ms: Per-process timeout forwarded to the executor

        Returns:
            ExecutionOutcome, always
        """
        start_time = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - start_time) * 1000

        try:
            program = self._analyzer.analyze(source)
            self._analyzer.validate_program(program)
            entry_point = self._analyzer.resolve_entry_point(program, entry_point_name)
        except SourceValidationError as e:
            return ExecutionOutcome.failure(e.message, ErrorType.COMPILATION, elapsed())

        health = await self.check_health()
        if not health.available:
            return ExecutionOutcome.failure(health.message, ErrorType.SETUP, elapsed())

        payload = {
            "source": source,
            "entryPointName": entry_point,
            "inputs": list(inputs or []),
            "timeoutMs": timeout_ms,
        }
        # Build and run each get timeout_ms on the server
        read_timeout = 2 * timeout_ms / 1000 + self._connect_timeout

        try:
            client = await self._get_client()
            logger.debug("Sending execution request", url=self.base_url, entry_point=entry_point)
            response = await client.post(
                "/execute",
                json=payload,
                timeout=httpx.Timeout(read_timeout, connect=self._connect_timeout),
            )
        except httpx.TimeoutException:
            logger.warning("Executor request timed out", url=self.base_url, timeout_ms=timeout_ms)
            return ExecutionOutcome.failure(TIMEOUT_MESSAGE, ErrorType.TIMEOUT, elapsed())
        except httpx.TransportError as e:
            logger.warning("Executor unreachable", url=self.base_url, error=str(e))
            return ExecutionOutcome.failure(
                f"Cannot connect to Leo executor at {self.base_url}", ErrorType.SETUP, elapsed()
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict) or "status" not in data:
            return ExecutionOutcome.failure(
                f"Executor responded with status {response.status_code}", ErrorType.RUNTIME, elapsed()
            )
        return outcome_from_wire(data)
