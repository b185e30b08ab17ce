"""
Message-passing worker interface.

Serves executions over a pair of asyncio queues instead of HTTP, for
deployments that embed the executor (typically with the in-process
library backend).

Protocol:
    -> {"type": "ready"}                                  once, after backend init
    <- {"type": "execute", "id": ..., "payload": {...}}   any number
    -> {"type": "result", "id": ..., "payload": {success, outputs?, error?, executionTimeMs}}

Every execute message receives exactly one result with the same id.
A None on the inbox stops the worker after in-flight executions finish.
"""

import asyncio
import time
from typing import Any, Dict, Optional, Set

from pydantic import ValidationError

from leo_executor.application.commands.execute_code import ExecuteCodeCommand
from leo_executor.application.dto import ExecuteRequestDTO
from leo_executor.domain.ports import IExecutionBackend
from leo_executor.domain.value_objects import DEFAULT_TIMEOUT_MS, ExecutionOutcome
from leo_executor.infrastructure.logging import get_logger
from leo_executor.shared.errors import LeoExecutorError

logger = get_logger(__name__)

MESSAGE_READY = "ready"
MESSAGE_EXECUTE = "execute"
MESSAGE_RESULT = "result"
MESSAGE_ERROR = "error"


def result_payload(outcome: ExecutionOutcome) -> Dict[str, Any]:
    """Convert an outcome to the worker's result payload."""
    if outcome.is_success:
        outputs = outcome.outputs or ([outcome.output] if outcome.output else [])
        return {
            "success": True,
            "outputs": outputs,
            "executionTimeMs": outcome.execution_time_ms,
        }
    return {
        "success": False,
        "error": outcome.error,
        "errorType": outcome.error_type.value if outcome.error_type else None,
        "executionTimeMs": outcome.execution_time_ms,
    }


class ExecutionWorker:
    """
    Answers execute messages through an ExecuteCodeCommand.

    Executions run concurrently; each one is an independent task.
    """

    def __init__(
        self,
        execute_command: ExecuteCodeCommand,
        backend: IExecutionBackend,
        outbox: asyncio.Queue,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_timeout_ms: int = 300000,
    ):
        """
        Args:
            execute_command: Coordinator that runs each request
            backend: Backend initialized once before "ready" is posted
            outbox: Queue receiving ready/result messages
            default_timeout_ms: Timeout when a payload omits one
            max_timeout_ms: Largest accepted timeout
        """
        self._execute_command = execute_command
        self._backend = backend
        self._outbox = outbox
        self._default_timeout_ms = default_timeout_ms
        self._max_timeout_ms = max_timeout_ms
        self._tasks: Set[asyncio.Task] = set()
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    async def start(self) -> None:
        """Initialize the backend once, then announce readiness."""
        logger.info("Worker starting", backend=self._backend.name)
        try:
            await self._backend.initialize()
        except LeoExecutorError as e:
            # Keep serving: executions will fail with a setup error
            logger.error("Backend initialization failed", error=e.message)
            await self._outbox.put({"type": MESSAGE_ERROR, "payload": {"error": e.message}})
            return
        self._ready = True
        logger.info("Worker ready")
        await self._outbox.put({"type": MESSAGE_READY})

    async def serve(self, inbox: asyncio.Queue) -> None:
        """
        Consume messages until a None sentinel arrives.

        Args:
            inbox: Queue of incoming message dicts
        """
        await self.start()
        while True:
            message = await inbox.get()
            if message is None:
                break
            self.dispatch(message)
        await self.drain()
        logger.info("Worker stopped")

    def dispatch(self, message: Dict[str, Any]) -> Optional[asyncio.Task]:
        """Start handling one message; returns the task for execute messages."""
        message_type = message.get("type") if isinstance(message, dict) else None
        if message_type != MESSAGE_EXECUTE:
            logger.warning("Ignoring unknown message", message_type=message_type)
            return None

        task = asyncio.create_task(self._handle_execute(message.get("id"), message.get("payload") or {}))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for all in-flight executions to post their results."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _handle_execute(self, message_id: Any, payload: Dict[str, Any]) -> None:
        start_time = time.perf_counter()
        try:
            dto = ExecuteRequestDTO.model_validate(payload)
            request = dto.to_domain(self._default_timeout_ms, self._max_timeout_ms)
            outcome = await self._execute_command.execute(request)
            response = result_payload(outcome)
        except (ValidationError, ValueError) as e:
            logger.warning("Invalid execute payload", message_id=message_id, error=str(e))
            response = {
                "success": False,
                "error": f"Invalid request: {e}",
                "errorType": "setup",
                "executionTimeMs": (time.perf_counter() - start_time) * 1000,
            }
        except Exception as e:
            logger.error("Execute message failed", message_id=message_id, error=str(e), exc_info=True)
            response = {
                "success": False,
                "error": str(e) or type(e).__name__,
                "errorType": "runtime",
                "executionTimeMs": (time.perf_counter() - start_time) * 1000,
            }

        await self._outbox.put({"type": MESSAGE_RESULT, "id": message_id, "payload": response})
