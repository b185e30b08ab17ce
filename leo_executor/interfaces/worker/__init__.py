"""Message-passing worker interface."""

from .message_worker import ExecutionWorker, result_payload

__all__ = ["ExecutionWorker", "result_payload"]
