"""HTTP client for a remote executor."""

from .executor_client import ExecutorClient

__all__ = ["ExecutorClient"]
