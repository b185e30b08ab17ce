"""
Executor Application Layer

Use cases orchestrating the domain through its ports.
"""

from .commands import ExecuteCodeCommand
from .services import HealthCache

__all__ = ["ExecuteCodeCommand", "HealthCache"]
