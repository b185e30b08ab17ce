"""
Application Commands

Use-case handlers.
"""

from .execute_code import ExecuteCodeCommand

__all__ = ["ExecuteCodeCommand"]
