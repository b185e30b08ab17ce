"""
Process Infrastructure

Bounded subprocess execution.
"""

from .runner import ProcessRunner

__all__ = ["ProcessRunner"]
