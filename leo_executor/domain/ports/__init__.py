"""
Domain Ports

Port interfaces defining contracts between layers.
All dependencies on external systems are abstracted through ports.
"""

from .backend_port import IExecutionBackend
from .health_port import IHealthPort
from .workspace_port import IWorkspacePort

__all__ = [
    "IExecutionBackend",
    "IHealthPort",
    "IWorkspacePort",
]
