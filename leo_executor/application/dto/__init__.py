"""
Data Transfer Objects

Request/response models shared by the HTTP and worker interfaces.
"""

from .execute_request import (
    AnalyzeRequestDTO,
    AnalyzeResponseDTO,
    ExecuteRequestDTO,
    ExecuteResponseDTO,
    HealthResponseDTO,
)

__all__ = [
    "AnalyzeRequestDTO",
    "AnalyzeResponseDTO",
    "ExecuteRequestDTO",
    "ExecuteResponseDTO",
    "HealthResponseDTO",
]
