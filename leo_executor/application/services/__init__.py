"""
Application Services

Long-lived services shared by the interfaces.
"""

from .health_service import HealthCache

__all__ = ["HealthCache"]
